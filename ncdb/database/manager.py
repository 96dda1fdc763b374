#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the NCDB catalog.

Provides the NCDB class for interacting with the SQLite catalog database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transaction management with a process-wide write lock
    - Access to the entity managers (productions, rankings, tags, ...)
    - Aggregate statistics
    - Snapshot-then-render exports
    - Restore from a JSON export
    - Atomic full reset

Concurrency model:
    Every mutation runs inside session_scope(), which holds the write lock
    for the whole transaction, so mutations are serialized. Lock
    acquisition waits at most ``lock_timeout`` seconds and then raises
    TransactionFailedError; nothing is retried internally. read_scope()
    opens a session without the lock. It runs as one SQLite read
    transaction, so every query inside it sees the same committed snapshot
    even while another thread commits, and its changes are always rolled
    back. Each manager mutation runs in its own SAVEPOINT: when it fails,
    its partial writes are undone and the enclosing scope is unaffected.

Usage:
    db = NCDB("~/ncdb/ncdb.db", log_dir="~/ncdb/logs")

    with db.session_scope():
        face_off = db.productions.create({"title": "Face/Off", "release_year": 1997})
        db.rankings.insert_at_rank(face_off, 1)
        db.tags.attach(face_off, db.tags.get_or_create("Classics"))

    document = db.export("json")
    db.reset_all()

Notes
==============
- The schema is created on first use (Base.metadata.create_all)
- SQLite foreign keys and WAL journaling are enabled on every connection
- All datetime fields are UTC-aware
- Managers are bound to the calling thread's active scope
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, delete, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from ncdb.core.exceptions import (
    DatabaseError,
    NotFoundError,
    ResetFailedError,
    RestoreError,
    TransactionFailedError,
)
from ncdb.core.logging_manager import NCDBLogger
from ncdb.core.paths import EXPORT_DIR

from .configs.cascade_configs import get_dependents, get_detach_rules
from .decorators import handle_db_errors, log_database_operation
from .export_manager import ExportDocument, ExportManager, ExportOptions
from .managers import (
    AchievementManager,
    ArticleManager,
    PreferencesManager,
    ProductionManager,
    RankingManager,
    StoreManager,
    TagManager,
    TemplateManager,
)
from .models import (
    Achievement,
    Base,
    CustomTag,
    ExportTemplate,
    ExportType,
    NewsArticle,
    Production,
)
from .query_analytics import ProductionStats, QueryAnalytics
from .restore_manager import BackupDocument, RestoreManager, RestoreResult

DEFAULT_LOCK_TIMEOUT = 30.0

# Reset order: a parent's dependents and join rows go first
RESET_MODELS = [Production, NewsArticle, Achievement, CustomTag]

MANAGER_CLASSES = {
    "store": StoreManager,
    "productions": ProductionManager,
    "rankings": RankingManager,
    "tags": TagManager,
    "articles": ArticleManager,
    "achievements": AchievementManager,
    "preferences": PreferencesManager,
    "templates": TemplateManager,
}


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    """
    Prepare a new SQLite connection.

    - pysqlite's implicit transaction handling is switched off so that
      _begin_sqlite_transaction controls BEGIN (needed for SAVEPOINT and
      for reads that span several statements)
    - WAL journaling lets an open read transaction keep its snapshot
      while a writer commits
    - Foreign key enforcement is turned on
    """
    del connection_record
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(connection: Any) -> None:
    """Emit an explicit BEGIN so every scope is one SQLite transaction."""
    connection.exec_driver_sql("BEGIN")


# ----- Main Database Manager -----
class NCDB:
    """
    Main database manager for the NCDB catalog.

    Attributes:
        - db_path (Path): Filesystem path to the SQLite database file.
        - lock_timeout (float): Seconds to wait for the write lock.
        - engine (Engine): SQLAlchemy engine instance.
        - SessionLocal (sessionmaker): SQLAlchemy session factory.
        - export_manager (ExportManager): Snapshot and render exports.
        - query_analytics (QueryAnalytics): Aggregate statistics.
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path (str | Path): Path to the SQLite file.
            log_dir (str | Path): Directory for log files (optional)
            lock_timeout (float): Seconds to wait for the write lock
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.lock_timeout = lock_timeout

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve()
            self.logger: Optional[NCDBLogger] = NCDBLogger(
                self.log_dir,
                component_name="database",
            )
        else:
            self.log_dir = None
            self.logger = None

        # --- Concurrency ---
        self._write_lock = threading.RLock()
        self._local = threading.local()

        # Initialize service components
        self.export_manager = ExportManager(self.logger)
        self.query_analytics = QueryAnalytics(self.logger)
        self.restore_manager = RestoreManager(self.logger)

        # Initialize database
        self._setup_engine()

    def _setup_engine(self) -> None:
        """Initialize database engine, session factory and schema."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start", {"db_path": str(self.db_path)}
                )

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
            )
            event.listen(self.engine, "connect", _configure_sqlite_connection)
            event.listen(self.engine, "begin", _begin_sqlite_transaction)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except (OSError, SQLAlchemyError, DatabaseError) as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Create missing tables and the UserPreferences row.

        Safe to call on an existing database.
        """
        Base.metadata.create_all(bind=self.engine)
        with self.session_scope():
            self.preferences.ensure_exists()

    def close(self) -> None:
        """Dispose of the engine and close log handlers."""
        self.engine.dispose()
        if self.logger:
            self.logger.close()

    # ---- Session Management ----
    def _acquire_write_lock(self) -> None:
        """
        Wait for the write lock.

        Raises:
            TransactionFailedError: If the lock is not acquired in time
        """
        if not self._write_lock.acquire(timeout=self.lock_timeout):
            raise TransactionFailedError(
                f"Could not acquire write lock within {self.lock_timeout}s"
            )

    def _bind_managers(self, session: Session) -> Dict[str, Any]:
        return {
            name: manager_class(session, self.logger)
            for name, manager_class in MANAGER_CLASSES.items()
        }

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a locked transactional scope around operations.

        Commits on success and rolls back on any exception. A scope opened
        inside another scope on the same thread joins the outer
        transaction.

        Usage:
            with db.session_scope() as session:
                production = db.productions.create({...})
                db.rankings.insert_at_rank(production, 1)

        Raises:
            TransactionFailedError: If the write lock times out
        """
        outer = getattr(self._local, "scope", None)
        if outer is not None and outer["writable"]:
            yield outer["session"]
            return

        self._acquire_write_lock()
        try:
            with self._scope(writable=True) as session:
                yield session
        finally:
            self._write_lock.release()

    @contextmanager
    def read_scope(self) -> Iterator[Session]:
        """
        Provide an unlocked scope for reads.

        All queries in the scope share one snapshot. Changes made in a read
        scope are rolled back when it closes.
        """
        outer = getattr(self._local, "scope", None)
        if outer is not None:
            yield outer["session"]
            return

        with self._scope(writable=False) as session:
            yield session

    @contextmanager
    def _scope(self, writable: bool) -> Iterator[Session]:
        previous = getattr(self._local, "scope", None)
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        self._local.scope = {
            "session": session,
            "writable": writable,
            "managers": self._bind_managers(session),
        }

        if self.logger:
            self.logger.log_debug(
                "session_start", {"session_id": session_id, "writable": writable}
            )

        try:
            yield session
            if writable:
                session.commit()
                if self.logger:
                    self.logger.log_debug("session_commit", {"session_id": session_id})
            else:
                session.rollback()

        except Exception as e:
            session.rollback()
            if self.logger:
                self.logger.log_error(
                    e, {"operation": "session_rollback", "session_id": session_id}
                )
            raise
        finally:
            self._local.scope = previous
            session.close()
            if self.logger:
                self.logger.log_debug("session_close", {"session_id": session_id})

    def _manager(self, name: str) -> Any:
        scope = getattr(self._local, "scope", None)
        if scope is None:
            raise DatabaseError(
                f"db.{name} requires an active session. "
                f"Use within session_scope: with db.session_scope(): db.{name}..."
            )
        return scope["managers"][name]

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    @property
    def store(self) -> StoreManager:
        """
        Generic create/get/update/delete/query over every entity.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("store")

    @property
    def productions(self) -> ProductionManager:
        """
        Access ProductionManager for production operations.

        Recommended usage:
            with db.session_scope():
                mandy = db.productions.upsert_production(
                    465914, {"title": "Mandy", "release_year": 2018}
                )

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("productions")

    @property
    def rankings(self) -> RankingManager:
        """
        Access RankingManager for the personal ranking.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("rankings")

    @property
    def tags(self) -> TagManager:
        """
        Access TagManager for tag operations.

        Recommended usage:
            with db.session_scope():
                tag = db.tags.get_or_create("Classics")
                db.tags.attach(production, tag)

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("tags")

    @property
    def articles(self) -> ArticleManager:
        """
        Access ArticleManager for news articles.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("articles")

    @property
    def achievements(self) -> AchievementManager:
        """
        Access AchievementManager for achievement progress.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("achievements")

    @property
    def preferences(self) -> PreferencesManager:
        """
        Access PreferencesManager for the UserPreferences row.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("preferences")

    @property
    def templates(self) -> TemplateManager:
        """
        Access TemplateManager for export templates.

        Raises:
            DatabaseError: If accessed outside of a scope
        """
        return self._manager("templates")

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def stats(self) -> ProductionStats:
        """Aggregate statistics over the committed catalog."""
        with self.read_scope() as session:
            return self.query_analytics.production_stats(session)

    def achievement_metrics(self) -> Dict[str, float]:
        """Metrics feeding the achievement catalog."""
        with self.read_scope() as session:
            return self.query_analytics.achievement_metrics(session)

    def evaluate_achievements(self) -> List[Achievement]:
        """
        Seed the achievement catalog and apply current metrics.

        Returns:
            Achievements unlocked by this evaluation
        """
        with self.session_scope() as session:
            self.achievements.seed()
            metrics = self.query_analytics.achievement_metrics(session)
            return self.achievements.evaluate(metrics)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(
        self,
        export_format: Union[ExportType, str],
        options: Optional[ExportOptions] = None,
        template_id: Optional[str] = None,
    ) -> ExportDocument:
        """
        Export the catalog to a document.

        The snapshot is taken under the write lock; rendering happens after
        the lock is released.

        Args:
            export_format: ExportType or its value ('json', 'csv', 'html')
            options: Inclusion options; ignored when template_id is given
            template_id: Id of a saved ExportTemplate supplying the options
                and HTML layout

        Returns:
            ExportDocument

        Raises:
            NotFoundError: If template_id does not exist
            ExportError: If rendering fails
        """
        with self.session_scope() as session:
            if template_id is not None:
                template = self.store.get(ExportTemplate, template_id)
                if template is None:
                    raise NotFoundError(f"ExportTemplate not found with id: {template_id}")
                options = ExportOptions.from_template(template)
            snapshot = self.export_manager.snapshot(session)

        return self.export_manager.render(snapshot, export_format, options)

    def export_to_file(
        self,
        export_format: Union[ExportType, str],
        directory: Union[str, Path] = EXPORT_DIR,
        options: Optional[ExportOptions] = None,
        template_id: Optional[str] = None,
    ) -> Path:
        """
        Export the catalog and write it to ``directory``.

        Returns:
            Path of the written file
        """
        document = self.export(export_format, options, template_id)
        return self.export_manager.write(document, directory)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset_all(self) -> Dict[str, int]:
        """
        Remove every production, news article, achievement and tag.

        Runs as one transaction: owned children and tag memberships go with
        their parents, and the UserPreferences row is reset to its defaults
        (it is never deleted). Export templates are kept. Calling it on an
        empty store is a no-op.

        Returns:
            Rows deleted per model name

        Raises:
            ResetFailedError: If anything fails; the store is left unchanged
        """
        try:
            with self.session_scope() as session:
                deleted = self._clear_catalog(session)

        except (DatabaseError, SQLAlchemyError) as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "reset_all"})
            raise ResetFailedError(f"Reset failed: {e}") from e

        if self.logger:
            self.logger.log_operation("reset_all_completed", {"deleted": deleted})

        return deleted

    def _clear_catalog(self, session: Session) -> Dict[str, int]:
        """Delete every reset model and restore preference defaults."""
        deleted: Dict[str, int] = {}
        for model in RESET_MODELS:
            for detach in get_detach_rules(model):
                session.execute(delete(detach.table))
            for rule in get_dependents(model):
                outcome = session.execute(delete(rule.model))
                deleted[rule.model.__name__] = outcome.rowcount
            outcome = session.execute(delete(model))
            deleted[model.__name__] = outcome.rowcount

        self.preferences.reset_to_defaults()
        return deleted

    # -------------------------------------------------------------------------
    # Restore
    # -------------------------------------------------------------------------

    def restore(
        self, document: BackupDocument, clear_existing: bool = False
    ) -> RestoreResult:
        """
        Restore tags and productions from a JSON export.

        Runs as one transaction: if any record fails, nothing is restored
        and, with clear_existing, nothing is cleared either.

        Args:
            document: JSON export text, bytes or parsed dict
            clear_existing: Empty the catalog first, as reset_all() does

        Returns:
            RestoreResult

        Raises:
            RestoreError: If the document is unreadable or too new
            ValidationError: If a record is malformed
        """
        document = self.restore_manager.load(document)
        with self.session_scope() as session:
            if clear_existing:
                deleted = self._clear_catalog(session)
                if self.logger:
                    self.logger.log_operation("restore_cleared", {"deleted": deleted})
            return self.restore_manager.restore(session, document)

    def restore_from_file(
        self, path: Union[str, Path], clear_existing: bool = False
    ) -> RestoreResult:
        """
        Restore from a JSON export file (see restore()).

        Raises:
            RestoreError: If the file cannot be read
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RestoreError(f"Cannot read backup {path}: {e}") from e
        return self.restore(content, clear_existing=clear_existing)
