#!/usr/bin/env python3
"""
export_manager.py
-----------------
Document export for the NCDB catalog.

Exports run in two phases:

    1. **Snapshot**: every exported entity is read into plain dicts (see
       configs/json_export_configs.py). NCDB.export() takes the snapshot
       while holding the write lock, so it is a consistent point-in-time
       view.
    2. **Render**: the snapshot is turned into a JSON, CSV or HTML document
       without touching the database or any lock.

Export Formats:
    1. **JSON**: full graph, children and tags inlined, plus tags, news
       articles, achievements and aggregate statistics
    2. **CSV**: one row per production; genres and tags joined with '; '
    3. **HTML**: Jinja2 layout from configs/html_export_configs.py or an
       ExportTemplate's html_template / css_styles

Output is deterministic: records are sorted by stable keys and JSON keys
are sorted, so two exports of the same data differ only in exported_at.

Usage:
    exporter = ExportManager(logger=db.logger)

    with db.session_scope() as session:
        snapshot = exporter.snapshot(session)

    document = exporter.render(snapshot, "json", ExportOptions())
    path = exporter.write(document, EXPORT_DIR)
"""
import csv
import io
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import DictLoader, Environment, TemplateError
from sqlalchemy import select
from sqlalchemy.orm import Session

from ncdb.core.exceptions import ExportError, TemporalFileError
from ncdb.core.logging_manager import NCDBLogger
from ncdb.core.temporal_files import TemporalFileManager
from ncdb.core.validators import DataValidator

from .configs.html_export_configs import (
    DEFAULT_CSS,
    DEFAULT_TEMPLATE,
    PLACEHOLDERS,
    TEMPLATE_NAME,
)
from .configs.json_export_configs import EXPORT_CONFIGS
from .decorators import handle_db_errors, log_database_operation
from .models import ExportTemplate, ExportType, utcnow
from .query_analytics import ProductionStats

EXPORT_FORMAT_VERSION = 1

CSV_LIST_SEPARATOR = "; "

# JSON statistics are computed before options drop any field
STATISTICS_SCOPE = "catalog"

CSV_COLUMNS = [
    "id",
    "title",
    "release_year",
    "production_type",
    "external_id",
    "genres",
    "tags",
    "director",
    "runtime",
    "watched",
    "date_watched",
    "watch_count",
    "is_favorite",
    "ranking_position",
    "user_rating",
    "review",
    "poster_url",
]

# Production fields dropped by each disabled option
IMAGE_FIELDS = ("poster_path", "backdrop_path", "poster_url")
RATING_FIELDS = ("user_rating", "external_ratings")
REVIEW_FIELDS = ("review",)


@dataclass
class ExportOptions:
    """
    What an export includes.

    Attributes:
        include_images: Poster paths and URLs
        include_ratings: User rating and external ratings
        include_reviews: Review text
        html_template: Jinja2 source replacing the default HTML layout
        css_styles: Stylesheet replacing the default CSS
    """
    include_images: bool = True
    include_ratings: bool = True
    include_reviews: bool = True
    html_template: Optional[str] = None
    css_styles: Optional[str] = None

    @classmethod
    def from_template(cls, template: ExportTemplate) -> "ExportOptions":
        return cls(
            include_images=template.include_images,
            include_ratings=template.include_ratings,
            include_reviews=template.include_reviews,
            html_template=template.html_template,
            css_styles=template.css_styles,
        )

    def as_context(self) -> Dict[str, bool]:
        return {
            "include_images": self.include_images,
            "include_ratings": self.include_ratings,
            "include_reviews": self.include_reviews,
        }


@dataclass
class ExportSnapshot:
    """
    Point-in-time plain-data copy of the catalog.

    Attributes:
        records: Serialized records per export key (productions, tags, ...)
        stats: Aggregate statistics over the snapshot's productions
        exported_at: When the snapshot was taken (UTC)
    """
    records: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    stats: ProductionStats = field(default_factory=ProductionStats)
    exported_at: datetime = field(default_factory=utcnow)

    @property
    def productions(self) -> List[Dict[str, Any]]:
        return self.records.get("productions", [])


@dataclass
class ExportDocument:
    """
    A rendered export.

    Attributes:
        content: Document text
        export_type: Format of the document
        exported_at: Snapshot timestamp (UTC)
    """
    content: str
    export_type: ExportType
    exported_at: datetime

    @property
    def mime_type(self) -> str:
        return self.export_type.mime_type

    @property
    def file_extension(self) -> str:
        return self.export_type.file_extension

    @property
    def filename(self) -> str:
        return f"ncdb_export_{self.exported_at.strftime('%Y%m%d_%H%M%S')}.{self.file_extension}"


# ----- Template filters -----
def placeholder_filter(value: Any, text: str) -> Any:
    """Replace a missing value (None, empty string or list) with ``text``."""
    if value is None or value == "" or value == []:
        return text
    return value


def stars_filter(value: Optional[float]) -> Optional[str]:
    """Format a 0-5 user rating as '4.5/5'."""
    if value is None:
        return None
    return f"{value:.1f}/5"


class ExportManager:
    """
    Builds snapshots and renders them to documents.
    """

    def __init__(self, logger: Optional[NCDBLogger] = None) -> None:
        """
        Initialize export manager.

        Args:
            logger: Optional logger for export operations
        """
        self.logger = logger

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("export_snapshot")
    def snapshot(self, session: Session) -> ExportSnapshot:
        """
        Read every exported entity into plain records.

        Args:
            session: SQLAlchemy session

        Returns:
            ExportSnapshot with sorted records and statistics
        """
        records = {}
        for config in EXPORT_CONFIGS:
            entities = session.scalars(select(config.model)).all()
            records[config.json_key] = sorted(
                (config.serializer(entity) for entity in entities),
                key=config.sort_key,
            )

        snapshot = ExportSnapshot(
            records=records,
            stats=ProductionStats.from_records(records.get("productions", [])),
        )

        if self.logger:
            self.logger.log_debug(
                "Export snapshot taken",
                {key: len(items) for key, items in records.items()},
            )

        return snapshot

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    @staticmethod
    def _apply_options(
        production: Dict[str, Any], options: ExportOptions
    ) -> Dict[str, Any]:
        """Copy of a production record without the fields options exclude."""
        excluded = set(ExportManager._excluded_columns(options))
        return {key: value for key, value in production.items() if key not in excluded}

    def render(
        self,
        snapshot: ExportSnapshot,
        export_type: Union[ExportType, str],
        options: Optional[ExportOptions] = None,
    ) -> ExportDocument:
        """
        Render a snapshot to a document.

        Args:
            snapshot: Output of snapshot()
            export_type: ExportType or its value ('json', 'csv', 'html')
            options: Inclusion options (defaults include everything)

        Returns:
            ExportDocument

        Raises:
            ValidationError: If export_type is unknown
            ExportError: If rendering fails
        """
        export_type = DataValidator.normalize_enum(ExportType, export_type)
        options = options or ExportOptions()

        renderers = {
            ExportType.JSON: self.render_json,
            ExportType.CSV: self.render_csv,
            ExportType.HTML: self.render_html,
        }

        try:
            content = renderers[export_type](snapshot, options)
        except ExportError:
            raise
        except (TemplateError, TypeError, ValueError) as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "render_export", "format": export_type.value})
            raise ExportError(f"Failed to render {export_type.value} export: {e}") from e

        if self.logger:
            self.logger.log_operation(
                "export_rendered",
                {
                    "format": export_type.value,
                    "productions": len(snapshot.productions),
                    "bytes": len(content.encode("utf-8")),
                },
            )

        return ExportDocument(
            content=content,
            export_type=export_type,
            exported_at=snapshot.exported_at,
        )

    def render_json(self, snapshot: ExportSnapshot, options: ExportOptions) -> str:
        """
        Full graph as indented JSON with sorted keys.

        ``statistics`` always describe the whole catalog, including fields
        the options leave out: with include_ratings off, rated and
        average_rating still count user ratings that are not in the
        document. ``options.statistics_scope`` records this.
        """
        document = {
            "version": EXPORT_FORMAT_VERSION,
            "exported_at": snapshot.exported_at.isoformat(),
            "statistics": snapshot.stats.to_dict(),
            "options": {**options.as_context(), "statistics_scope": STATISTICS_SCOPE},
        }
        for key, items in snapshot.records.items():
            if key == "productions":
                items = [self._apply_options(p, options) for p in items]
            document[key] = items

        return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    def render_csv(self, snapshot: ExportSnapshot, options: ExportOptions) -> str:
        """One row per production with list fields joined by '; '."""
        excluded = set(self._excluded_columns(options))
        fieldnames = [column for column in CSV_COLUMNS if column not in excluded]

        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer,
            fieldnames=fieldnames,
            extrasaction="ignore",
            lineterminator="\n",
        )
        writer.writeheader()

        for production in snapshot.productions:
            row = dict(production)
            row["genres"] = CSV_LIST_SEPARATOR.join(production.get("genres") or [])
            row["tags"] = CSV_LIST_SEPARATOR.join(production.get("tags") or [])
            writer.writerow(row)

        return buffer.getvalue()

    @staticmethod
    def _excluded_columns(options: ExportOptions) -> List[str]:
        excluded = []
        if not options.include_images:
            excluded.extend(IMAGE_FIELDS)
        if not options.include_ratings:
            excluded.extend(RATING_FIELDS)
        if not options.include_reviews:
            excluded.extend(REVIEW_FIELDS)
        return excluded

    def _environment(self, template_source: str) -> Environment:
        env = Environment(
            loader=DictLoader({TEMPLATE_NAME: template_source}),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["placeholder"] = placeholder_filter
        env.filters["stars"] = stars_filter
        return env

    def render_html(self, snapshot: ExportSnapshot, options: ExportOptions) -> str:
        """Render the default or a custom Jinja2 layout."""
        env = self._environment(options.html_template or DEFAULT_TEMPLATE)
        template = env.get_template(TEMPLATE_NAME)

        return template.render(
            productions=[self._apply_options(p, options) for p in snapshot.productions],
            stats=snapshot.stats.to_dict(),
            exported_at=snapshot.exported_at.isoformat(),
            options=options.as_context(),
            css=options.css_styles or DEFAULT_CSS,
            placeholders=PLACEHOLDERS,
        )

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def write(self, document: ExportDocument, directory: Union[str, Path]) -> Path:
        """
        Store a document as ``<directory>/ncdb_export_<timestamp>.<ext>``.

        The file is staged next to its destination and moved into place
        once fully written.

        Raises:
            ExportError: If the file cannot be written
        """
        directory = Path(directory)
        destination = directory / document.filename

        try:
            with TemporalFileManager(base_dir=directory) as temp_manager:
                staging = temp_manager.create_temp_file(suffix=f".{document.file_extension}")
                staging.write_text(document.content, encoding="utf-8")
                temp_manager.commit(staging, destination)
        except (OSError, TemporalFileError) as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "write_export", "path": str(destination)})
            raise ExportError(f"Failed to write export to {destination}: {e}") from e

        if self.logger:
            self.logger.log_operation(
                "export_written",
                {"path": str(destination), "format": document.export_type.value},
            )

        return destination
