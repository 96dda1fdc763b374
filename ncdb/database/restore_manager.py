#!/usr/bin/env python3
"""
restore_manager.py
------------------
Restore the NCDB catalog from a JSON export.

The JSON export doubles as the backup format: it carries a format version
and the full production graph with children and tag names inlined.
restore() reads it back:

    1. Tags are created unless a tag with the same name (any case) exists
    2. Productions are created with their cast, external ratings, watch
       events and tag memberships; a production whose external id is
       already in the catalog is skipped
    3. Productions that were ranked are appended to the ranking in their
       exported order, so the ranking stays dense whatever was ranked
       before the restore

Every write goes through the entity managers on the caller's session.
NCDB.restore() runs the whole restore in one session_scope, so a failed
restore leaves the store as it was.

Usage:
    with db.session_scope() as session:
        result = RestoreManager(db.logger).restore(session, path.read_text())

    print(f"{result.imported_productions} restored, {result.skipped} skipped")
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from ncdb.core.exceptions import RestoreError
from ncdb.core.logging_manager import NCDBLogger, safe_logger
from ncdb.core.validators import DataValidator

from .decorators import handle_db_errors, log_database_operation
from .export_manager import EXPORT_FORMAT_VERSION
from .managers import ProductionManager, RankingManager, TagManager
from .models import Production

# Record keys handed to the entity managers; derived values such as
# watch_count, poster_url or formatted_runtime are recomputed
PRODUCTION_KEYS = (
    "title",
    "release_year",
    "external_id",
    "production_type",
    "genres",
    "poster_path",
    "backdrop_path",
    "plot",
    "director",
    "runtime",
    "budget",
    "box_office",
    "user_rating",
    "review",
    "is_favorite",
)
WATCH_STATE_KEYS = ("watched", "date_watched")
TAG_KEYS = ("name", "color_hex", "icon")
CAST_KEYS = ("name", "character", "billing_order", "profile_path")
RATING_KEYS = ("source", "rating", "max_rating", "review_count", "url")
WATCH_EVENT_KEYS = ("watched_date", "location", "notes", "mood")

BackupDocument = Union[str, bytes, Dict[str, Any]]


def _pick(record: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: record[key] for key in keys if record.get(key) is not None}


@dataclass
class RestoreResult:
    """
    Outcome of a restore.

    Attributes:
        imported_productions: Productions created
        imported_tags: Tags created
        imported_watch_events: Watch events recreated
        skipped: Tags and productions already in the catalog
        exported_at: Timestamp of the restored export, as written
    """
    imported_productions: int = 0
    imported_tags: int = 0
    imported_watch_events: int = 0
    skipped: int = 0
    exported_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported_productions": self.imported_productions,
            "imported_tags": self.imported_tags,
            "imported_watch_events": self.imported_watch_events,
            "skipped": self.skipped,
            "exported_at": self.exported_at,
        }


class RestoreManager:
    """
    Reads a JSON export back into the catalog.
    """

    def __init__(self, logger: Optional[NCDBLogger] = None) -> None:
        self.logger = logger

    @staticmethod
    def load(document: BackupDocument) -> Dict[str, Any]:
        """
        Parse and check a backup document.

        Args:
            document: JSON text, bytes or an already parsed dict

        Returns:
            The parsed document

        Raises:
            RestoreError: If the document is not a JSON object, has no
                productions list, or has a missing or newer version
        """
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except ValueError as e:
                raise RestoreError(f"Backup is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise RestoreError("Backup must be a JSON object")

        version = document.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise RestoreError("Backup has no format version")
        if version > EXPORT_FORMAT_VERSION:
            raise RestoreError(
                f"Unsupported backup version: {version} "
                f"(this build reads up to {EXPORT_FORMAT_VERSION})"
            )

        for key in ("productions", "tags"):
            if not isinstance(document.get(key, []), list):
                raise RestoreError(f"Backup field '{key}' must be a list")
        if "productions" not in document:
            raise RestoreError("Backup has no productions")

        return document

    @handle_db_errors
    @log_database_operation("restore_backup")
    def restore(self, session: Session, document: BackupDocument) -> RestoreResult:
        """
        Recreate the tags and productions of a backup.

        Args:
            session: Session of an open session_scope
            document: JSON export (text, bytes or parsed dict)

        Returns:
            RestoreResult with imported and skipped counts

        Raises:
            RestoreError: If the document cannot be read (see load())
            ValidationError: If a record is malformed
            ConstraintViolationError: If a record value is out of range
        """
        data = self.load(document)
        result = RestoreResult(exported_at=data.get("exported_at"))

        tags = TagManager(session, self.logger)
        productions = ProductionManager(session, self.logger)
        rankings = RankingManager(session, self.logger)

        for record in data.get("tags", []):
            if tags.exists(record.get("name")):
                result.skipped += 1
                continue
            tags.create(_pick(record, TAG_KEYS))
            result.imported_tags += 1

        ranked: List[Tuple[int, Production]] = []
        for record in data["productions"]:
            external_id = DataValidator.normalize_int(record.get("external_id"))
            if external_id is not None and productions.exists(external_id=external_id):
                result.skipped += 1
                continue

            production = self._restore_production(productions, tags, record, result)
            position = DataValidator.normalize_int(record.get("ranking_position"))
            if position is not None:
                ranked.append((position, production))

        for _, production in sorted(ranked, key=lambda item: item[0]):
            rankings.insert_at_rank(production)

        safe_logger(self.logger).log_operation("restore_completed", result.to_dict())
        return result

    def _restore_production(
        self,
        productions: ProductionManager,
        tags: TagManager,
        record: Dict[str, Any],
        result: RestoreResult,
    ) -> Production:
        fields = _pick(record, PRODUCTION_KEYS)
        fields["cast"] = [_pick(member, CAST_KEYS) for member in record.get("cast") or []]
        fields["external_ratings"] = [
            _pick(rating, RATING_KEYS) for rating in record.get("external_ratings") or []
        ]
        production = productions.create(fields)
        result.imported_productions += 1

        for event in record.get("watch_events") or []:
            productions.add_watch_event(production, _pick(event, WATCH_EVENT_KEYS))
            result.imported_watch_events += 1

        # Watch events mark a production watched; the exported flag wins
        watch_state = {key: record[key] for key in WATCH_STATE_KEYS if key in record}
        if watch_state:
            productions.update(production, watch_state)

        for name in record.get("tags") or []:
            tags.attach(production, tags.get_or_create(name))

        return production
