#!/usr/bin/env python3
"""
tag_manager.py
--------------------
Manages CustomTag entities and their memberships with productions.

Tag names are unique regardless of case: 'Classics' and 'classics' are the
same tag. Memberships live in the production_tags join table, which this
manager writes directly; Production.tags and CustomTag.productions are
read-only views refreshed after every membership change.

Key Features:
    - CRUD operations for tags
    - Attach/detach tags to/from productions (single and bulk)
    - Remove a tag from every production without deleting it
    - Get-or-create semantics for tag lookup

Usage:
    tag_mgr = TagManager(session, logger)

    classics = tag_mgr.create({"name": "Classics", "color_hex": "#FF0000"})
    tag_mgr.attach(face_off, classics)
    tag_mgr.attach_many([con_air, the_rock], "Classics")
    tag_mgr.detach(face_off, classics)
"""
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import delete, func, insert, select

from ncdb.core.exceptions import ValidationError
from ncdb.core.validators import DataValidator
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from ncdb.database.models import CustomTag, Production, production_tags, utcnow
from ncdb.database.models.entities import DEFAULT_TAG_COLOR
from .base_manager import BaseManager
from .store_manager import CascadeResult, StoreManager

TagRef = Union[CustomTag, str]
ProductionRef = Union[Production, str]

HEX_DIGITS = set("0123456789abcdefABCDEF")


def normalize_color(value: Any) -> Optional[str]:
    """
    Normalize a hex color to '#RRGGBB'.

    Raises:
        ValidationError: If the value is not a 3 or 6 digit hex color
    """
    text = DataValidator.normalize_string(value)
    if text is None:
        return None
    digits = text.lstrip("#")
    if len(digits) not in (3, 6) or not set(digits) <= HEX_DIGITS:
        raise ValidationError(f"Invalid hex color: '{value}'")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits.upper()}"


class TagManager(BaseManager):
    """
    Manages CustomTag table operations and production memberships.
    """

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("tag_exists")
    def exists(self, tag_name: str) -> bool:
        """
        Check if a tag exists without raising exceptions.

        Args:
            tag_name: The tag name to check (any case)
        """
        return self._exists(CustomTag, "name", tag_name)

    @handle_db_errors
    @log_database_operation("get_tag")
    def get(self, tag_name: str) -> Optional[CustomTag]:
        """
        Retrieve a tag by name (case-insensitive).

        Returns:
            CustomTag if found, None otherwise
        """
        return self._get_by_field(CustomTag, "name", tag_name)

    @handle_db_errors
    @log_database_operation("get_tag_by_id")
    def get_by_id(self, tag_id: str) -> Optional[CustomTag]:
        return self._get_by_id(CustomTag, tag_id)

    @handle_db_errors
    @log_database_operation("get_all_tags")
    def get_all(self, order_by: str = "name") -> List[CustomTag]:
        """
        Retrieve all tags.

        Args:
            order_by: "name" or "production_count"
                Note: "production_count" is a computed property, so ordering
                is done in Python, not SQL
        """
        tags = list(
            self.session.scalars(
                select(CustomTag).order_by(func.lower(CustomTag.name), CustomTag.id)
            ).all()
        )

        if order_by == "production_count":
            tags = sorted(tags, key=lambda t: t.production_count, reverse=True)

        return tags

    @handle_db_errors
    @log_database_operation("create_tag")
    @atomic_operation
    @validate_metadata(["name"])
    def create(self, metadata: Dict[str, Any]) -> CustomTag:
        """
        Create a new tag.

        Args:
            metadata: Dictionary with keys:
                - name: Tag name (required)
                - color_hex: Hex color (default '#FFD700')
                - icon: Symbol name (optional)

        Returns:
            Created CustomTag

        Raises:
            ValidationError: If name is missing or color is malformed
            DuplicateKeyError: If a tag with the same name exists (any case)
        """
        name = DataValidator.normalize_string(metadata["name"])
        self._assert_unique(CustomTag, "name", name)

        tag = CustomTag(
            name=name,
            color_hex=normalize_color(metadata.get("color_hex")) or DEFAULT_TAG_COLOR,
            icon=DataValidator.normalize_string(metadata.get("icon")),
        )
        self.session.add(tag)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Created tag: {name}", {"tag_id": tag.id})

        return tag

    @handle_db_errors
    @log_database_operation("get_or_create_tag")
    @atomic_operation
    def get_or_create(self, tag_name: str, color_hex: Optional[str] = None) -> CustomTag:
        """
        Get an existing tag or create it if it doesn't exist.

        Raises:
            ValidationError: If tag_name is empty after normalization
        """
        normalized = DataValidator.normalize_string(tag_name)
        if not normalized:
            raise ValidationError("Tag name cannot be empty")

        existing = self._get_by_field(CustomTag, "name", normalized)
        if existing is not None:
            return existing
        return self.create({"name": normalized, "color_hex": color_hex})

    @handle_db_errors
    @log_database_operation("update_tag")
    @atomic_operation
    def update(self, tag: TagRef, metadata: Dict[str, Any]) -> CustomTag:
        """
        Rename or recolor a tag.

        Raises:
            DuplicateKeyError: If the new name belongs to another tag
        """
        tag = self._resolve_tag(tag)

        if "name" in metadata:
            name = DataValidator.normalize_string(metadata["name"])
            if not name:
                raise ValidationError("Tag name cannot be empty")
            self._assert_unique(CustomTag, "name", name, exclude_id=tag.id)
            tag.name = name
        if "color_hex" in metadata:
            tag.color_hex = normalize_color(metadata["color_hex"]) or DEFAULT_TAG_COLOR
        if "icon" in metadata:
            tag.icon = DataValidator.normalize_string(metadata["icon"])

        self.session.flush()
        return tag

    @handle_db_errors
    @log_database_operation("delete_tag")
    @atomic_operation
    def delete(self, tag: TagRef) -> CascadeResult:
        """
        Delete a tag.

        Notes:
            - Memberships are removed; tagged productions are kept
        """
        tag = self._resolve_tag(tag)

        if self.logger:
            self.logger.log_debug(
                f"Deleting tag: {tag.name}",
                {"tag_id": tag.id, "production_count": tag.production_count},
            )

        return StoreManager(self.session, self.logger).delete(CustomTag, tag.id)

    # -------------------------------------------------------------------------
    # Membership Management
    # -------------------------------------------------------------------------

    def _resolve_tag(self, tag: TagRef) -> CustomTag:
        """Resolve a tag instance, id or name."""
        if isinstance(tag, str):
            by_id = self._get_by_id(CustomTag, tag)
            if by_id is not None:
                return by_id
            by_name = self._get_by_field(CustomTag, "name", tag)
            if by_name is not None:
                return by_name
        return self._resolve_object(tag, CustomTag)

    def _member_ids(self, tag: CustomTag) -> set:
        return set(
            self.session.scalars(
                select(production_tags.c.production_id).where(
                    production_tags.c.tag_id == tag.id
                )
            ).all()
        )

    @handle_db_errors
    @log_database_operation("attach_tag")
    @atomic_operation
    def attach(self, production: ProductionRef, tag: TagRef) -> bool:
        """
        Attach a tag to a production.

        Returns:
            True if a membership was added, False if it already existed
        """
        return self.attach_many([production], tag) == 1

    @handle_db_errors
    @log_database_operation("attach_tag_many")
    @atomic_operation
    def attach_many(self, productions: List[ProductionRef], tag: TagRef) -> int:
        """
        Attach a tag to several productions.

        Returns:
            Number of memberships added
        """
        tag = self._resolve_tag(tag)
        existing = self._member_ids(tag)

        added = []
        for item in productions:
            production = self._resolve_object(item, Production)
            if production.id in existing:
                continue
            existing.add(production.id)
            added.append(production)

        if added:
            self.session.flush()
            self.session.execute(
                insert(production_tags),
                [
                    {"production_id": p.id, "tag_id": tag.id, "tagged_at": utcnow()}
                    for p in added
                ],
            )
            for production in added:
                self._touch(production)
            self.session.flush()
            self._expire_tag_views()

        return len(added)

    @handle_db_errors
    @log_database_operation("detach_tag")
    @atomic_operation
    def detach(self, production: ProductionRef, tag: TagRef) -> bool:
        """
        Remove a tag from a production.

        Returns:
            True if a membership was removed
        """
        return self.detach_many([production], tag) == 1

    @handle_db_errors
    @log_database_operation("detach_tag_many")
    @atomic_operation
    def detach_many(self, productions: List[ProductionRef], tag: TagRef) -> int:
        """
        Remove a tag from several productions.

        Returns:
            Number of memberships removed
        """
        tag = self._resolve_tag(tag)
        resolved = [self._resolve_object(item, Production) for item in productions]
        members = self._member_ids(tag)
        targets = [p for p in resolved if p.id in members]

        if targets:
            self.session.execute(
                delete(production_tags).where(
                    production_tags.c.tag_id == tag.id,
                    production_tags.c.production_id.in_([p.id for p in targets]),
                )
            )
            for production in targets:
                self._touch(production)
            self.session.flush()
            self._expire_tag_views()

        return len(targets)

    @handle_db_errors
    @log_database_operation("remove_tag_from_all")
    @atomic_operation
    def remove_from_all(self, tag: TagRef) -> int:
        """
        Remove a tag from every production while keeping the tag.

        Returns:
            Number of memberships removed
        """
        tag = self._resolve_tag(tag)
        member_ids = self._member_ids(tag)
        if not member_ids:
            return 0

        members = [self.session.get(Production, pid) for pid in sorted(member_ids)]
        return self.detach_many(members, tag)

    @handle_db_errors
    @log_database_operation("get_tagged_productions")
    def get_productions(self, tag: TagRef) -> List[Production]:
        """Productions carrying a tag, ordered by title."""
        return list(self._resolve_tag(tag).productions)
