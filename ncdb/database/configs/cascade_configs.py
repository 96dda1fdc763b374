#!/usr/bin/env python3
"""
cascade_configs.py
------------------

Ownership table driving cascade deletion and parent bookkeeping.

The store never relies on ORM delete cascades. Deleting a parent runs, in
one transaction:

    1. DELETE of every dependent model listed in CASCADE_RULES
    2. DELETE of the parent's rows in every join table listed in DETACH_RULES
    3. DELETE of the parent row itself

PARENT_LINKS tells the store which parent's ``last_updated`` to refresh when
a child row is created, updated or deleted.
"""
from dataclasses import dataclass
from typing import Dict, List, Set, Type

from sqlalchemy import Table

from ..models import (
    Achievement,
    CastMember,
    CustomTag,
    ExternalRating,
    NewsArticle,
    Production,
    WatchEvent,
    production_tags,
)


@dataclass(frozen=True)
class DependentRule:
    """
    A model owned by a parent through a foreign key.

    Attributes:
        model: Dependent ORM model
        foreign_key: Column on the dependent pointing at the parent id
    """
    model: Type
    foreign_key: str


@dataclass(frozen=True)
class DetachRule:
    """
    A join table whose rows are removed with the parent.

    Attributes:
        table: Association table
        column: Column holding the parent id
    """
    table: Table
    column: str


@dataclass(frozen=True)
class ParentLink:
    """
    How a child row points back at its owning Production.

    Attributes:
        foreign_key: Column on the child holding the production id
        collection: Relationship name on Production listing the children
    """
    foreign_key: str
    collection: str


# ========================================
# Ownership Rules
# ========================================

CASCADE_RULES: Dict[Type, List[DependentRule]] = {
    Production: [
        DependentRule(CastMember, "production_id"),
        DependentRule(WatchEvent, "production_id"),
        DependentRule(ExternalRating, "production_id"),
    ],
}

DETACH_RULES: Dict[Type, List[DetachRule]] = {
    Production: [DetachRule(production_tags, "production_id")],
    CustomTag: [DetachRule(production_tags, "tag_id")],
}

PARENT_LINKS: Dict[Type, ParentLink] = {
    CastMember: ParentLink("production_id", "cast_members"),
    WatchEvent: ParentLink("production_id", "watch_events"),
    ExternalRating: ParentLink("production_id", "external_ratings"),
}

# Fields with a uniqueness constraint, checked before insert
UNIQUE_FIELDS: Dict[Type, List[str]] = {
    Production: ["external_id"],
    CustomTag: ["name"],
    NewsArticle: ["url"],
    Achievement: ["id"],
}

# Unique fields compared case-insensitively
CASE_INSENSITIVE_FIELDS: Set[str] = {"CustomTag.name"}


def get_dependents(model: Type) -> List[DependentRule]:
    """Dependent models deleted together with ``model``."""
    return CASCADE_RULES.get(model, [])


def get_detach_rules(model: Type) -> List[DetachRule]:
    """Join tables cleared when ``model`` is deleted."""
    return DETACH_RULES.get(model, [])


def is_case_insensitive(model: Type, field: str) -> bool:
    """Check if a unique field is compared case-insensitively."""
    return f"{model.__name__}.{field}" in CASE_INSENSITIVE_FIELDS
