#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the NCDB project.

This module defines the hierarchy of exceptions raised by the catalog
store. Every public store operation either succeeds or raises one of
these; no operation reports partial success.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all database-related errors
    │   ├── NotFoundError - Identifier has no matching row
    │   ├── DuplicateKeyError - Uniqueness constraint violated
    │   ├── InvalidPositionError - Ranking position out of bounds
    │   ├── ConstraintViolationError - Field value breaks an invariant
    │   ├── TransactionFailedError - Atomic unit could not commit
    │   │   └── ResetFailedError - Full reset could not commit
    │   ├── ExportError - Document export failures
    │   └── RestoreError - Backup document cannot be restored
    ├── TemporalFileError - Staging file failures
    └── ValidationError - Malformed or missing input data

Usage:
    from ncdb.core.exceptions import DuplicateKeyError, NotFoundError

    try:
        db.tags.create({"name": "Classics"})
    except DuplicateKeyError as e:
        logger.error(f"Tag already exists: {e}")
"""


class DatabaseError(Exception):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    Catch this to handle any store error, or catch specific subclasses
    for more granular error handling.

    Examples:
        >>> raise DatabaseError("Connection to database failed")

    See Also:
        NotFoundError, DuplicateKeyError, TransactionFailedError
    """

    pass


class NotFoundError(DatabaseError):
    """
    Exception for lookups that match no row.

    Examples:
        >>> raise NotFoundError("Production not found with id: 1b4e...")
    """

    pass


class DuplicateKeyError(DatabaseError):
    """
    Exception for uniqueness violations.

    Raised when a create or update would produce a second row with the
    same value in a unique field:
    - CustomTag.name (case-insensitive)
    - NewsArticle.url
    - Production.external_id
    - Achievement.id
    - UserPreferences (single row)

    Examples:
        >>> raise DuplicateKeyError("Tag already exists: Classics")
    """

    pass


class InvalidPositionError(DatabaseError):
    """
    Exception for ranking positions outside the valid range.

    Examples:
        >>> raise InvalidPositionError("Position 5 outside 1..3")
    """

    pass


class ConstraintViolationError(DatabaseError):
    """
    Exception for values that break an entity invariant.

    Raised for:
    - user_rating outside [0, 5]
    - external rating outside [0, max_rating] or max_rating <= 0
    - negative billing order
    - relevance score outside [0, 1]
    - non-positive achievement requirement
    - a ranking sequence that is not exactly 1..N

    Examples:
        >>> raise ConstraintViolationError("user_rating must be between 0 and 5")
    """

    pass


class TransactionFailedError(DatabaseError):
    """
    Exception for atomic units that could not commit.

    The store is left unchanged when this is raised.

    Examples:
        >>> raise TransactionFailedError("Timed out waiting for write lock")
    """

    pass


class ResetFailedError(TransactionFailedError):
    """
    Exception for a full reset that could not commit.

    The store is left exactly as it was before the reset started.
    """

    pass


class ExportError(DatabaseError):
    """
    Exception for data export operation failures.

    Raised when exporting catalog data fails:
    - Unsupported export format
    - Template rendering errors
    - File writing errors

    Examples:
        >>> raise ExportError("Unsupported export format: xml")
    """

    pass


class RestoreError(DatabaseError):
    """
    Exception for a backup document that cannot be restored.

    Raised before anything is written when the document is not valid
    JSON, lacks a productions list, or was written by a newer format
    version.

    Examples:
        >>> raise RestoreError("Unsupported backup version: 3")
    """

    pass


class TemporalFileError(Exception):
    """
    Exception for staging file failures.

    Raised when a temporary export file cannot be created or moved into
    place.
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Missing required fields
    - Type mismatches
    - Unknown enumeration values

    Examples:
        >>> raise ValidationError("Required field 'title' missing or empty")
        >>> raise ValidationError("Unknown rating source: 'Netflix'")
    """

    pass
