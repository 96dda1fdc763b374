#!/usr/bin/env python3
"""
NCDB Database Package
---------------------
Catalog persistence with a modular manager architecture.

This package provides the data core for the NCDB catalog, with specialized
modules for:
- Core database operations and transaction scopes
- Entity managers (productions, rankings, tags, articles, achievements)
- Cascade deletion driven by an ownership table
- Aggregate statistics
- Snapshot-then-render export
- Restore from a JSON export
"""

from .manager import NCDB
from ncdb.core.exceptions import (
    ConstraintViolationError,
    DatabaseError,
    DuplicateKeyError,
    ExportError,
    InvalidPositionError,
    NotFoundError,
    ResetFailedError,
    RestoreError,
    TransactionFailedError,
    ValidationError,
)
from .export_manager import ExportDocument, ExportManager, ExportOptions
from .query_analytics import ProductionStats, QueryAnalytics
from .restore_manager import RestoreManager, RestoreResult
from .managers import CascadeResult, RankingStats
from .decorators import (
    atomic_operation,
    log_database_operation,
    handle_db_errors,
    validate_metadata,
)

__version__ = "1.0.0"

__all__ = [
    # Main manager
    "NCDB",
    # Exceptions
    "ConstraintViolationError",
    "DatabaseError",
    "DuplicateKeyError",
    "ExportError",
    "InvalidPositionError",
    "NotFoundError",
    "ResetFailedError",
    "RestoreError",
    "TransactionFailedError",
    "ValidationError",
    # Core modules
    "ExportDocument",
    "ExportManager",
    "ExportOptions",
    "ProductionStats",
    "QueryAnalytics",
    "RestoreManager",
    # Results
    "CascadeResult",
    "RankingStats",
    "RestoreResult",
    # Decorators
    "atomic_operation",
    "log_database_operation",
    "handle_db_errors",
    "validate_metadata",
]
