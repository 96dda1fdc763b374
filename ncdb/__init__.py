"""
NCDB Package
============

A local catalog for tracking, rating and ranking a single actor's filmography.

This package contains the data core behind the catalog: the entity graph,
its invariants, and the operations performed on it. Presentation, remote
metadata fetching and news scraping are external collaborators that feed
data in through the managers exposed here.

Main Components:
    - core: Logging, exceptions, validation, paths
    - database: SQLAlchemy ORM models, entity managers, ranking engine,
      statistics, export and reset operations

Primary Interfaces:
    - ncdb.database.cli: Catalog management CLI
    - ncdb.database.manager.NCDB: Main database interface

Example Usage:
    >>> from ncdb.database import NCDB
    >>> from ncdb.core.paths import DB_PATH, LOG_DIR
    >>> db = NCDB(db_path=DB_PATH, log_dir=LOG_DIR)
    >>> with db.session_scope() as session:
    ...     production = db.productions.create({"title": "Face/Off", "release_year": 1997})
"""
