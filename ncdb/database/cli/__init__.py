#!/usr/bin/env python3
"""
NCDB Catalog Management CLI
---------------------------

Modular command-line interface for the catalog database.

This module provides the main CLI group and shared context setup
for all catalog commands.

Command Structure:
    - Setup & Reset (init, reset)
    - Statistics (stats)
    - Export (export json|csv|html)
    - Restore (import)
    - Query & Browse (query list|show|delete)
    - Ranking (rank list|add|remove|move)
    - Tags (tags list|create|delete|attach|detach)
    - Achievements (achievements seed|evaluate|list)

Usage:
    # Get general help
    ncdb --help

    # Get help for a specific command group
    ncdb rank --help

    # Get help for a specific command
    ncdb rank move --help
"""
from pathlib import Path
from typing import Optional

import click

from ncdb.core.exceptions import NotFoundError
from ncdb.core.paths import DB_PATH, LOG_DIR
from ncdb.database import NCDB
from ncdb.database.models import Production


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, log_dir, verbose):
    """NCDB Catalog Management CLI"""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbose"] = verbose


def get_db(ctx) -> NCDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = NCDB(
            db_path=ctx.obj["db_path"],
            log_dir=ctx.obj["log_dir"],
        )
        ctx.obj["logger"] = ctx.obj["db"].logger
        ctx.find_root().call_on_close(ctx.obj["db"].close)
    return ctx.obj["db"]


def resolve_production(db: NCDB, reference: str) -> Production:
    """
    Find a production by id or, for an all-digit reference, by external id.

    Must be called inside a scope.

    Raises:
        NotFoundError: If nothing matches
    """
    production: Optional[Production]
    if reference.isdigit():
        production = db.productions.get(external_id=int(reference))
    else:
        production = db.productions.get(production_id=reference)
    if production is None:
        raise NotFoundError(f"Production not found: {reference}")
    return production


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init, reset  # noqa: E402
from .maintenance import stats  # noqa: E402
from .export import export  # noqa: E402
from .restore import import_backup  # noqa: E402
from .query import query  # noqa: E402
from .rank import rank  # noqa: E402
from .tags import tags  # noqa: E402
from .achievements import achievements  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(reset)
cli.add_command(stats)
cli.add_command(import_backup)

# Register command groups
cli.add_command(export)
cli.add_command(query)
cli.add_command(rank)
cli.add_command(tags)
cli.add_command(achievements)


if __name__ == "__main__":
    cli(obj={})
