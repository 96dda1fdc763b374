"""
Restore Commands
----------------

Restore the catalog from a JSON export.

Commands:
    - import: Read tags and productions back from an export file
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError, ValidationError
from . import get_db


@click.command("import")
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--clear", is_flag=True, help="Delete all catalog data before restoring")
@click.option("--yes", is_flag=True, help="Skip the confirmation for --clear")
@click.pass_context
def import_backup(ctx, backup_file, clear, yes):
    """Restore tags and productions from a JSON export."""
    if clear and not yes:
        click.confirm(
            "⚠️  --clear will DELETE all productions, tags, news and achievements first! "
            "Are you sure?",
            abort=True,
        )

    try:
        db = get_db(ctx)

        click.echo(f"📥 Restoring from {backup_file}...")
        result = db.restore_from_file(backup_file, clear_existing=clear)

        click.echo(f"  • Productions: {result.imported_productions}")
        click.echo(f"  • Tags: {result.imported_tags}")
        click.echo(f"  • Watch events: {result.imported_watch_events}")
        if result.skipped:
            click.echo(f"  • Skipped (already in catalog): {result.skipped}")

        click.echo("✅ Restore complete!")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "import", additional_context={"backup_file": backup_file})
