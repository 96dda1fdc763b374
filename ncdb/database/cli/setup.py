"""
Setup & Reset Commands
----------------------

Database initialization and reset commands.

Commands:
    - init: Create the schema and the preferences row
    - reset: Remove all catalog data (dangerous!)
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.option("--seed-achievements", is_flag=True, help="Also seed the achievement catalog")
@click.pass_context
def init(ctx, seed_achievements):
    """Initialize the catalog database."""
    try:
        click.echo("🗄️  Initializing database schema...")
        db = get_db(ctx)

        if seed_achievements:
            with db.session_scope():
                inserted = db.achievements.seed()
            click.echo(f"🏆 Seeded {inserted} achievements")

        click.echo(f"✅ Database ready: {db.db_path}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")


@click.command()
@click.confirmation_option(
    prompt="⚠️  This will DELETE all productions, tags, news and achievements! Are you sure?"
)
@click.pass_context
def reset(ctx):
    """Reset the catalog (DANGEROUS - deletes all data!)."""
    try:
        db = get_db(ctx)

        click.echo("🗑️  Resetting catalog...")
        deleted = db.reset_all()

        for model, count in deleted.items():
            if count > 0:
                click.echo(f"  • {model}: {count} deleted")

        click.echo("✅ Catalog reset complete! Preferences restored to defaults.")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "reset")
