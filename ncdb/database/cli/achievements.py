"""
Achievement Commands
--------------------

Achievement catalog and progress.

Commands:
    - seed: Insert the predefined achievements
    - evaluate: Apply current catalog metrics
    - list: Show achievements and progress
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError, ValidationError
from . import get_db


@click.group()
@click.pass_context
def achievements(ctx: click.Context) -> None:
    """Manage achievements."""
    pass


@achievements.command("seed")
@click.pass_context
def seed(ctx):
    """Insert the predefined achievements (idempotent)."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            inserted = db.achievements.seed()

        click.echo(f"🏆 Seeded {inserted} achievements")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "achievements_seed")


@achievements.command("evaluate")
@click.pass_context
def evaluate(ctx):
    """Update progress from catalog metrics."""
    try:
        db = get_db(ctx)
        unlocked = db.evaluate_achievements()

        if not unlocked:
            click.echo("No new achievements")
            return

        click.echo(f"\n🎉 Unlocked {len(unlocked)} achievements:\n")
        for achievement in unlocked:
            click.echo(f"  • {achievement.title}: {achievement.description}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "achievements_evaluate")


@achievements.command("list")
@click.option("--category", default=None, help="Only one category")
@click.option("--unlocked/--locked", default=None, help="Filter by unlock state")
@click.pass_context
def list_achievements(ctx, category, unlocked):
    """Show achievements and progress."""
    try:
        db = get_db(ctx)

        with db.read_scope():
            items = db.achievements.get_all(category=category, unlocked=unlocked)

            if not items:
                click.echo("⚠️  No achievements found (run 'ncdb achievements seed')")
                return

            current = None
            for achievement in items:
                if achievement.category != current:
                    current = achievement.category
                    click.echo(f"\n{current.value}:")
                mark = "✓" if achievement.is_unlocked else " "
                click.echo(
                    f"  [{mark}] {achievement.title:<22} "
                    f"{achievement.progress_percentage:5.1f}%  ({achievement.id})"
                )

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "achievements_list")
