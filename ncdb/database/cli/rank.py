"""
Ranking Commands
----------------

Personal ranking management.

Commands:
    - list: Show the ranking
    - add: Insert a production at a position (default: the end)
    - remove: Take a production out of the ranking
    - move: Move a ranked production to a new position
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError
from . import get_db, resolve_production


@click.group()
@click.pass_context
def rank(ctx: click.Context) -> None:
    """Manage the personal ranking."""
    pass


@rank.command("list")
@click.option("--top", type=int, default=None, help="Only the first N entries")
@click.option("--share", is_flag=True, help="Print the shareable text version")
@click.pass_context
def list_ranking(ctx, top, share):
    """Show the ranking."""
    try:
        db = get_db(ctx)

        with db.read_scope():
            if share:
                click.echo(db.rankings.shareable_text(top_n=top))
                return

            ranked = db.rankings.get_ranked(limit=top)
            if not ranked:
                click.echo("⚠️  Nothing ranked yet")
                return

            click.echo("\n🏆 Ranking:\n")
            for production in ranked:
                rating = (
                    f"  {production.user_rating:.1f}/5"
                    if production.user_rating is not None
                    else ""
                )
                click.echo(f"  #{production.ranking_position:<3} {production}{rating}")

            summary = db.rankings.stats()
            if summary.top_decade is not None:
                click.echo(f"\nTop decade: {summary.formatted_top_decade}")
            if summary.top_genre:
                click.echo(f"Top genre: {summary.top_genre}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "rank_list")


@rank.command("add")
@click.argument("reference")
@click.option("--position", type=int, default=None, help="1-based position (default: last)")
@click.pass_context
def add(ctx, reference, position):
    """Insert a production into the ranking."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            production = resolve_production(db, reference)
            db.rankings.insert_at_rank(production, position)
            click.echo(f"✅ {production} ranked #{production.ranking_position}")

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "rank_add", additional_context={"reference": reference, "position": position}
        )


@rank.command("remove")
@click.argument("reference")
@click.pass_context
def remove(ctx, reference):
    """Take a production out of the ranking."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            production = resolve_production(db, reference)
            if db.rankings.remove_from_rank(production):
                click.echo(f"✅ {production} removed from the ranking")
            else:
                click.echo(f"⚠️  {production} is not ranked")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "rank_remove", additional_context={"reference": reference})


@rank.command("move")
@click.argument("reference")
@click.argument("position", type=int)
@click.pass_context
def move(ctx, reference, position):
    """Move a production to a new position."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            production = resolve_production(db, reference)
            db.rankings.reorder(production, position)
            click.echo(f"✅ {production} moved to #{production.ranking_position}")

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "rank_move", additional_context={"reference": reference, "position": position}
        )
