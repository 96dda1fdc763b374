"""
Query & Browse Commands
------------------------

Catalog browsing and query commands.

Commands:
    - list: List productions with filters
    - show: Display production details
    - delete: Delete a production and everything it owns
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError, ValidationError
from ncdb.database.models import Production
from . import get_db, resolve_production


@click.group()
@click.pass_context
def query(ctx: click.Context) -> None:
    """Browse and query catalog content."""
    pass


@query.command("list")
@click.option("--watched/--unwatched", default=None, help="Filter by watched flag")
@click.option("--favorites", is_flag=True, help="Only favorites")
@click.option("--search", "text", default=None, help="Search title, director and plot")
@click.option(
    "--sort",
    default="title",
    help="Column to sort by; prefix with '-' for descending (e.g. -release_year)",
)
@click.option("--limit", type=int, default=None, help="Maximum number of rows")
@click.pass_context
def list_productions(ctx, watched, favorites, text, sort, limit):
    """List productions."""
    try:
        db = get_db(ctx)

        with db.read_scope():
            if text:
                productions = db.productions.search(text)[:limit]
            else:
                filters = {}
                if watched is not None:
                    filters["watched"] = watched
                if favorites:
                    filters["is_favorite"] = True
                productions = db.store.query(Production, filters, sort, limit=limit)

            if not productions:
                click.echo("⚠️  No productions found")
                return

            click.echo(f"\n🎬 Productions ({len(productions)}):\n")
            for production in productions:
                marks = "".join(
                    [
                        "✓" if production.watched else " ",
                        "★" if production.is_favorite else " ",
                    ]
                )
                rank = f"#{production.ranking_position}" if production.is_ranked else "-"
                click.echo(f"  [{marks}] {rank:>4}  {production}  {production.id}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "query_list")


@query.command("show")
@click.argument("reference")
@click.option("--full", is_flag=True, help="Also show cast, watch history and ratings")
@click.pass_context
def show(ctx, reference, full):
    """Display a production by id or external id."""
    try:
        db = get_db(ctx)

        with db.read_scope():
            production = resolve_production(db, reference)

            click.echo(f"\n🎬 {production}")
            click.echo(f"  Id: {production.id}")
            click.echo(f"  Type: {production.production_type.value}")
            if production.genres:
                click.echo(f"  Genres: {', '.join(production.genres)}")
            if production.director:
                click.echo(f"  Director: {production.director}")
            if production.formatted_runtime:
                click.echo(f"  Runtime: {production.formatted_runtime}")
            click.echo(
                f"  Watched: {'yes' if production.watched else 'no'} "
                f"({production.watch_count} times)"
            )
            if production.user_rating is not None:
                click.echo(f"  Rating: {production.user_rating:.1f}/5")
            if production.is_ranked:
                click.echo(f"  Rank: #{production.ranking_position}")
            if production.tags:
                click.echo(f"  Tags: {', '.join(production.tag_names)}")

            if full:
                if production.cast_members:
                    click.echo(f"\n👥 Cast ({len(production.cast_members)}):")
                    for member in production.cast_members:
                        click.echo(f"  • {member.name} as {member.character}")
                if production.watch_events:
                    click.echo(f"\n📅 Watch history ({len(production.watch_events)}):")
                    for event in production.watch_events:
                        where = f" at {event.location}" if event.location else ""
                        click.echo(f"  • {event.formatted_date}{where}")
                if production.external_ratings:
                    click.echo("\n⭐ External ratings:")
                    for rating in production.external_ratings:
                        click.echo(f"  • {rating.source.value}: {rating.display_string}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "query_show", additional_context={"reference": reference})


@query.command("delete")
@click.argument("reference")
@click.confirmation_option(prompt="⚠️  Delete this production with its cast, watches and ratings?")
@click.pass_context
def delete(ctx, reference):
    """Delete a production and everything it owns."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            production = resolve_production(db, reference)
            title = str(production)
            result = db.productions.delete(production)

        click.echo(f"🗑️  Deleted {title}")
        for model, count in result.deleted.items():
            if count > 0:
                click.echo(f"  • {model}: {count}")
        if result.detached:
            click.echo(f"  • Tag memberships removed: {result.detached}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "query_delete", additional_context={"reference": reference})
