"""
Statistics Commands
-------------------

Catalog statistics.

Commands:
    - stats: Display aggregate statistics
"""
import json

import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON")
@click.option("--breakdown", is_flag=True, help="Include genre and decade breakdowns")
@click.pass_context
def stats(ctx, as_json, breakdown):
    """Display catalog statistics."""
    try:
        db = get_db(ctx)
        summary = db.stats()

        genres, decades = {}, {}
        if breakdown:
            with db.read_scope() as session:
                genres = db.query_analytics.genre_breakdown(session)
                decades = db.query_analytics.decade_breakdown(session)

        if as_json:
            data = summary.to_dict()
            if breakdown:
                data["genres"] = genres
                data["decades"] = {str(decade): count for decade, count in decades.items()}
            click.echo(json.dumps(data, indent=2, sort_keys=True))
            return

        average = (
            f"{summary.average_rating:.1f}" if summary.average_rating is not None else "N/A"
        )

        click.echo("\n📊 Catalog Statistics:\n")
        click.echo(f"  Total productions: {summary.total}")
        click.echo(f"  Watched: {summary.watched}")
        click.echo(f"  Unwatched: {summary.unwatched}")
        click.echo(f"  Completion: {summary.completion_percentage:.1f}%")
        click.echo(f"  Rated: {summary.rated}")
        click.echo(f"  Average rating: {average}")
        click.echo(f"  Favorites: {summary.favorites}")
        click.echo(f"  Ranked: {summary.ranked}")
        click.echo(f"  Total runtime: {summary.formatted_runtime}")

        if breakdown:
            if genres:
                click.echo("\n🎭 Genres (watched):")
                for genre, count in genres.items():
                    click.echo(f"  • {genre}: {count}")
            if decades:
                click.echo("\n📅 Decades (watched):")
                for decade, count in decades.items():
                    click.echo(f"  • {decade}s: {count}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "stats")
