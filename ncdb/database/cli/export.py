"""
Export Commands
---------------

Catalog export to documents.

Commands:
    - json: Export the full catalog graph to JSON
    - csv: Export one row per production to CSV
    - html: Export a rendered HTML page
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError, ValidationError
from ncdb.core.paths import EXPORT_DIR
from ncdb.database import ExportOptions
from . import get_db


def export_options(function):
    """Shared inclusion options for every export format."""
    function = click.option(
        "--template-id", default=None, help="Saved export template to use"
    )(function)
    function = click.option(
        "--no-reviews", is_flag=True, help="Leave out review text"
    )(function)
    function = click.option(
        "--no-ratings", is_flag=True, help="Leave out user and external ratings"
    )(function)
    function = click.option(
        "--no-images", is_flag=True, help="Leave out poster paths and URLs"
    )(function)
    function = click.option(
        "--output-dir",
        type=click.Path(),
        default=str(EXPORT_DIR),
        help="Directory for the exported file",
    )(function)
    return function


def _run_export(ctx, export_format, output_dir, no_images, no_ratings, no_reviews, template_id):
    try:
        db = get_db(ctx)
        click.echo(f"📤 Exporting to {export_format.upper()}: {output_dir}")

        options = ExportOptions(
            include_images=not no_images,
            include_ratings=not no_ratings,
            include_reviews=not no_reviews,
        )
        path = db.export_to_file(export_format, output_dir, options, template_id)

        click.echo(f"✅ Export complete: {path}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx,
            e,
            f"export_{export_format}",
            additional_context={"output_dir": str(output_dir)},
        )


@click.group()
@click.pass_context
def export(ctx: click.Context) -> None:
    """Export the catalog to JSON, CSV or HTML."""
    pass


@export.command("json")
@export_options
@click.pass_context
def export_json(ctx, output_dir, no_images, no_ratings, no_reviews, template_id):
    """Export the full catalog graph to JSON."""
    _run_export(ctx, "json", output_dir, no_images, no_ratings, no_reviews, template_id)


@export.command("csv")
@export_options
@click.pass_context
def export_csv(ctx, output_dir, no_images, no_ratings, no_reviews, template_id):
    """Export one row per production to CSV."""
    _run_export(ctx, "csv", output_dir, no_images, no_ratings, no_reviews, template_id)


@export.command("html")
@export_options
@click.pass_context
def export_html(ctx, output_dir, no_images, no_ratings, no_reviews, template_id):
    """Export a rendered HTML page."""
    _run_export(ctx, "html", output_dir, no_images, no_ratings, no_reviews, template_id)
