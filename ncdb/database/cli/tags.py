"""
Tag Commands
------------

Custom tag management.

Commands:
    - list: List tags with production counts
    - create: Create a tag
    - delete: Delete a tag (tagged productions are kept)
    - attach: Tag one or more productions
    - detach: Untag one or more productions
"""
import click

from ncdb.core.logging_manager import handle_cli_error
from ncdb.core.exceptions import DatabaseError, ValidationError
from . import get_db, resolve_production


@click.group()
@click.pass_context
def tags(ctx: click.Context) -> None:
    """Manage custom tags."""
    pass


@tags.command("list")
@click.option(
    "--by-count", is_flag=True, help="Order by number of tagged productions"
)
@click.pass_context
def list_tags(ctx, by_count):
    """List tags."""
    try:
        db = get_db(ctx)

        with db.read_scope():
            all_tags = db.tags.get_all(order_by="production_count" if by_count else "name")

            if not all_tags:
                click.echo("⚠️  No tags yet")
                return

            click.echo(f"\n🏷️  Tags ({len(all_tags)}):\n")
            for tag in all_tags:
                click.echo(f"  • {tag.name} {tag.color_hex} ({tag.production_count})")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "tags_list")


@tags.command("create")
@click.argument("name")
@click.option("--color", default=None, help="Hex color, e.g. #FF0000")
@click.option("--icon", default=None, help="Symbol name")
@click.pass_context
def create(ctx, name, color, icon):
    """Create a tag."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            tag = db.tags.create({"name": name, "color_hex": color, "icon": icon})
            click.echo(f"✅ Created tag {tag.name} ({tag.color_hex})")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "tags_create", additional_context={"name": name})


@tags.command("delete")
@click.argument("name")
@click.confirmation_option(prompt="⚠️  Delete this tag? Tagged productions are kept.")
@click.pass_context
def delete(ctx, name):
    """Delete a tag."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            result = db.tags.delete(name)

        click.echo(f"🗑️  Deleted tag {name} ({result.detached} memberships removed)")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "tags_delete", additional_context={"name": name})


@tags.command("attach")
@click.argument("name")
@click.argument("references", nargs=-1, required=True)
@click.option("--create", "create_missing", is_flag=True, help="Create the tag if missing")
@click.pass_context
def attach(ctx, name, references, create_missing):
    """Tag productions (ids or external ids)."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            tag = db.tags.get_or_create(name) if create_missing else name
            productions = [resolve_production(db, ref) for ref in references]
            added = db.tags.attach_many(productions, tag)

        click.echo(f"✅ Tagged {added} productions with {name}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "tags_attach", additional_context={"name": name})


@tags.command("detach")
@click.argument("name")
@click.argument("references", nargs=-1)
@click.option("--all", "from_all", is_flag=True, help="Remove the tag from every production")
@click.pass_context
def detach(ctx, name, references, from_all):
    """Untag productions (ids or external ids)."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            if from_all:
                removed = db.tags.remove_from_all(name)
            else:
                productions = [resolve_production(db, ref) for ref in references]
                removed = db.tags.detach_many(productions, name)

        click.echo(f"✅ Removed {name} from {removed} productions")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "tags_detach", additional_context={"name": name})
