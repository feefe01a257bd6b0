# justgold/cli/check_categories.py
import click
from sqlmodel import Session

from justgold.database import engine
from justgold.repositories.category_repo import CategoryRepository
from justgold.services.category_service import CategoryService


@click.command("check-categories")
def check_categories():
    """Print the category tree and any orphaned subcategories"""
    service = CategoryService(CategoryRepository())

    with Session(engine) as session:
        tree = service.list_tree(session)
        orphans = service.find_orphans(session)

    click.echo(f"\nParent categories: {len(tree)}")
    for parent in tree:
        click.echo(f"  [{parent.id}] {parent.name} ({parent.slug})")
        for sub in parent.subcategories:
            click.echo(f"      - [{sub.id}] {sub.name} ({sub.slug})")

    if orphans:
        click.echo(f"\nWARNING: {len(orphans)} orphaned subcategories")
        for row in orphans:
            click.echo(f"  [{row.id}] {row.name} -> missing parent {row.parent_id}")
    else:
        click.echo("\nNo orphaned subcategories")
