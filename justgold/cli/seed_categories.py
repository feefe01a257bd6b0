# justgold/cli/seed_categories.py
import click
from sqlmodel import Session

from justgold.database import engine
from justgold.repositories.category_repo import CategoryRepository
from justgold.services.category_service import CategoryService

# Storefront navigation: top-level categories in menu order, each with its
# subcategories
CATEGORY_TREE: list[tuple[str, list[str]]] = [
    ("NEW IN", []),
    ("MAKEUP", []),
    (
        "FACE",
        [
            "All Face",
            "Foundation",
            "Concealer",
            "Powder",
            "Primer",
            "Bronzer",
            "Highlighter",
            "Setting Spray",
        ],
    ),
    (
        "EYES",
        [
            "All Eyes",
            "Eyeshadow Palettes",
            "Eyeliner",
            "Mascara",
            "Eyebrow",
            "Eye Primer",
            "False Lashes",
        ],
    ),
    (
        "LIPS",
        [
            "All Lips",
            "Lipstick",
            "Lip Gloss",
            "Lip Liner",
            "Lip Balm",
            "Lip Stain",
            "Lip Sets",
        ],
    ),
    (
        "TOOLS & BRUSHES",
        [
            "All Tools",
            "Face Brushes",
            "Eye Brushes",
            "Lip Brushes",
            "Sponges",
            "Brush Sets",
            "Applicators",
        ],
    ),
    ("KITS & SETS", []),
    ("BEST SELLERS", []),
    ("GIFTS", []),
]


@click.command("seed-categories")
def seed_categories():
    """Insert the Just Gold category tree in one transaction, skipping existing slugs"""
    service = CategoryService(CategoryRepository())

    with Session(engine) as session:
        created, skipped = service.seed_tree(session, CATEGORY_TREE)
        session.commit()

        for row in created:
            indent = "      - " if row.parent_id is not None else "  "
            click.echo(f"{indent}[{row.id}] {row.name} ({row.slug})")

        tree = service.list_tree(session)

    subcategories = sum(len(parent.subcategories) for parent in tree)
    click.echo(f"\nCreated {len(created)} categories, skipped {skipped} existing")
    click.echo(f"Parent categories: {len(tree)}, subcategories: {subcategories}")
