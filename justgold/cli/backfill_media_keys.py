# justgold/cli/backfill_media_keys.py
import logging

import click
from sqlmodel import Session, select

from justgold.core.config import get_settings
from justgold.core.storage_utils import extract_storage_key, storage_markers
from justgold.database import engine
from justgold.models.product import Product, ProductImage, ProductVariant

logger = logging.getLogger(__name__)

# (model, url column, key column)
MEDIA_COLUMNS = (
    (Product, "thumbnail", "thumbnail_key"),
    (Product, "afterimage", "afterimage_key"),
    (ProductVariant, "main_image", "main_image_key"),
    (ProductVariant, "secondary_image", "secondary_image_key"),
    (ProductImage, "image_url", "image_key"),
)


def backfill_keys(session: Session, markers: tuple[str, ...]) -> dict[str, int]:
    """
    Fill empty *_key columns from their legacy URL column.

    Existing keys are never overwritten; URLs the extractor cannot parse are
    left alone. Returns the number of filled keys per "table.column".
    """
    filled: dict[str, int] = {}
    for model, url_col, key_col in MEDIA_COLUMNS:
        label = f"{model.__tablename__}.{key_col}"
        filled[label] = 0
        url_attr = getattr(model, url_col)
        key_attr = getattr(model, key_col)
        stmt = select(model).where(url_attr.is_not(None), (key_attr.is_(None)) | (key_attr == ""))
        for row in session.exec(stmt).all():
            key = extract_storage_key(getattr(row, url_col), markers)
            if key is None:
                logger.debug("No key in %s %s: %s", label, row.id, getattr(row, url_col))
                continue
            setattr(row, key_col, key)
            session.add(row)
            filled[label] += 1
    return filled


@click.command("backfill-media-keys")
@click.option("--dry-run", is_flag=True, help="Report what would change without committing")
def backfill_media_keys(dry_run: bool):
    """Derive storage keys for media rows that only have a URL"""
    markers = storage_markers(get_settings().MEDIA_BUCKET)

    with Session(engine) as session:
        filled = backfill_keys(session, markers)
        if dry_run:
            session.rollback()
        else:
            session.commit()

    for label, count in filled.items():
        click.echo(f"{label}: {count}")
    total = sum(filled.values())
    click.echo(f"\n{'Would fill' if dry_run else 'Filled'} {total} keys")
