from click.testing import CliRunner
from sqlmodel import select

from justgold.cli.main import cli
from justgold.models.category import Category
from justgold.models.product import Product, ProductImage, ProductVariant

LEGACY = "https://res.example-cdn.com/justgold/image/upload/v1700000000/products/images/old.jpg"


def test_backfill_fills_missing_keys_only(session, categories, make_product):
    make_product(
        "Legacy",
        categories["lipstick"].id,
        thumbnail=LEGACY,
        afterimage="https://proj.supabase.co/storage/v1/object/public/assets/products/images/after.png",
        variants=[{"main_image": LEGACY, "main_image_key": "keep/me.jpg", "secondary_image": "nonsense"}],
    )

    result = CliRunner().invoke(cli, ["backfill-media-keys"])

    assert result.exit_code == 0, result.output
    assert "Filled 2 keys" in result.output

    session.expire_all()
    product = session.exec(select(Product)).one()
    variant = session.exec(select(ProductVariant)).one()
    assert product.thumbnail_key == "products/images/old.jpg"
    assert product.afterimage_key == "products/images/after.png"
    assert variant.main_image_key == "keep/me.jpg"
    assert variant.secondary_image_key is None


def test_backfill_dry_run_changes_nothing(session, categories, make_product):
    product = make_product("Legacy", categories["lipstick"].id)
    session.add(ProductImage(product_id=product.id, image_url=LEGACY))
    session.commit()

    result = CliRunner().invoke(cli, ["backfill-media-keys", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Would fill 1 keys" in result.output
    session.expire_all()
    assert session.exec(select(ProductImage)).one().image_key is None


def test_check_categories_reports_tree_and_orphans(session, categories):
    orphan = categories["gloss"]
    orphan.parent_id = 4242
    session.add(orphan)
    session.commit()

    result = CliRunner().invoke(cli, ["check-categories"])

    assert result.exit_code == 0, result.output
    assert "Parent categories: 2" in result.output
    assert "Lipstick (lipstick)" in result.output
    assert "1 orphaned subcategories" in result.output
    assert "missing parent 4242" in result.output


def test_seed_categories_builds_tree_and_skips_existing_slugs(session, categories):
    result = CliRunner().invoke(cli, ["seed-categories"])

    assert result.exit_code == 0, result.output
    # LIPS, FACE, Lipstick, Lip Gloss and Foundation already exist
    assert "Created 33 categories, skipped 5 existing" in result.output
    assert "Parent categories: 9, subcategories: 29" in result.output
    assert "(tools-and-brushes)" in result.output

    session.expire_all()
    lips = session.exec(select(Category).where(Category.slug == "lips")).one()
    liner = session.exec(select(Category).where(Category.slug == "lip-liner")).one()
    assert lips.id == categories["lips"].id
    assert liner.parent_id == lips.id


def test_seed_categories_twice_creates_nothing_new(session):
    first = CliRunner().invoke(cli, ["seed-categories"])
    second = CliRunner().invoke(cli, ["seed-categories"])

    assert first.exit_code == 0, first.output
    assert "Created 38 categories, skipped 0 existing" in first.output
    assert second.exit_code == 0, second.output
    assert "Created 0 categories, skipped 38 existing" in second.output
    assert len(session.exec(select(Category)).all()) == 38
