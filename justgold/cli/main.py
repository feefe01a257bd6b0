# justgold/cli/main.py
import click

from justgold.cli.backfill_media_keys import backfill_media_keys
from justgold.cli.check_categories import check_categories
from justgold.cli.seed_categories import seed_categories
from justgold.core.logging_config import configure_logging


@click.group()
def cli():
    """Just Gold maintenance commands"""
    configure_logging()


cli.add_command(check_categories)
cli.add_command(backfill_media_keys)
cli.add_command(seed_categories)


if __name__ == "__main__":
    cli()
