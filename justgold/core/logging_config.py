# justgold/core/logging_config.py
"""
Centralized logging configuration for the application.

Keeps application logs at the configured level while quieting the HTTP and
database client libraries the storage, cache and ORM layers pull in.
"""

import logging

from justgold.core.config import get_settings


def configure_logging() -> None:
    """
    Configure the root logger once at startup.

    - App code: LOG_LEVEL from settings (INFO by default)
    - httpx / httpcore (Supabase client), urllib3: WARNING
    - sqlalchemy, redis: WARNING
    """
    level_name = get_settings().LOG_LEVEL.upper()

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    for noisy in (
        "httpx",
        "httpcore",
        "urllib3",
        "hpack",
        "sqlalchemy",
        "sqlalchemy.engine",
        "redis",
    ):
        logging.getLogger(noisy).setLevel(logging.WARNING)
