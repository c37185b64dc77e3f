"""Upgrade the milestone store schema once the database accepts connections.

Usage: ``python scripts/run_migrations.py [--revision head] [--timeout 60]``
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

LOGGER = logging.getLogger("phazur.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
POLL_INTERVAL = 2.0


def load_config(ini_path: Path = BACKEND_ROOT / "alembic.ini") -> Config:
    config = Config(str(ini_path))
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    return config


def resolve_database_url(config: Config) -> str:
    """Prefer an explicit ``sqlalchemy.url``; otherwise copy ``PHAZUR_DATABASE_URL`` into the config."""
    url = config.get_main_option("sqlalchemy.url") or os.getenv("PHAZUR_DATABASE_URL")
    if not url:
        raise RuntimeError("PHAZUR_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", url)
    return url


def wait_for_database(url: str, *, timeout: float, poll_interval: float = POLL_INTERVAL) -> None:
    """Retry ``SELECT 1`` on connection errors; at least one attempt is always made."""
    engine = create_engine(url, pool_pre_ping=True)
    deadline = time.monotonic() + timeout
    try:
        while True:
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                return
            except OperationalError as exc:
                if time.monotonic() >= deadline:
                    raise RuntimeError("Database did not become ready in time.") from exc
                LOGGER.warning("Database not ready yet: %s", exc)
                time.sleep(poll_interval)
    finally:
        engine.dispose()


def run_migrations(config: Config, *, revision: str = "head", timeout: float = 60) -> None:
    url = resolve_database_url(config)
    wait_for_database(url, timeout=timeout)
    LOGGER.info("Upgrading schema to %s", revision)
    command.upgrade(config, revision)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--revision", default="head")
    parser.add_argument("--timeout", type=float, default=float(os.getenv("PHAZUR_DB_MIGRATION_TIMEOUT", "60")))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        run_migrations(load_config(), revision=args.revision, timeout=args.timeout)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Migration run failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
