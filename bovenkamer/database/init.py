from __future__ import annotations

import logging
import os
from time import monotonic

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url

from bovenkamer.config.db_url import sanitize_url_for_log
from bovenkamer.config.settings import Settings

from .dbm import DBM
from .schema import metadata

logger = logging.getLogger(__name__)


def alembic_env_path() -> str:
    """Return path to the Alembic env shipped alongside this package."""
    return os.path.join(os.path.dirname(__file__), "alembic")


def alembic_ini_path() -> str:
    return os.path.join(alembic_env_path(), "alembic.ini")


def sync_url(database_url: str) -> str:
    """Swap the async SQLite driver for the stdlib one; other URLs pass through."""
    url = make_url(database_url)
    if url.drivername == "sqlite+aiosqlite":
        return url.set(drivername="sqlite").render_as_string(hide_password=False)
    return database_url


def initialize(settings: Settings) -> None:
    """
    Ensure the database exists and Alembic migrations are applied.
    """
    database_url = settings.database.resolved_url()
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database:
        data_dir = os.path.dirname(url.database)
        if data_dir:
            os.makedirs(data_dir, exist_ok=True)
        logger.info({"db_init": {"event": "sqlite_path", "path": url.database}})

    upgrade_database(database_url)


def upgrade_database(database_url: str) -> None:
    """
    Run Alembic upgrade head against the given database.
    """
    ini_path = alembic_ini_path()
    alembic_config = AlembicConfig(ini_path)
    alembic_config.set_main_option("script_location", alembic_env_path())
    alembic_config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))

    script_directory = ScriptDirectory.from_config(alembic_config)
    head_revision = script_directory.get_current_head()
    current_revision = _get_database_revision(sync_url(database_url))

    if head_revision is not None and current_revision == head_revision:
        logger.info(
            {
                "db_init": {
                    "event": "alembic_upgrade_skip",
                    "url": sanitize_url_for_log(database_url),
                    "revision": current_revision,
                }
            }
        )
        return

    started = monotonic()
    logger.info(
        {
            "db_init": {
                "event": "alembic_upgrade_start",
                "url": sanitize_url_for_log(database_url),
                "from_revision": current_revision,
                "to_revision": head_revision,
            }
        }
    )
    try:
        command.upgrade(alembic_config, "head")
    except Exception as exc:
        logger.error({"db_init": {"event": "alembic_upgrade_error", "error": str(exc)}})
        raise
    else:
        elapsed = monotonic() - started
        logger.info(
            {
                "db_init": {
                    "event": "alembic_upgrade_complete",
                    "elapsed_seconds": round(elapsed, 3),
                }
            }
        )


def _get_database_revision(db_url: str) -> str | None:
    if make_url(db_url).drivername.endswith("+asyncpg"):
        # probing would need an event loop; alembic skips applied revisions anyway
        return None
    engine = create_engine(db_url, future=True)
    try:
        with engine.connect() as connection:
            inspector = inspect(connection)
            if "alembic_version" not in inspector.get_table_names():
                return None
            result = connection.execute(text("select version_num from alembic_version limit 1"))
            return result.scalar()
    finally:
        engine.dispose()


async def create_schema(dbm: DBM) -> None:
    """Create every table directly from the models (tests and local tooling)."""
    async with dbm.engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


__all__ = [
    "alembic_env_path",
    "alembic_ini_path",
    "sync_url",
    "initialize",
    "upgrade_database",
    "create_schema",
]
