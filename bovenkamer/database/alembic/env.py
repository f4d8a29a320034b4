from __future__ import annotations

import asyncio
import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from bovenkamer.config.db_url import sanitize_url_for_log
from bovenkamer.database.init import sync_url
from bovenkamer.database.schema import metadata as target_metadata


config = context.config
logger = logging.getLogger("alembic.env")

# Only configure logging when alembic runs standalone; the CLI owns it otherwise.
if config.config_file_name is not None and not logging.getLogger().handlers:
    fileConfig(config.config_file_name)


def _get_database_url() -> str:
    env = os.getenv("BOVENKAMER_DATABASE__URL") or os.getenv("DATABASE_URL")
    url = config.get_main_option("sqlalchemy.url") or env
    if not url:
        raise RuntimeError("sqlalchemy.url must be set for migrations (set by upgrade_database).")
    return url


DATABASE_URL: str = _get_database_url()


def _render_as_batch() -> bool:
    # SQLite needs batch mode for ALTER TABLE
    return make_url(DATABASE_URL).get_backend_name() == "sqlite"


def run_migrations_offline() -> None:
    context.configure(
        url=sync_url(DATABASE_URL),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_render_as_batch(),
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_sync_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=_render_as_batch(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    logger.info({"alembic": {"mode": "online", "phase": "start", "url": sanitize_url_for_log(DATABASE_URL)}})

    if make_url(DATABASE_URL).drivername.endswith("+asyncpg"):
        connectable = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)

        async def do_run_migrations() -> None:
            async with connectable.connect() as connection:
                await connection.run_sync(_run_sync_migrations)
            await connectable.dispose()

        asyncio.run(do_run_migrations())
    else:
        section = config.get_section(config.config_ini_section, {}).copy()
        section["sqlalchemy.url"] = sync_url(DATABASE_URL)
        connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
        with connectable.connect() as connection:
            _run_sync_migrations(connection)
        connectable.dispose()

    logger.info({"alembic": {"mode": "online", "phase": "complete"}})


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
