"""Alembic environment for the ``intake_blobs`` schema.

``alembic upgrade head`` connects with the asyncpg URL from
``load_database_settings()`` and drives the synchronous migration context
through ``run_sync``.  ``alembic upgrade head --sql`` renders the DDL from
the driver-less URL without opening a connection.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from intake_store.database import load_database_settings
from intake_store.models import IntakeBlob  # noqa: F401  (registers the table)
from intake_store.models.base import Base

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

db_settings = load_database_settings()


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=Base.metadata, **options)
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection: Connection) -> None:
    _configure_and_run(connection=connection)


async def _run_online() -> None:
    alembic_cfg.set_main_option("sqlalchemy.url", db_settings.url)
    engine = async_engine_from_config(
        alembic_cfg.get_section(alembic_cfg.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_on_connection)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure_and_run(
        url=db_settings.sync_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_run_online())
