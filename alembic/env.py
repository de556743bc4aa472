"""Alembic environment configuration for Insight-Engine."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from insight_engine.common.config import get_settings
from insight_engine.common.models import Base

# Import all models so they register with Base.metadata
import insight_engine.licensing.models  # noqa: F401
import insight_engine.events.models  # noqa: F401
import insight_engine.products.models  # noqa: F401

config = context.config

# alembic -x sqlalchemy.url=... upgrade head; otherwise INSIGHT_DB_URL
cmd_url = context.get_x_argument(as_dictionary=True).get("sqlalchemy.url")
config.set_main_option("sqlalchemy.url", cmd_url or get_settings().db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
