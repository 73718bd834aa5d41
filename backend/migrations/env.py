import asyncio
import os
import sys
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

# ---- raíz de backend/ en sys.path para importar clinic ----
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.abspath(os.path.join(current_dir, ".."))
sys.path.insert(0, project_root)

from clinic.config import ASYNC_DATABASE_URL  # noqa: E402
from clinic.models import Base  # noqa: E402

# objeto de configuración de Alembic
config = context.config

# configuración de logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# metadatos de todos los modelos
target_metadata = Base.metadata


def get_db_url() -> str:
    """
    Prioridad de la URL:
    1) variable de entorno ALEMBIC_DB_URL
    2) variable de entorno DATABASE_URL
    3) ASYNC_DATABASE_URL de clinic.config (la misma que usa la API)
    """
    return os.getenv("ALEMBIC_DB_URL") or os.getenv("DATABASE_URL") or ASYNC_DATABASE_URL


def run_migrations_offline() -> None:
    """modo offline (solo genera SQL)"""
    url = get_db_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """modo online (aplica sobre la BD con el driver async)"""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_db_url()

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
