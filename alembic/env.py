"""Alembic environment for the boards schema. The DSN comes from board_engine settings."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

from board_engine.config import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _sync_url(dsn: str) -> str:
    """The asyncpg DSN used by PostgresStorage, rewritten for sync sqlalchemy."""
    for prefix in ("postgres://", "postgresql+asyncpg://"):
        if dsn.startswith(prefix):
            return "postgresql://" + dsn[len(prefix):]
    return dsn


if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")

config.set_main_option("sqlalchemy.url", _sync_url(settings.DATABASE_URL))


def run_migrations_offline() -> None:
    context.configure(url=config.get_main_option("sqlalchemy.url"), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(config.get_main_option("sqlalchemy.url"))
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
