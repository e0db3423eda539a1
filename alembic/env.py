from logging.config import fileConfig
import os

from sqlalchemy import engine_from_config, pool
from alembic import context

# Alembic Config
config = context.config

# DATABASE_URL overrides alembic.ini (CI/Docker)
env_url = os.getenv("DATABASE_URL")
if env_url:
    if env_url.startswith("postgres://"):
        env_url = env_url.replace("postgres://", "postgresql+psycopg2://", 1)
    config.set_main_option("sqlalchemy.url", env_url)

# Logging from alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Riftle tables must be registered on Base.metadata for autogenerate
from db.database import Base  # noqa: E402
from db import models as _models  # noqa: F401,E402

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    """Skip the alembic version table itself."""
    if type_ == "table" and name == "alembic_version":
        return False
    return True


def run_migrations_offline() -> None:
    """Offline mode: emit SQL without a connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        version_table="alembic_version",
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Online mode: run against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            version_table="alembic_version",
            include_object=include_object,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
