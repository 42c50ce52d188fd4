"""Alembic environment for the snapshot collector's tables.

The collector can share a database with other services, so migrations stay
on its own objects: revisions are tracked in ``surveyflow_alembic_version``
and autogenerate only compares tables declared on ``Base.metadata``
(``survey_snapshots``).  Alembic runs synchronously, hence
``get_sync_url()``.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from surveyflow_db.config import get_sync_url
from surveyflow_db.models import Base

VERSION_TABLE = "surveyflow_alembic_version"

config = context.config
config.set_main_option("sqlalchemy.url", get_sync_url())

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def include_name(name, type_, parent_names) -> bool:
    """Skip tables that belong to other services sharing the database."""
    if type_ == "table":
        return name in Base.metadata.tables
    return True


def _collector_options() -> dict:
    return {
        "target_metadata": Base.metadata,
        "version_table": VERSION_TABLE,
        "include_name": include_name,
        "compare_type": True,
    }


def run_migrations_offline() -> None:
    """Print the collector's DDL instead of applying it."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_collector_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_collector_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
