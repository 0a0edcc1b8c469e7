import os
from logging.config import fileConfig

from sqlalchemy import pool

from alembic import context

from fitlive.db.base import Base, DATABASE_URL, make_engine, normalize_database_url
# Register every table on Base.metadata for autogenerate
from fitlive.auth import models as _auth_models  # noqa: F401
from fitlive.challenges import models as _challenge_models  # noqa: F401
from fitlive.nutrition import models as _nutrition_models  # noqa: F401
from fitlive.community import models as _community_models  # noqa: F401
from fitlive.payments import models as _payment_models  # noqa: F401

config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """
    Single source of truth for the Alembic DB URL.

    Prefer the DATABASE_URL env var and fall back to the normalised
    value fitlive.db.base computed at import.
    """
    return normalize_database_url(os.getenv("DATABASE_URL", DATABASE_URL))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = make_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # SQLite cannot ALTER most constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
