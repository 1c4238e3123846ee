# alembic/env.py
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Run alembic from backend/ so the tsoam package is importable.
sys.path.insert(0, os.getcwd())

import tsoam.models  # noqa: E402,F401
from tsoam.db import Base  # noqa: E402

target_metadata = Base.metadata


def database_url() -> str:
    """DATABASE_URL wins over alembic.ini; tsoam.config has already loaded .env."""
    return os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")


def configure_options(url: str) -> dict:
    opts = {"target_metadata": target_metadata, "compare_type": True, "compare_server_default": True}
    if url.startswith("postgresql"):
        opts.update(include_schemas=True, version_table_schema="public")
    elif url.startswith("sqlite"):
        # SQLite cannot ALTER most columns in place
        opts["render_as_batch"] = True
    return opts


def run_migrations_offline() -> None:
    url = database_url()
    context.configure(url=url, literal_binds=True, **configure_options(url))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = database_url()
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
