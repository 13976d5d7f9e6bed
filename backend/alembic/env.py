from logging.config import fileConfig
from alembic import context
import os, sys
from sqlalchemy import create_engine, pool

# make backend/ importable when alembic runs from this directory
here = os.path.abspath(os.path.dirname(__file__))
backend_dir = os.path.abspath(os.path.join(here, ".."))
if backend_dir not in sys.path:
    sys.path.append(backend_dir)

from dotenv import load_dotenv
load_dotenv(override=False)

# model metadata
from propertysales.core.settings import Settings
from propertysales.db.orm_registry import Base, import_all_models

import_all_models()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
settings = Settings()

def run_migrations_offline():
    url = settings.database_url(async_=False)
    context.configure(
        url=url.render_as_string(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = create_engine(settings.database_url(async_=False), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
