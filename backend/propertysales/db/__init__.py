# backend/propertysales/db/__init__.py
from .db_connection import Database, create_sync_engine, sync_sessionmaker
from .orm_registry import Base, import_all_models

__all__ = ["Base", "Database", "create_sync_engine", "import_all_models", "sync_sessionmaker"]
