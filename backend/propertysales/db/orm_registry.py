# backend/propertysales/db/orm_registry.py
from __future__ import annotations

import importlib

from sqlalchemy.orm import declarative_base

Base = declarative_base()

MODEL_MODULES = ("propertysales.models.property_sale",)


def import_all_models() -> None:
    """Register every mapped table on ``Base.metadata`` (Alembic env, ``create_all`` in tests)."""
    for name in MODEL_MODULES:
        importlib.import_module(name)
