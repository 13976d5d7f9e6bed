# backend/propertysales/core/errors.py
"""Error taxonomy shared by the query service and the CSV import."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class PropertySalesError(Exception):
    """Base class. ``status_code``/``title`` drive the HTTP rendering."""

    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class QueryValidationError(PropertySalesError):
    status_code = 400
    title = "Validation Error"


class QueryExecutionError(PropertySalesError):
    status_code = 500
    title = "Database Query Error"


class DatabaseConnectionError(PropertySalesError):
    status_code = 503
    title = "Service Unavailable"


class QueryTimeoutError(DatabaseConnectionError):
    status_code = 504
    title = "Gateway Timeout"


class RowImportError(PropertySalesError):
    """A single CSV row could not be parsed; the row is skipped."""


class CsvFormatError(PropertySalesError):
    """A whole CSV file is unusable (e.g. a required column is missing)."""


def is_transient(error: BaseException) -> bool:
    """True for backend failures worth retrying (dropped/refused connections, pool exhaustion)."""
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return True
    return isinstance(
        error,
        (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError, sa_exc.DisconnectionError, OSError),
    )


@contextmanager
def translate_db_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy/socket errors as DatabaseConnectionError or QueryExecutionError."""
    try:
        yield
    except PropertySalesError:
        raise
    except Exception as e:
        if is_transient(e):
            logger.exception("%s: database unavailable", operation)
            raise DatabaseConnectionError(f"Database unavailable: {e}") from e
        if isinstance(e, sa_exc.SQLAlchemyError):
            logger.exception("%s: query failed", operation)
            raise QueryExecutionError(f"Query failed: {e}") from e
        raise
