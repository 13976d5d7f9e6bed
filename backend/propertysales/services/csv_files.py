# backend/propertysales/services/csv_files.py
from __future__ import annotations

import logging
import os
import re
from typing import List, Tuple

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"\d{4}")


def _year_key(name: str) -> Tuple[int, str]:
    m = _YEAR_RE.search(name)
    # newest year first, files without a year last
    return (-int(m.group(0)) if m else 1, name)


def list_csv_files(directory: str) -> List[str]:
    """CSV file names sorted by embedded year, newest first. ``[]`` if the directory can't be read."""
    try:
        names = [f for f in os.listdir(directory) if f.lower().endswith(".csv")]
    except OSError as e:
        logger.error("error reading sales data directory %s: %s", directory, e)
        return []
    return sorted(names, key=_year_key)
