# -*- coding: utf-8 -*-
from __future__ import annotations

"""
Property Price Register CSV load
- reads every *.csv in SALES_DATA_DIR (or --data-dir) in name order
- upsert by (address, sale_date, eircode), bounded retry per row
- exit 0 when the run completes (row errors included), 1 when the directory can't be read
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from propertysales.core.settings import Settings
from propertysales.db.db_connection import create_sync_engine, sync_sessionmaker
from propertysales.services.csv_import import CsvImporter

LOGGER = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    ap = argparse.ArgumentParser(description="Import Property Price Register CSV files")
    ap.add_argument("--data-dir", default=None, help="directory holding the CSV files (default: SALES_DATA_DIR)")
    args = ap.parse_args(argv)

    load_dotenv(override=False)
    settings = settings or Settings()
    data_dir = args.data_dir or settings.SALES_DATA_DIR

    engine = create_sync_engine(settings)
    importer = CsvImporter(
        sync_sessionmaker(engine),
        max_retries=settings.IMPORT_MAX_RETRIES,
        retry_delay=settings.IMPORT_RETRY_DELAY_SECONDS,
    )

    try:
        run = importer.import_directory(data_dir)
    except OSError as e:
        LOGGER.error("[csv-import] cannot read data directory %s: %s", data_dir, e)
        return 1
    finally:
        engine.dispose()

    print(
        f"✅ import completed. {len(run.files)} file(s), "
        f"{run.processed} records processed ({run.errors} errors), "
        f"{len(run.failed_files)} failed file(s)"
    )
    return 0


def run() -> None:
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())


if __name__ == "__main__":
    run()
