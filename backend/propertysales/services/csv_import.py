# backend/propertysales/services/csv_import.py
"""
Property Price Register CSV -> property_sale upsert.
- files processed in name order, rows strictly sequentially
- dedup key (address, sale_date, eircode): match -> update in place, else insert
- transient save failures retried a fixed number of times with a fixed delay
- a bad row never aborts its file, a bad file never aborts the run
"""
from __future__ import annotations

import codecs
import csv
import enum
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from propertysales.core.errors import CsvFormatError, RowImportError, is_transient
from propertysales.models.property_sale import DEFAULT_DESCRIPTION, PropertySale
from propertysales.utils.normalize import (
    compose_full_address,
    dmy_to_date,
    none_if_blank,
    parse_price,
)

LOGGER = logging.getLogger(__name__)

COL_DATE = "Date of Sale (dd/mm/yyyy)"
COL_ADDRESS = "Address"
COL_COUNTY = "County"
COL_EIRCODE = "Eircode"
COL_DESCRIPTION = "Description of Property"
PRICE_PREFIX = "Price"  # "Price (€)" / "Price (\x80)" depending on encoding

PROGRESS_EVERY = 100
_CHUNK = 1 << 16


class RowOutcome(str, enum.Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass
class SaleRow:
    """One parsed CSV row, ready to persist."""

    sale_date: date
    address: str
    eircode: Optional[str]
    price: Decimal
    county: Optional[str]
    description: str

    @property
    def year(self) -> int:
        return self.sale_date.year

    @property
    def full_address(self) -> str:
        return compose_full_address(self.address, self.county)


@dataclass
class FileImportSummary:
    file_name: str
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errored: int = 0

    @property
    def processed(self) -> int:
        return self.inserted + self.updated

    @property
    def errors(self) -> int:
        return self.skipped + self.errored

    def record(self, outcome: RowOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)


@dataclass
class RunImportSummary:
    files: List[FileImportSummary] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(f.processed for f in self.files)

    @property
    def errors(self) -> int:
        return sum(f.errors for f in self.files)


# ─────────────────────────────
# file helpers
# ─────────────────────────────
def _decodes_as(path: str, encoding: str) -> bool:
    decoder = codecs.getincrementaldecoder(encoding)()
    try:
        with open(path, "rb") as fh:
            while True:
                chunk = fh.read(_CHUNK)
                if not chunk:
                    break
                decoder.decode(chunk)
            decoder.decode(b"", final=True)
    except UnicodeDecodeError:
        return False
    return True


def detect_encoding(path: str) -> str:
    """UTF-8 (BOM tolerated) first, then cp1252 (0x80 = €), latin-1 as the catch-all."""
    if _decodes_as(path, "utf-8"):
        return "utf-8-sig"
    if _decodes_as(path, "cp1252"):
        return "cp1252"
    return "latin-1"


def resolve_columns(fieldnames: Optional[Iterable[str]]) -> Dict[str, str]:
    """Map logical column -> actual header. Raises CsvFormatError if a required one is missing."""
    headers = [h for h in (fieldnames or []) if h is not None]
    by_name = {h.strip(): h for h in headers}

    cols: Dict[str, str] = {}
    for key in (COL_DATE, COL_ADDRESS, COL_COUNTY, COL_EIRCODE, COL_DESCRIPTION):
        if key in by_name:
            cols[key] = by_name[key]
    price_header = next((h for h in headers if h.strip().startswith(PRICE_PREFIX)), None)
    if price_header is not None:
        cols[PRICE_PREFIX] = price_header

    missing = [k for k in (COL_DATE, COL_ADDRESS, PRICE_PREFIX) if k not in cols]
    if missing:
        raise CsvFormatError(f"missing required column(s): {', '.join(missing)}")
    return cols


def list_source_files(directory: str) -> List[str]:
    """``.csv`` file names in ``directory``, name order. OSError propagates."""
    return sorted(f for f in os.listdir(directory) if f.lower().endswith(".csv"))


# ─────────────────────────────
# row helpers
# ─────────────────────────────
def parse_row(row: Dict[str, Optional[str]], columns: Dict[str, str]) -> SaleRow:
    def get(key: str) -> Optional[str]:
        header = columns.get(key)
        return row.get(header) if header is not None else None

    raw_price = get(PRICE_PREFIX)
    if none_if_blank(raw_price) is None:
        raise RowImportError("no price")
    price = parse_price(raw_price)
    if price is None:
        raise RowImportError(f"invalid or zero price {raw_price!r}")

    raw_date = get(COL_DATE)
    sale_date = dmy_to_date(raw_date)
    if sale_date is None:
        raise RowImportError(f"invalid sale date {raw_date!r}")

    address = none_if_blank(get(COL_ADDRESS))
    if address is None:
        raise RowImportError("empty address")

    return SaleRow(
        sale_date=sale_date,
        address=address,
        eircode=none_if_blank(get(COL_EIRCODE)),
        price=price,
        county=none_if_blank(get(COL_COUNTY)),
        description=none_if_blank(get(COL_DESCRIPTION)) or DEFAULT_DESCRIPTION,
    )


def find_existing(session: Session, sale: SaleRow) -> Optional[PropertySale]:
    eircode_match = (
        PropertySale.eircode.is_(None) if sale.eircode is None else PropertySale.eircode == sale.eircode
    )
    stmt = (
        select(PropertySale)
        .where(
            PropertySale.address == sale.address,
            PropertySale.sale_date == sale.sale_date,
            eircode_match,
        )
        .order_by(PropertySale.id)
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def upsert_sale(session: Session, sale: SaleRow) -> RowOutcome:
    """Dedup lookup, overwrite-or-create, commit."""
    existing = find_existing(session, sale)
    prop = existing if existing is not None else PropertySale()

    prop.sale_date = sale.sale_date
    prop.address = sale.address
    prop.eircode = sale.eircode
    prop.price = sale.price
    prop.year = sale.year
    prop.county = sale.county
    prop.full_address = sale.full_address
    prop.description = sale.description

    if existing is None:
        session.add(prop)
    session.commit()
    return RowOutcome.UPDATED if existing is not None else RowOutcome.INSERTED


def persist_with_retry(
    session: Session,
    sale: SaleRow,
    *,
    max_retries: int,
    retry_delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> RowOutcome:
    """upsert_sale with up to ``max_retries`` extra attempts on transient errors.

    The session is rolled back before each retry; the last error propagates.
    """
    attempts = max_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return upsert_sale(session, sale)
        except Exception as e:
            session.rollback()
            if not is_transient(e) or attempt >= attempts:
                raise
            LOGGER.warning(
                "[csv-import] save failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt, attempts, e, retry_delay,
            )
            sleep(retry_delay)
    raise AssertionError("unreachable")


# ─────────────────────────────
# importer
# ─────────────────────────────
class CsvImporter:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session_factory = session_factory
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    def import_row(self, session: Session, row: Dict[str, Optional[str]], columns: Dict[str, str]) -> RowOutcome:
        try:
            sale = parse_row(row, columns)
        except RowImportError as e:
            LOGGER.warning("[csv-import] skip row: %s", e.message)
            return RowOutcome.SKIPPED

        try:
            return persist_with_retry(
                session, sale,
                max_retries=self.max_retries,
                retry_delay=self.retry_delay,
                sleep=self.sleep,
            )
        except Exception:
            LOGGER.exception("[csv-import] failed to save %s (%s)", sale.address, sale.sale_date)
            return RowOutcome.ERRORED

    def import_file(self, path: str) -> FileImportSummary:
        name = os.path.basename(path)
        summary = FileImportSummary(file_name=name)
        encoding = detect_encoding(path)
        LOGGER.info("[csv-import] processing %s (encoding=%s)", name, encoding)

        with open(path, newline="", encoding=encoding) as fh, self.session_factory() as session:
            reader = csv.DictReader(fh, skipinitialspace=True)
            columns = resolve_columns(reader.fieldnames)

            for row in reader:
                outcome = self.import_row(session, row, columns)
                summary.record(outcome)
                if outcome in (RowOutcome.INSERTED, RowOutcome.UPDATED) and summary.processed % PROGRESS_EVERY == 0:
                    LOGGER.info(
                        "[csv-import] %s: processed %s records (%s errors)",
                        name, summary.processed, summary.errors,
                    )

        LOGGER.info(
            "[csv-import] completed %s: inserted=%s updated=%s skipped=%s errored=%s",
            name, summary.inserted, summary.updated, summary.skipped, summary.errored,
        )
        return summary

    def import_directory(self, directory: str) -> RunImportSummary:
        """Import every CSV in ``directory``. Listing failures propagate; per-file failures are recorded."""
        files = list_source_files(directory)
        LOGGER.info("[csv-import] %s file(s) in %s", len(files), directory)

        run = RunImportSummary()
        for name in files:
            try:
                run.files.append(self.import_file(os.path.join(directory, name)))
            except (CsvFormatError, csv.Error, OSError, UnicodeDecodeError) as e:
                LOGGER.error("[csv-import] error processing file %s: %s", name, e)
                run.failed_files.append(name)
                continue
            LOGGER.info(
                "[csv-import] running total: %s records processed (%s errors)",
                run.processed, run.errors,
            )

        LOGGER.info(
            "[csv-import] all files completed. total: %s records processed (%s errors), %s failed file(s)",
            run.processed, run.errors, len(run.failed_files),
        )
        return run
