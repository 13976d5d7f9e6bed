from __future__ import annotations

import csv
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from propertysales.core.settings import Settings
from propertysales.db.db_connection import create_sync_engine, sync_sessionmaker
from propertysales.db.orm_registry import Base, import_all_models
from propertysales.main import create_app
from propertysales.models.property_sale import DEFAULT_DESCRIPTION, PropertySale
from propertysales.utils.normalize import compose_full_address

CSV_HEADER = [
    "Date of Sale (dd/mm/yyyy)",
    "Address",
    "County",
    "Eircode",
    "Price (€)",
    "Not Full Market Price",
    "VAT Exclusive",
    "Description of Property",
    "Property Size Description",
]


def make_sale(
    address: str,
    price,
    sale_date: date,
    county: Optional[str] = "Dublin",
    eircode: Optional[str] = None,
    description: str = DEFAULT_DESCRIPTION,
) -> PropertySale:
    return PropertySale(
        address=address,
        price=Decimal(str(price)),
        sale_date=sale_date,
        year=sale_date.year,
        county=county,
        eircode=eircode,
        full_address=compose_full_address(address, county),
        description=description,
    )


def csv_row(date_text: str, address: str, county: str, eircode: str, price_text: str,
            description: str = DEFAULT_DESCRIPTION) -> list:
    return [date_text, address, county, eircode, price_text, "No", "No", description, ""]


def write_register_csv(path: Path, rows: Iterable[list], encoding: str = "utf-8",
                       header: Optional[list] = None) -> Path:
    with open(path, "w", encoding=encoding, newline="") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_ALL)
        writer.writerow(header or CSV_HEADER)
        writer.writerows(rows)
    return path


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "salesdata"
    d.mkdir()
    return d


@pytest.fixture
def settings(tmp_path: Path, data_dir: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'sales.db'}",
        SALES_DATA_DIR=str(data_dir),
        IMPORT_MAX_RETRIES=3,
        IMPORT_RETRY_DELAY_SECONDS=0,
        REQUEST_TIMEOUT_SECONDS=10,
    )


@pytest.fixture
def sync_engine(settings: Settings):
    import_all_models()
    engine = create_sync_engine(settings)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine):
    return sync_sessionmaker(sync_engine)


@pytest.fixture
def add_sales(session_factory):
    def _add(sales: Iterable[PropertySale]) -> None:
        with session_factory() as session:
            session.add_all(list(sales))
            session.commit()
    return _add


@pytest.fixture
def client(settings: Settings, sync_engine):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
