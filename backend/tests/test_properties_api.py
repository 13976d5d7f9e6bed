import asyncio
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, text
from sqlalchemy.dialects import sqlite

from propertysales.core.errors import QueryExecutionError
from propertysales.main import create_app
from propertysales.schemas.property_sale import PropertyQuery
from propertysales.services.property_query import build_predicates, order_by_clause

from conftest import make_sale


# ───── predicate builder ─────
def test_no_filters_no_predicates():
    assert build_predicates(PropertyQuery()) == []


def test_each_filter_adds_one_bound_predicate():
    q = PropertyQuery(search="main", county="cork", min_price=1000, max_price=2000, year=2023)
    preds = build_predicates(q)
    assert len(preds) == 5

    compiled = [p.compile(dialect=sqlite.dialect()) for p in preds]
    # values travel as parameters, never inside the SQL text
    for c in compiled:
        assert "main" not in str(c) and "cork" not in str(c)
    assert "main" in compiled[0].params.values()
    assert "cork" in compiled[1].params.values()
    assert 1000 in compiled[2].params.values()
    assert 2000 in compiled[3].params.values()
    assert 2023 in compiled[4].params.values()


def test_order_by_adds_id_tiebreak():
    clauses = order_by_clause(PropertyQuery(sort_by="price", sort_direction="asc"))
    assert len(clauses) == 2
    assert len(order_by_clause(PropertyQuery(sort_by="id"))) == 1


# ───── GET /properties ─────
@pytest.fixture
def dublin_and_cork(add_sales):
    base = date(2024, 3, 1)
    sales = [
        make_sale(f"{i} Dublin Road", 100_000 + (i * 7919) % 400_000, base + timedelta(days=i % 60), county="Dublin")
        for i in range(120)
    ]
    sales += [
        make_sale(f"{i} Cork Street", 200_000 + i, base, county="Cork", eircode=f"T12 C{i:03d}")
        for i in range(30)
    ]
    add_sales(sales)


def test_dublin_page_sorted_by_price_desc(client, dublin_and_cork):
    resp = client.get(
        "/properties",
        params={"page": 1, "limit": 50, "county": "Dublin", "sortBy": "price", "sortDirection": "desc"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 120
    assert body["page"] == 1 and body["limit"] == 50
    assert len(body["properties"]) == 50
    assert all("dublin" in p["county"].lower() for p in body["properties"])
    prices = [p["price"] for p in body["properties"]]
    assert prices == sorted(prices, reverse=True)
    assert body["filters"] == {
        "search": None, "county": "Dublin", "minPrice": None, "maxPrice": None, "year": None,
    }
    assert body["sorting"] == {"field": "price", "direction": "desc"}


def test_last_page_is_partial(client, dublin_and_cork):
    body = client.get("/properties", params={"page": 3, "limit": 50, "county": "dublin"}).json()
    assert body["total"] == 120
    assert len(body["properties"]) == 20


def test_limit_and_page_are_clamped(client, dublin_and_cork):
    body = client.get("/properties", params={"page": -5, "limit": 500}).json()
    assert body["page"] == 1
    assert body["limit"] == 100
    assert len(body["properties"]) == 100
    assert body["total"] == 150


def test_search_matches_eircode_case_insensitively(client, dublin_and_cork):
    body = client.get("/properties", params={"search": "t12 c007"}).json()
    assert body["total"] == 1
    assert body["properties"][0]["address"] == "7 Cork Street"
    assert body["properties"][0]["eircode"] == "T12 C007"


def test_search_treats_like_wildcards_literally(client, add_sales):
    add_sales([
        make_sale("100% Main Street", 250_000, date(2024, 1, 2)),
        make_sale("100 Main Street", 260_000, date(2024, 1, 3)),
    ])
    body = client.get("/properties", params={"search": "100%"}).json()
    assert [p["address"] for p in body["properties"]] == ["100% Main Street"]


def test_price_bounds_are_inclusive_and_year_exact(client, add_sales):
    add_sales([
        make_sale("A", 100_000, date(2023, 5, 1)),
        make_sale("B", 200_000, date(2024, 5, 1)),
        make_sale("C", 300_000, date(2024, 6, 1)),
        make_sale("D", 400_000, date(2024, 7, 1)),
    ])
    body = client.get(
        "/properties",
        params={"minPrice": 200000, "maxPrice": 300000, "year": 2024, "sortBy": "saledate", "sortDirection": "asc"},
    ).json()
    assert [p["address"] for p in body["properties"]] == ["B", "C"]
    assert body["total"] == 2


def test_record_shape_is_camel_case_with_display_fields(client, add_sales):
    add_sales([
        make_sale("1 New Lane", 400_000, date(2024, 2, 1), county="Meath", eircode="C15 A1B2",
                  description="New Dwelling house /Apartment"),
    ])
    prop = client.get("/properties").json()["properties"][0]
    assert prop["saleDate"] == "2024-02-01"
    assert prop["fullAddress"] == "1 New Lane, Meath"
    assert prop["year"] == 2024
    assert prop["condition"] == "New"
    assert prop["priceInclVat"] == pytest.approx(454_000.0)


def test_invalid_sort_field_is_a_400(client):
    resp = client.get("/properties", params={"sortBy": "address"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation Error"


def test_invalid_min_price_is_a_400(client):
    resp = client.get("/properties", params={"minPrice": "lots"})
    assert resp.status_code == 400
    assert "minPrice" in resp.json()["details"]


def test_unreachable_database_is_a_503(tmp_path, settings):
    from fastapi.testclient import TestClient

    from propertysales.main import create_app

    broken = settings.model_copy(update={"DATABASE_URL": f"sqlite:///{tmp_path / 'missing' / 'x.db'}"})
    with TestClient(create_app(broken)) as c:
        resp = c.get("/properties")
    assert resp.status_code == 503
    assert resp.json()["error"] == "Service Unavailable"


def test_huge_page_returns_an_empty_page(client, dublin_and_cork):
    resp = client.get("/properties", params={"page": "99999999999999999999"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["properties"] == []
    assert body["total"] == 150


@pytest.mark.parametrize("value", ["0", "99999999999999999999"])
def test_out_of_range_year_is_a_400(client, value):
    resp = client.get("/properties", params={"year": value})
    assert resp.status_code == 400
    assert "year" in resp.json()["details"]


# ───── pooled connections are handed back on every exit path ─────
class _PoolTracker:
    def __init__(self, engine):
        self.checkouts = 0
        self.outstanding = 0
        event.listen(engine.sync_engine, "checkout", self._checkout)
        event.listen(engine.sync_engine, "checkin", self._checkin)

    def _checkout(self, dbapi_connection, record, proxy):
        self.checkouts += 1
        self.outstanding += 1

    def _checkin(self, dbapi_connection, record):
        self.outstanding -= 1


def test_connection_released_after_success(settings, sync_engine, add_sales):
    add_sales([make_sale("1 Main Street", 300_000, date(2024, 1, 5))])
    with TestClient(create_app(settings)) as c:
        pool = _PoolTracker(c.app.state.db.engine)
        assert c.get("/properties").status_code == 200
    assert pool.checkouts >= 1
    assert pool.outstanding == 0


def test_connection_released_after_validation_error(settings, sync_engine):
    with TestClient(create_app(settings)) as c:
        pool = _PoolTracker(c.app.state.db.engine)
        assert c.get("/properties", params={"sortBy": "address"}).status_code == 400
    assert pool.outstanding == 0


def test_connection_released_after_query_failure(settings, sync_engine, monkeypatch):
    async def failing(session, query):
        await session.execute(text("SELECT 1"))
        raise QueryExecutionError("boom")

    monkeypatch.setattr("propertysales.api.properties.search_properties", failing)
    with TestClient(create_app(settings)) as c:
        pool = _PoolTracker(c.app.state.db.engine)
        assert c.get("/properties").status_code == 500
    assert pool.checkouts >= 1
    assert pool.outstanding == 0


def test_connection_released_after_timeout(settings, sync_engine, monkeypatch):
    async def slow(session, query):
        await session.execute(text("SELECT 1"))
        await asyncio.sleep(5)

    monkeypatch.setattr("propertysales.api.properties.search_properties", slow)
    with TestClient(create_app(settings.model_copy(update={"REQUEST_TIMEOUT_SECONDS": 0.05}))) as c:
        pool = _PoolTracker(c.app.state.db.engine)
        resp = c.get("/properties")
    assert resp.status_code == 504
    assert resp.json()["error"] == "Gateway Timeout"
    assert pool.checkouts >= 1
    assert pool.outstanding == 0
