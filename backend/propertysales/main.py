# backend/propertysales/main.py
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from propertysales.api.csv_files import router as csv_files_router          # /list-csv-files
from propertysales.api.deps import ClientDisconnected, get_database
from propertysales.api.properties import router as properties_router        # /properties
from propertysales.api.trends import router as trends_router                # /trends, /price-comparison
from propertysales.core.errors import PropertySalesError
from propertysales.core.settings import Settings, get_settings
from propertysales.db.db_connection import Database

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # pool lives exactly as long as the process serves requests
        app.state.db = Database(settings)
        try:
            yield
        finally:
            await app.state.db.dispose()
            logger.info("database engine disposed")

    app = FastAPI(
        title="Property Sales Register API",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ───── CORS ─────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=(["*"] if settings.API_ALLOW_ALL else settings.cors_origins()),
        allow_origin_regex=(".*" if settings.API_ALLOW_ALL else None),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,  # no session cookies
    )

    # ───── errors ─────
    @app.exception_handler(PropertySalesError)
    async def _property_sales_error(request: Request, exc: PropertySalesError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.title, "details": exc.message},
        )

    @app.exception_handler(ClientDisconnected)
    async def _client_disconnected(request: Request, exc: ClientDisconnected):
        # nobody is listening; nginx-style "client closed request"
        return Response(status_code=499)

    # ───── Health ─────
    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/health/db")
    async def health_db(db: Database = Depends(get_database)):
        try:
            return {"db": await db.ping()}
        except Exception:
            logger.exception("database health check failed")
            return {"db": False}

    # ───── Routers ─────
    app.include_router(properties_router)
    app.include_router(trends_router)
    app.include_router(csv_files_router)

    @app.middleware("http")
    async def log_timing(request: Request, call_next):
        t0 = time.perf_counter()
        resp = await call_next(request)
        dt = (time.perf_counter() - t0) * 1000
        logger.info(
            "[%s] %s?%s -> %s %.1fms",
            request.method, request.url.path, request.query_params, resp.status_code, dt,
        )
        return resp

    return app


app = create_app()
