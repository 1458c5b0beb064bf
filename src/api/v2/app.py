"""FastAPI application — price resolution API v2."""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.v2 import prices
from src.api.v2.errors import PriceNotFoundError, price_not_found_handler, value_error_handler
from src.core.config import settings
from src.core.logging_utils import configure_logging

VERSION = "2.0.0"

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "startup",
        version=VERSION,
        index_fund_provider=settings.index_fund_price_provider,
        crypto_provider=settings.crypto_price_provider,
    )
    yield
    logger.info("shutdown")


app = FastAPI(
    title="Price Resolver API",
    version=VERSION,
    description="Current instrument prices by ticker, ISIN or crypto symbol",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices.router, prefix="/api/v2")

app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(PriceNotFoundError, price_not_found_handler)


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}
