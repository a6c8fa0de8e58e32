"""FastAPI application for the Company Lookup API.

Creates the application instance, configures CORS and logging and registers
the companies router.
"""

# Load environment variables before any other imports
from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers import companies

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
API_TITLE = "Company Lookup API"
API_DESCRIPTION = """
Company Lookup API.

Builds one canonical company record from Wikipedia, Wikidata, market data,
OpenCorporates and the company's own homepage:
- `GET /api/company?q=<name>`
- `GET /api/company/by-domain?domain=<domain>`
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: log configuration, close HTTP clients on shutdown."""
    from app.services.company_lookup_service import get_company_lookup_service
    from app.services.market_data_service import get_market_data_service

    if get_market_data_service().has_finnhub:
        logger.info("Finnhub API is configured")
    else:
        logger.info("Finnhub API key not set - using Yahoo Finance only")
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    await get_company_lookup_service().close()
    logger.info("HTTP clients closed")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Allow the local dev servers by default; override with CORS_ORIGINS
# (comma-separated list)
_default_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
if _cors_origins_env:
    ALLOWED_ORIGINS = [
        origin.strip() for origin in _cors_origins_env.split(",") if origin.strip()
    ]
else:
    ALLOWED_ORIGINS = _default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """Root endpoint returning API information."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


app.include_router(companies.router, prefix="/api", tags=["companies"])
