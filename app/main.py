"""FastAPI entrypoint for the Company Search Aggregator.

Wires CORS, the lifespan hooks that report and release the shared
provider/LLM clients, and the industry search router.
"""

# Environment must be loaded before settings are first read
from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
API_TITLE = "Company Search Aggregator API"
API_DESCRIPTION = """
Searches Apollo, People Data Labs and Prospeo concurrently for companies
matching industry, headcount, location and firmographic filters.

Results are merged by domain (first provider wins, later providers fill
gaps), filtered for industry relevance and enriched with AI-inferred
details and homepage social links.
"""

# Headers sent by the browser client alongside the bearer token
CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report configured collaborators on startup, close clients on shutdown."""
    from app.services import get_auth_service, get_search_service

    service = get_search_service()
    if service.is_configured:
        logger.info(f"Company data providers: {', '.join(service.provider_names)}")
    else:
        logger.warning("No company data providers configured - searches will be rejected")
    if not service.has_llm:
        logger.warning("OpenRouter not configured - AI gap-fill disabled")
    if not get_auth_service().is_configured:
        logger.warning("Supabase auth not configured - authenticated requests will be rejected")

    yield

    await service.close()
    logger.info("Provider and LLM clients closed")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
)


def _allowed_origins() -> list[str]:
    """Origins from CORS_ORIGINS (comma-separated), any origin when unset."""
    raw = os.getenv("CORS_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=CORS_ALLOWED_HEADERS,
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """API metadata and the available search endpoints."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "endpoints": {
            "search": "POST /api/industry-search",
            "status": "GET /api/industry-search/status",
        },
        "docs": "/docs",
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


from app.routers import search

app.include_router(search.router, prefix="/api", tags=["search"])
