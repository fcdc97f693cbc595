"""Industry search router for the Company Search Aggregator.

Provides the multi-provider company search endpoint and a status endpoint
describing which collaborators are configured.
"""

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.core.exceptions import AuthError, ConfigurationError
from app.models import CompanySearchQuery, CompanySearchResponse, ErrorResponse
from app.services.auth_service import get_auth_service
from app.services.search_service import get_search_service

logger = logging.getLogger(__name__)


def _sanitize_for_log(value: str, max_length: int = 100) -> str:
    """Sanitize a string for safe logging to prevent log injection."""
    # Remove newlines, carriage returns, and other control characters
    sanitized = "".join(c if c.isprintable() and c not in "\n\r\t" else " " for c in value)
    # Truncate to max length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


router = APIRouter()


@router.post(
    "/industry-search",
    response_model=CompanySearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search companies across providers",
    description=(
        "Search companies by industry, size, location and other firmographic "
        "filters across every configured provider, merged by domain."
    ),
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        422: {"model": ErrorResponse, "description": "Invalid search filters"},
        500: {"model": ErrorResponse, "description": "Configuration or unexpected error"},
    },
)
async def industry_search(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Any:
    """Search companies across all configured providers.

    Args:
        request: Raw request; the JSON body is a ``CompanySearchQuery``.
        authorization: ``Bearer <token>`` header verified with Supabase Auth.

    Returns:
        CompanySearchResponse on success, or an ``ErrorResponse`` envelope
        with status 401/422/500.
    """
    search_service = get_search_service()

    # Checked before auth so a misconfigured deployment makes no network calls
    if not search_service.is_configured:
        logger.error("Industry search called with no providers configured")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "No company data providers configured. Set APOLLO_API_KEY, PDL_API_KEY or PROSPEO_API_KEY.",
        )

    try:
        await get_auth_service().verify(authorization)
    except AuthError as e:
        return _error(status.HTTP_401_UNAUTHORIZED, str(e))
    except ConfigurationError as e:
        logger.error(f"Auth configuration error: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    try:
        raw_body = await request.body()
        payload = json.loads(raw_body) if raw_body.strip() else {}
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")
        query = CompanySearchQuery.model_validate(payload)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, f"Invalid search filters: {errors}")
    except ValueError as e:
        logger.error(f"Industry search received a malformed body: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    logger.info(
        "Industry search: industry=%s, location=%s, employees=%s-%s, page=%s, limit=%s",
        _sanitize_for_log(query.industry or ""),
        _sanitize_for_log(query.location or ""),
        query.employee_count_min,
        query.employee_count_max,
        query.page,
        query.limit,
    )

    try:
        return await search_service.search(query)
    except ConfigurationError as e:
        logger.error(f"Industry search configuration error: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception as e:
        logger.exception(f"Industry search error: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Search failed")


@router.get(
    "/industry-search/status",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Get industry search status",
    description="Check which providers and collaborators are configured.",
)
async def get_industry_search_status() -> dict:
    """Get the current status of the industry search service."""
    search_service = get_search_service()
    auth_service = get_auth_service()

    return {
        "configured": search_service.is_configured,
        "providers": search_service.provider_names,
        "ai_enrichment": search_service.has_llm,
        "auth": auth_service.is_configured,
    }
