"""Companies router: reconciled company lookups by name or by domain."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.models import CompanyLookupResponse
from app.services.company_lookup_service import (
    CompanyLookupService,
    CompanyNotFoundError,
    get_company_lookup_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _sanitize_for_log(value: str, max_length: int = 100) -> str:
    """Sanitize a string for safe logging to prevent log injection."""
    sanitized = "".join(c if c.isprintable() and c not in "\n\r\t" else " " for c in value)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


@router.get(
    "/company",
    response_model=CompanyLookupResponse,
    summary="Look up a company by name",
)
async def get_company_by_name(
    q: Annotated[str | None, Query(max_length=200, description="Company name, e.g. Google")] = None,
    service: CompanyLookupService = Depends(get_company_lookup_service),
) -> CompanyLookupResponse:
    """Reconcile Wikipedia and Wikidata data for a company name.

    Raises:
        HTTPException: 400 if no name was given, 404 if nothing matches.
    """
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a company name via ?q=Google",
        )

    try:
        return await service.lookup_by_name(q)
    except CompanyNotFoundError as e:
        logger.info(f"Company lookup miss for {_sanitize_for_log(q)}: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get(
    "/company/by-domain",
    response_model=CompanyLookupResponse,
    summary="Look up a company by website domain",
)
async def get_company_by_domain(
    domain: Annotated[str | None, Query(max_length=253, description="Website domain, e.g. google.com")] = None,
    service: CompanyLookupService = Depends(get_company_lookup_service),
) -> CompanyLookupResponse:
    """Reconcile Wikidata and Wikipedia data starting from a website domain.

    Raises:
        HTTPException: 400 if no domain was given, 404 if nothing matches.
    """
    if not domain or not domain.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a company domain via ?domain=google.com",
        )

    try:
        return await service.lookup_by_domain(domain)
    except CompanyNotFoundError as e:
        logger.info(f"Domain lookup miss for {_sanitize_for_log(domain)}: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
