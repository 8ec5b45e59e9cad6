"""API endpoints for reconciliation operations."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..auth import verify_api_key, limiter
from ..settings import get_rate_limit
from .models import MatchRecord, OverrideStatus
from .review import ReviewError, apply_override
from .service import REPORT_FORMATS, ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


class ReconciliationRequestBody(BaseModel):
    """Request body for a reconciliation job: raw rows for both ledgers."""
    merchant: List[Dict[str, Any]] = Field(default_factory=list, description="Merchant ledger rows")
    bank: List[Dict[str, Any]] = Field(default_factory=list, description="Bank statement rows")
    amount_tolerance: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Largest amount difference still treated as a match",
    )


class OverrideRequestBody(BaseModel):
    """Request body for attaching a review decision to a match."""
    match: MatchRecord
    override_status: OverrideStatus
    override_reason: str = Field(..., min_length=1)


def _service(amount_tolerance: Optional[Decimal]) -> ReconciliationService:
    try:
        return ReconciliationService(amount_tolerance=amount_tolerance)
    except ValueError as e:
        logger.error(f"Invalid reconciliation configuration: {e}")
        raise HTTPException(status_code=500, detail="Server configuration error")


@router.post("/jobs")
@limiter.limit(get_rate_limit)
async def create_reconciliation_job(
    request: Request,
    body: ReconciliationRequestBody,
    api_key: str = Depends(verify_api_key),
):
    """
    Reconcile a merchant ledger against a bank statement.

    Rows are validated first; rejected rows are listed in the response and
    never reach the matcher. Returns the full report.
    """
    service = _service(body.amount_tolerance)

    logger.info(
        f"Starting reconciliation job: {len(body.merchant)} merchant rows, "
        f"{len(body.bank)} bank rows"
    )

    report = service.run(body.merchant, body.bank)
    return report.to_full_dict()


@router.post("/jobs/report")
@limiter.limit(get_rate_limit)
async def create_reconciliation_report(
    request: Request,
    body: ReconciliationRequestBody,
    include_details: bool = Query(default=True, description="Include detailed records"),
    format: str = Query(default="json", description="Output format: json, csv, text, detailed_text"),
    api_key: str = Depends(verify_api_key),
):
    """
    Reconcile and render the report in the requested format.

    JSON is returned as a JSON document; every other format as plain text.
    """
    if format not in REPORT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="format must be one of: json, csv, text, detailed_text"
        )

    service = _service(body.amount_tolerance)
    report = service.run(body.merchant, body.bank)

    if format == "json":
        return report.to_full_dict() if include_details else report.to_summary_dict()

    output = service.generate_report(
        report=report,
        format=format,
        include_details=include_details,
    )
    content_type = "text/csv" if format == "csv" else "text/plain"
    return PlainTextResponse(content=output, media_type=content_type)


@router.post("/matches/override")
async def override_match(
    body: OverrideRequestBody,
    api_key: str = Depends(verify_api_key),
):
    """Attach a reviewer's status and reason to a single match."""
    try:
        patched = apply_override(body.match, body.override_status, body.override_reason)
    except ReviewError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return patched.model_dump(mode="json")


@router.get("/health")
async def reconciliation_health():
    """Health check endpoint for reconciliation service."""
    return {"status": "healthy", "service": "reconciliation"}
