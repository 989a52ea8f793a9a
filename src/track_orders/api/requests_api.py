"""
Requests API - FastAPI router for operator request management.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
import structlog

from ..config.settings import get_settings
from ..engine import InvalidManualRange, InvalidManualRangeError
from ..services.price_copy import client_portal_link, format_price_lines
from ..services.request_service import RequestService
from .deps import require_operator
from .schemas import BatchTotalPayload, LinkRequestsPayload, PricingUpdate, RequestSummary
from .state import get_request_service

router = APIRouter(
    prefix="/api/requests",
    tags=["requests"],
    dependencies=[Depends(require_operator)],
)

log = structlog.get_logger(__name__)


def invalid_range_error(invalid: InvalidManualRange) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "error": "invalid_manual_range",
            "message": invalid.message,
            "low": invalid.low,
            "high": invalid.high,
        },
    )


# Endpoints

@router.get("", response_model=list[RequestSummary])
async def list_requests(service: RequestService = Depends(get_request_service)):
    """List all requests."""
    return [RequestSummary.from_request(r) for r in service.list_requests()]


@router.get("/search", response_model=list[RequestSummary])
async def search_requests(
    email: str = Query(min_length=1),
    service: RequestService = Depends(get_request_service),
):
    """Find requests whose submitted email contains the search term."""
    return [RequestSummary.from_request(r) for r in service.search_by_email(email)]


@router.get("/{request_id}/cost")
async def get_cost(request_id: str, service: RequestService = Depends(get_request_service)):
    """Cost breakdown with trace for one request."""
    try:
        result = service.cost_breakdown(request_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if isinstance(result, InvalidManualRange):
        raise invalid_range_error(result)

    return {**result.to_dict(), "trace": result.get_trace_text()}


@router.get("/{request_id}/price-copy")
async def get_price_copy(request_id: str, service: RequestService = Depends(get_request_service)):
    """Price lines and portal link for outgoing email copy."""
    request = service.get_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail=f"Request with ID '{request_id}' not found")

    result = service.cost_breakdown(request_id)
    if isinstance(result, InvalidManualRange):
        raise invalid_range_error(result)

    return {
        "price_lines": format_price_lines(result),
        "portal_link": client_portal_link(get_settings().public_base_url, request),
    }


@router.put("/{request_id}/pricing", response_model=RequestSummary)
async def update_pricing(
    request_id: str,
    updates: PricingUpdate,
    service: RequestService = Depends(get_request_service),
):
    """Set final price and manual estimate range. Inverted ranges are rejected, not repaired."""
    try:
        updated = service.update_pricing(request_id, **updates.model_dump())
    except InvalidManualRangeError as e:
        raise invalid_range_error(e.invalid)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RequestSummary.from_request(updated)


@router.post("/link", response_model=list[RequestSummary])
async def link_requests(payload: LinkRequestsPayload, service: RequestService = Depends(get_request_service)):
    """Link requests to a registered account."""
    try:
        linked = service.link_requests_to_user(payload.request_ids, payload.user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [RequestSummary.from_request(r) for r in linked]


@router.post("/batch-total")
async def batch_total(payload: BatchTotalPayload, service: RequestService = Depends(get_request_service)):
    """Total suggested cost of a selection of requests."""
    try:
        total = service.batch_total(payload.request_ids)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"count": len(set(payload.request_ids)), "total_cost": total}
