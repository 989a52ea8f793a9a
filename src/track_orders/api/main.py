from dataclasses import replace
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..config.logging_setup import configure_logging
from ..config.settings import get_settings
from ..engine import CostBreakdown, InvalidManualRange, PricingEngine
from ..policy import AccessAuthorizer, ViewerContext
from ..policy.access_authorizer import DENIED_MESSAGE
from ..services.price_copy import client_portal_link
from ..services.request_service import RequestService
from .deps import get_viewer
from .requests_api import invalid_range_error, router as requests_router
from .schemas import QuoteRequest, RequestCreate, RequestCreated
from .state import get_authorizer, get_engine, get_request_service

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)
log = structlog.get_logger(__name__)

app = FastAPI(
    title="Track Orders API",
    description="Pricing and access decisions for backing-track requests",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Operator request management
app.include_router(requests_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Track Orders API Active"}


@app.get("/catalog")
async def get_catalog(engine: PricingEngine = Depends(get_engine)):
    """Price catalog, including marketing display ranges per track type."""
    return engine.catalog.to_dict()


@app.post("/quote")
async def quote(req: QuoteRequest, engine: PricingEngine = Depends(get_engine)):
    result = engine.compute_cost(req.to_options())
    if isinstance(result, InvalidManualRange):
        raise invalid_range_error(result)
    for warning in result.warnings:
        log.warning("unknown_option_value", detail=warning)
    return result.to_dict()


@app.post("/requests", response_model=RequestCreated, status_code=201)
async def submit_request(
    req: RequestCreate,
    viewer: ViewerContext = Depends(get_viewer),
    service: RequestService = Depends(get_request_service),
):
    """Public submission. Signed-in customers own the request; everyone else gets a guest link."""
    created = service.create_request(req.to_backing_request(user_id=viewer.authenticated_user_id))
    return RequestCreated(
        id=created.id,
        portal_link=client_portal_link(get_settings().public_base_url, created),
        linked_to_account=bool(created.user_id),
    )


@app.get("/track/{request_id}")
async def track_view(
    request_id: str,
    email: Optional[str] = Query(default=None),
    viewer: ViewerContext = Depends(get_viewer),
    service: RequestService = Depends(get_request_service),
    authorizer: AccessAuthorizer = Depends(get_authorizer),
):
    """Public track view for customers, by sign-in or guest link."""
    request = service.get_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="Request not found")

    # Legacy email links are upgraded to a token first, then authorized like any token
    if email and not viewer.presented_token and not viewer.is_authenticated:
        upgraded = service.upgrade_legacy_link(request_id, email)
        if upgraded is not None:
            request = upgraded
            viewer = replace(viewer, presented_token=upgraded.guest_access_token)

    decision = authorizer.authorize(request.to_record(), viewer)
    if not decision.granted:
        log.info("track_view_denied", request_id=request_id, reason=decision.reason.value)
        raise HTTPException(status_code=403, detail=DENIED_MESSAGE)

    result = service.cost_breakdown(request_id)
    cost = result.to_dict() if isinstance(result, CostBreakdown) else None

    return {
        "id": request.id,
        "name": request.name,
        "song_title": request.song_title,
        "status": request.status,
        "cost": cost,
        "access": decision.reason.value,
        "prompt_account_claim": decision.prompt_account_claim,
        "portal_link": client_portal_link(get_settings().public_base_url, request),
    }
