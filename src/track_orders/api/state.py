"""Shared service instances for the API, built lazily from settings."""
from typing import Optional

from ..config.settings import get_settings
from ..engine import PricingEngine
from ..policy import AccessAuthorizer, OperatorAllowlist
from ..services.request_service import RequestService


_engine: Optional[PricingEngine] = None
_request_service: Optional[RequestService] = None
_allowlist: Optional[OperatorAllowlist] = None
_authorizer = AccessAuthorizer()


def get_engine() -> PricingEngine:
    """Get the global pricing engine."""
    global _engine
    if _engine is None:
        _engine = PricingEngine.from_settings(get_settings())
    return _engine


def get_request_service() -> RequestService:
    """Get the global request store."""
    global _request_service
    if _request_service is None:
        _request_service = RequestService(get_settings().requests_csv, engine=get_engine())
    return _request_service


def get_allowlist() -> OperatorAllowlist:
    global _allowlist
    if _allowlist is None:
        _allowlist = OperatorAllowlist(get_settings().operator_emails)
    return _allowlist


def get_authorizer() -> AccessAuthorizer:
    return _authorizer
