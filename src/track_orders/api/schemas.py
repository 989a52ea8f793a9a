"""Pydantic models for the HTTP API."""
from typing import Optional, Union

from pydantic import BaseModel, Field

from ..engine import RequestOptions
from ..services.request_service import BackingRequest, normalize_backing_types


class QuoteRequest(BaseModel):
    """Options to price. backing_type accepts the legacy single-string shape."""
    track_type: Optional[str] = None
    backing_type: Union[str, list[str], None] = None
    additional_services: list[str] = Field(default_factory=list)
    final_price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    estimated_cost_low: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    estimated_cost_high: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    def to_options(self) -> RequestOptions:
        return RequestOptions(
            track_type=self.track_type,
            backing_types=normalize_backing_types(self.backing_type),
            additional_services=normalize_backing_types(self.additional_services),
            manual_final_price=self.final_price,
            manual_estimate_low=self.estimated_cost_low,
            manual_estimate_high=self.estimated_cost_high,
        )


class RequestCreate(BaseModel):
    """Public submission form payload."""
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    song_title: str = Field(min_length=1)
    track_type: Optional[str] = None
    backing_type: Union[str, list[str], None] = None
    additional_services: list[str] = Field(default_factory=list)

    def to_backing_request(self, user_id: Optional[str] = None) -> BackingRequest:
        return BackingRequest(
            name=self.name.strip(),
            email=self.email.strip(),
            song_title=self.song_title.strip(),
            user_id=user_id,
            track_type=self.track_type,
            backing_types=normalize_backing_types(self.backing_type),
            additional_services=normalize_backing_types(self.additional_services),
        )


class RequestCreated(BaseModel):
    id: str
    portal_link: str
    linked_to_account: bool


class PricingUpdate(BaseModel):
    """Operator's manual price fields. Omitted fields are cleared."""
    final_price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    estimated_cost_low: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    estimated_cost_high: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class LinkRequestsPayload(BaseModel):
    request_ids: list[str] = Field(min_length=1)
    user_id: str = Field(min_length=1)


class BatchTotalPayload(BaseModel):
    request_ids: list[str] = Field(default_factory=list)


class RequestSummary(BaseModel):
    """Operator list view of a request."""
    id: str
    name: str
    email: str
    song_title: str
    status: str
    user_id: Optional[str]
    track_type: Optional[str]
    backing_types: list[str]
    additional_services: list[str]
    final_price: Optional[float]
    estimated_cost_low: Optional[float]
    estimated_cost_high: Optional[float]
    created_at: str

    @classmethod
    def from_request(cls, request: BackingRequest) -> 'RequestSummary':
        return cls(
            id=request.id,
            name=request.name,
            email=request.email,
            song_title=request.song_title,
            status=request.status,
            user_id=request.user_id,
            track_type=request.track_type,
            backing_types=sorted(request.backing_types),
            additional_services=sorted(request.additional_services),
            final_price=request.final_price,
            estimated_cost_low=request.estimated_cost_low,
            estimated_cost_high=request.estimated_cost_high,
            created_at=request.created_at,
        )
