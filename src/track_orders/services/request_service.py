"""
Request Service - CSV-backed store for backing-track requests.

Adapter at the persistence boundary:
- normalizes legacy backing_type shapes into a set before pricing sees them
- issues a guest access token for every request created without an account
- blocks saves whose manual estimate range is inverted
- links requests to accounts and migrates legacy email links
"""
import csv
import json
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import structlog

from ..engine import PricingEngine, RequestOptions, CostBreakdown, InvalidManualRange, InvalidManualRangeError
from ..policy import RequestRecord, issue_guest_access_token, upgrade_legacy_link


log = structlog.get_logger(__name__)


def normalize_backing_types(raw) -> frozenset:
    """
    Normalize the historical backing_type field into a set of keys.

    Older records hold a single string, newer ones an array; CSV round trips
    turn arrays into JSON text or comma separated text.
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(v).strip() for v in raw if v and str(v).strip())

    text = str(raw).strip()
    if not text:
        return frozenset()
    if text.startswith('['):
        try:
            return normalize_backing_types(json.loads(text))
        except json.JSONDecodeError:
            text = text.strip('[]')
    return frozenset(v.strip().strip('"\'') for v in text.split(',') if v.strip().strip('"\''))


def _parse_optional_float(value) -> Optional[float]:
    if value is None or str(value).strip() == '':
        return None
    return float(value)


def _format_optional_float(value: Optional[float]) -> str:
    # repr round-trips exactly, so a stored final price reads back unchanged
    return '' if value is None else repr(float(value))


@dataclass
class BackingRequest:
    """A customer's backing-track request."""
    id: str = ""
    name: str = ""
    email: str = ""
    song_title: str = ""
    user_id: Optional[str] = None
    guest_access_token: Optional[str] = None
    track_type: Optional[str] = None
    backing_types: frozenset = field(default_factory=frozenset)
    additional_services: frozenset = field(default_factory=frozenset)
    final_price: Optional[float] = None
    estimated_cost_low: Optional[float] = None
    estimated_cost_high: Optional[float] = None
    status: str = "pending"
    created_at: str = ""

    def to_options(self) -> RequestOptions:
        """Pricing view of this request."""
        return RequestOptions(
            track_type=self.track_type,
            backing_types=self.backing_types,
            additional_services=self.additional_services,
            manual_final_price=self.final_price,
            manual_estimate_low=self.estimated_cost_low,
            manual_estimate_high=self.estimated_cost_high,
        )

    def to_record(self) -> RequestRecord:
        """Authorization view of this request."""
        return RequestRecord(
            owner_user_id=self.user_id or None,
            guest_access_token=self.guest_access_token or None,
            owner_email=self.email or None,
        )

    def to_csv_row(self) -> dict:
        """Convert to CSV row format."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'song_title': self.song_title,
            'user_id': self.user_id or '',
            'guest_access_token': self.guest_access_token or '',
            'track_type': self.track_type or '',
            'backing_type': json.dumps(sorted(self.backing_types)),
            'additional_services': json.dumps(sorted(self.additional_services)),
            'final_price': _format_optional_float(self.final_price),
            'estimated_cost_low': _format_optional_float(self.estimated_cost_low),
            'estimated_cost_high': _format_optional_float(self.estimated_cost_high),
            'status': self.status,
            'created_at': self.created_at,
        }

    @classmethod
    def from_csv_row(cls, row: dict) -> 'BackingRequest':
        """Create BackingRequest from CSV row."""
        return cls(
            id=row.get('id', ''),
            name=row.get('name', ''),
            email=row.get('email', ''),
            song_title=row.get('song_title', ''),
            user_id=row.get('user_id') or None,
            guest_access_token=row.get('guest_access_token') or None,
            track_type=row.get('track_type') or None,
            backing_types=normalize_backing_types(row.get('backing_type')),
            additional_services=normalize_backing_types(row.get('additional_services')),
            final_price=_parse_optional_float(row.get('final_price')),
            estimated_cost_low=_parse_optional_float(row.get('estimated_cost_low')),
            estimated_cost_high=_parse_optional_float(row.get('estimated_cost_high')),
            status=row.get('status') or 'pending',
            created_at=row.get('created_at', ''),
        )


class RequestService:
    """Service for managing backing-track requests."""

    CSV_COLUMNS = [
        'id', 'name', 'email', 'song_title', 'user_id', 'guest_access_token',
        'track_type', 'backing_type', 'additional_services', 'final_price',
        'estimated_cost_low', 'estimated_cost_high', 'status', 'created_at'
    ]

    def __init__(self, requests_csv_path: Path, engine: Optional[PricingEngine] = None):
        self.requests_csv_path = requests_csv_path
        self.engine = engine or PricingEngine()

    def list_requests(self) -> list[BackingRequest]:
        """List all requests from CSV."""
        requests = []
        if not self.requests_csv_path.exists():
            return requests

        with open(self.requests_csv_path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if not row.get('id'):
                    continue
                requests.append(BackingRequest.from_csv_row(row))

        return requests

    def get_request(self, request_id: str) -> Optional[BackingRequest]:
        """Get a single request by ID."""
        for request in self.list_requests():
            if request.id == request_id:
                return request
        return None

    def create_request(self, request: BackingRequest) -> BackingRequest:
        """
        Store a new request, issuing a guest token when it has no owner.

        The stored copy is returned; the caller's object is left untouched.
        """
        self.validate_pricing(request)

        request = replace(
            request,
            id=request.id or str(uuid.uuid4()),
            created_at=request.created_at or datetime.now(timezone.utc).isoformat(),
        )

        if self.get_request(request.id):
            raise ValueError(f"Request with ID '{request.id}' already exists")

        if not request.user_id and not request.guest_access_token:
            request = replace(request, guest_access_token=issue_guest_access_token())
            log.info("guest_token_issued", request_id=request.id)

        requests = self.list_requests()
        requests.append(request)
        self._write_requests(requests)

        return request

    def update_pricing(
        self,
        request_id: str,
        final_price: Optional[float] = None,
        estimated_cost_low: Optional[float] = None,
        estimated_cost_high: Optional[float] = None,
    ) -> BackingRequest:
        """Set the operator's manual price fields. Nothing is written if the range is inverted."""
        requests = self.list_requests()

        for i, request in enumerate(requests):
            if request.id == request_id:
                updated = replace(
                    request,
                    final_price=final_price,
                    estimated_cost_low=estimated_cost_low,
                    estimated_cost_high=estimated_cost_high,
                )
                self.validate_pricing(updated)
                requests[i] = updated
                self._write_requests(requests)
                return updated

        raise ValueError(f"Request with ID '{request_id}' not found")

    def validate_pricing(self, request: BackingRequest) -> CostBreakdown:
        """Price a request, raising InvalidManualRangeError for an inverted manual range."""
        result = self.engine.compute_cost(request.to_options())
        if isinstance(result, InvalidManualRange):
            log.warning(
                "manual_range_rejected",
                request_id=request.id or None,
                low=result.low,
                high=result.high,
            )
            raise InvalidManualRangeError(result)
        for warning in result.warnings:
            log.warning("unknown_option_value", request_id=request.id or None, detail=warning)
        return result

    def cost_breakdown(self, request_id: str) -> CostBreakdown | InvalidManualRange:
        """Cost breakdown for a stored request."""
        request = self.get_request(request_id)
        if request is None:
            raise ValueError(f"Request with ID '{request_id}' not found")
        result = self.engine.compute_cost(request.to_options())
        if isinstance(result, CostBreakdown):
            for warning in result.warnings:
                log.warning("unknown_option_value", request_id=request_id, detail=warning)
        return result

    def batch_total(self, request_ids: Iterable[str]) -> float:
        """Total suggested cost of the selected requests."""
        wanted = set(request_ids)
        selected = [r for r in self.list_requests() if r.id in wanted]
        missing = wanted - {r.id for r in selected}
        if missing:
            raise ValueError(f"Requests not found: {', '.join(sorted(missing))}")
        return self.engine.batch_total(r.to_options() for r in selected)

    def link_requests_to_user(self, request_ids: Iterable[str], user_id: str) -> list[BackingRequest]:
        """Link requests to a registered account. Existing guest tokens are kept."""
        if not user_id:
            raise ValueError("user_id is required")

        wanted = set(request_ids)
        requests = self.list_requests()
        found = {r.id for r in requests if r.id in wanted}
        missing = wanted - found
        if missing:
            raise ValueError(f"Requests not found: {', '.join(sorted(missing))}")

        linked = []
        for i, request in enumerate(requests):
            if request.id in wanted:
                requests[i] = replace(request, user_id=user_id)
                linked.append(requests[i])

        self._write_requests(requests)
        log.info("requests_linked", user_id=user_id, count=len(linked))
        return linked

    def search_by_email(self, term: str) -> list[BackingRequest]:
        """Administrative search: case-insensitive substring match on the submitted email."""
        needle = (term or "").strip().lower()
        if not needle:
            return []
        return [r for r in self.list_requests() if needle in (r.email or "").lower()]

    def upgrade_legacy_link(self, request_id: str, email: Optional[str]) -> Optional[BackingRequest]:
        """
        Issue a token for a legacy email-keyed link and persist it.

        Returns the upgraded request, or None when the migration path does not
        apply. Access must still be decided with the new token.
        """
        requests = self.list_requests()
        for i, request in enumerate(requests):
            if request.id != request_id:
                continue

            upgraded = upgrade_legacy_link(request.to_record(), email)
            if upgraded is None:
                return None

            requests[i] = replace(request, guest_access_token=upgraded.guest_access_token)
            self._write_requests(requests)
            log.info("legacy_link_upgraded", request_id=request_id)
            return requests[i]

        raise ValueError(f"Request with ID '{request_id}' not found")

    def _write_requests(self, requests: list[BackingRequest]):
        """Write requests back to CSV."""
        self.requests_csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.requests_csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for request in requests:
                writer.writerow(request.to_csv_row())
