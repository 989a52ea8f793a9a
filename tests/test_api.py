"""
HTTP API tests using FastAPI's TestClient.

The request store and operator allowlist are swapped for per-test instances
through dependency overrides.
"""
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from track_orders.api.main import app
from track_orders.api.state import get_allowlist, get_request_service
from track_orders.policy import OperatorAllowlist
from track_orders.policy.access_authorizer import DENIED_MESSAGE
from track_orders.services.request_service import BackingRequest, RequestService


OPERATOR = {"X-User-Id": "OPS", "X-User-Email": "ops@example.com"}
OWNER = {"X-User-Id": "U1", "X-User-Email": "ada@example.com"}
STRANGER = {"X-User-Id": "U2", "X-User-Email": "bo@example.com"}

SUBMISSION = {
    "name": "Ada Singer",
    "email": "ada@example.com",
    "song_title": "Defying Gravity",
    "track_type": "polished",
    "backing_type": ["full-song"],
    "additional_services": ["rush-order", "exclusive-ownership"],
}


@pytest.fixture
def service(tmp_path):
    return RequestService(tmp_path / "requests.csv")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_request_service] = lambda: service
    app.dependency_overrides[get_allowlist] = lambda: OperatorAllowlist(["ops@example.com"])
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_catalog(client):
    data = client.get("/catalog").json()

    assert [t["key"] for t in data["track_types"]] == ["quick", "one-take", "polished"]


def test_quote(client):
    response = client.post("/quote", json={
        "track_type": "polished",
        "backing_type": "full-song",
        "additional_services": ["rush-order", "exclusive-ownership"],
    })

    assert response.status_code == 200
    data = response.json()
    assert data["total_cost"] == 80.0
    assert (data["display_low"], data["display_high"]) == (40.0, 120.0)


def test_quote_inverted_range(client):
    response = client.post("/quote", json={
        "track_type": "quick",
        "estimated_cost_low": 40,
        "estimated_cost_high": 10,
    })

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_manual_range"


@pytest.mark.parametrize("field", ["final_price", "estimated_cost_low", "estimated_cost_high"])
def test_quote_rejects_negative_overrides(client, field):
    response = client.post("/quote", json={"track_type": "quick", field: -5})

    assert response.status_code == 422


def test_quote_final_price_with_one_sided_bound(client):
    response = client.post("/quote", json={"track_type": "quick", "final_price": 60, "estimated_cost_low": 50})

    assert response.status_code == 200
    assert response.json()["display_point"] == 60.0


def test_guest_submission_and_token_view(client, service):
    response = client.post("/requests", json=SUBMISSION)

    assert response.status_code == 201
    created = response.json()
    assert created["linked_to_account"] is False
    assert "/track/" in created["portal_link"] and "?token=" in created["portal_link"]

    token = service.get_request(created["id"]).guest_access_token
    view = client.get(f"/track/{created['id']}", params={"token": token})

    assert view.status_code == 200
    data = view.json()
    assert data["access"] == "guest_token_match"
    assert data["prompt_account_claim"] is True
    assert data["cost"]["total_cost"] == 80.0


def test_signed_in_submission_is_owned(client, service):
    created = client.post("/requests", json=SUBMISSION, headers=OWNER).json()

    assert created["linked_to_account"] is True
    assert service.get_request(created["id"]).guest_access_token is None

    view = client.get(f"/track/{created['id']}", headers=OWNER)
    assert view.status_code == 200
    assert view.json()["access"] == "owner_match"


def test_wrong_owner_with_token_is_denied(client, service):
    request = service.create_request(BackingRequest(
        name="Ada", email="ada@example.com", song_title="Song", track_type="quick",
        user_id="U1", guest_access_token="T1",
    ))

    response = client.get(f"/track/{request.id}", params={"token": "T1"}, headers=STRANGER)

    assert response.status_code == 403
    assert response.json()["detail"] == DENIED_MESSAGE


def test_no_credential_is_denied_with_same_message(client, service):
    request = service.create_request(BackingRequest(name="Ada", email="ada@example.com", song_title="Song"))

    response = client.get(f"/track/{request.id}")

    assert response.status_code == 403
    assert response.json()["detail"] == DENIED_MESSAGE


def test_unknown_request_is_404(client):
    assert client.get("/track/missing", headers=OPERATOR).status_code == 404


def test_operator_views_any_request(client, service):
    request = service.create_request(BackingRequest(
        name="Ada", email="ada@example.com", song_title="Song", user_id="U1",
    ))

    response = client.get(f"/track/{request.id}", headers=OPERATOR)

    assert response.status_code == 200
    assert response.json()["access"] == "operator_override"


def test_legacy_email_link_is_upgraded(client, service):
    service._write_requests([BackingRequest(
        id="LEGACY-1", name="Old", email="old@example.com", song_title="Memory", track_type="one-take",
    )])

    denied = client.get("/track/LEGACY-1", params={"email": "nope@example.com"})
    assert denied.status_code == 403

    response = client.get("/track/LEGACY-1", params={"email": "OLD@example.com"})
    assert response.status_code == 200
    data = response.json()
    assert data["access"] == "guest_token_match"

    token = service.get_request("LEGACY-1").guest_access_token
    assert token
    assert data["portal_link"].endswith(f"?token={token}")

    # The email path closes once a token exists
    assert client.get("/track/LEGACY-1", params={"email": "old@example.com"}).status_code == 403


# Operator endpoints

def test_operator_endpoints_require_sign_in(client):
    assert client.get("/api/requests").status_code == 401
    assert client.get("/api/requests", headers=STRANGER).status_code == 403
    assert client.get("/api/requests", headers={"X-User-Email": "ops@example.com"}).status_code == 401


def test_operator_list_and_search(client, service):
    service.create_request(BackingRequest(name="Ada", email="ada@example.com", song_title="Song"))
    service.create_request(BackingRequest(name="Bo", email="bo@example.org", song_title="Song"))

    listed = client.get("/api/requests", headers=OPERATOR).json()
    assert len(listed) == 2

    found = client.get("/api/requests/search", params={"email": "EXAMPLE.COM"}, headers=OPERATOR).json()
    assert [r["email"] for r in found] == ["ada@example.com"]


def test_operator_pricing_update(client, service):
    request = service.create_request(BackingRequest(
        name="Ada", email="ada@example.com", song_title="Song", track_type="polished",
        backing_types=frozenset({"full-song"}),
    ))

    response = client.put(
        f"/api/requests/{request.id}/pricing",
        json={"final_price": 45, "estimated_cost_low": 20, "estimated_cost_high": 50},
        headers=OPERATOR,
    )
    assert response.status_code == 200
    assert response.json()["final_price"] == 45.0

    copy = client.get(f"/api/requests/{request.id}/price-copy", headers=OPERATOR).json()
    assert copy["price_lines"][0] == "The final agreed cost for your track is: $45.00"

    cost = client.get(f"/api/requests/{request.id}/cost", headers=OPERATOR).json()
    assert cost["display_point"] == 45.0
    assert "Final Price" in cost["trace"]


def test_operator_pricing_update_rejects_inverted_range(client, service):
    request = service.create_request(BackingRequest(name="Ada", email="ada@example.com", song_title="Song"))

    response = client.put(
        f"/api/requests/{request.id}/pricing",
        json={"estimated_cost_low": 40, "estimated_cost_high": 10},
        headers=OPERATOR,
    )

    assert response.status_code == 422
    assert response.json()["detail"]["low"] == 40.0
    assert service.get_request(request.id).estimated_cost_low is None


def test_operator_pricing_update_unknown_request(client):
    response = client.put("/api/requests/missing/pricing", json={"final_price": 10}, headers=OPERATOR)

    assert response.status_code == 404


def test_operator_link_and_batch_total(client, service):
    a = service.create_request(BackingRequest(name="Ada", email="ada@example.com", song_title="A", track_type="polished"))
    b = service.create_request(BackingRequest(name="Ada", email="ada@example.com", song_title="B", track_type="quick"))

    linked = client.post("/api/requests/link", json={"request_ids": [a.id, b.id], "user_id": "U1"}, headers=OPERATOR)
    assert linked.status_code == 200
    assert {r["user_id"] for r in linked.json()} == {"U1"}

    total = client.post("/api/requests/batch-total", json={"request_ids": [a.id, b.id]}, headers=OPERATOR).json()
    assert total == {"count": 2, "total_cost": 20.0}

    missing = client.post("/api/requests/link", json={"request_ids": ["nope"], "user_id": "U1"}, headers=OPERATOR)
    assert missing.status_code == 404
