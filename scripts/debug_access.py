import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from track_orders.engine import PricingEngine, RequestOptions
from track_orders.policy import AccessAuthorizer, RequestRecord, ViewerContext


def debug():
    authorizer = AccessAuthorizer()

    owned = RequestRecord(owner_user_id="U1", guest_access_token="T1")
    unlinked = RequestRecord(guest_access_token="T1")

    cases = [
        ("A: other user with a shared token", owned, ViewerContext(authenticated_user_id="U2", presented_token="T1")),
        ("B: owner signed in", owned, ViewerContext(authenticated_user_id="U1")),
        ("C: guest link, unlinked request", unlinked, ViewerContext(presented_token="T1")),
        ("D: nothing presented", owned, ViewerContext()),
        ("E: operator", owned, ViewerContext(authenticated_user_id="OP", is_operator=True)),
    ]

    print("--- Access decisions ---")
    for label, record, viewer in cases:
        decision = authorizer.authorize(record, viewer)
        status = "granted" if decision.granted else "denied"
        claim = " (prompt account claim)" if decision.prompt_account_claim else ""
        print(f"{label}: {status} / {decision.reason.value}{claim}")

    print("\n--- Pricing example ---")
    engine = PricingEngine()
    options = RequestOptions(
        track_type="polished",
        backing_types={"full-song"},
        additional_services={"rush-order", "exclusive-ownership"},
    )
    breakdown = engine.quote(options)
    print(breakdown.get_trace_text())
    print(f"\nPublished range: ${breakdown.display_low:.2f} - ${breakdown.display_high:.2f}")


if __name__ == "__main__":
    debug()
