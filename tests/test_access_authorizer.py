"""
Access decision tests: precedence of operator, owner and guest token, plus
guest token issuance and the legacy email migration path.
"""
import itertools
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from track_orders.policy import (
    AccessAuthorizer,
    AccessReason,
    OperatorAllowlist,
    RequestRecord,
    ViewerContext,
    authorize,
    issue_guest_access_token,
    needs_guest_access_token,
    upgrade_legacy_link,
)


@pytest.fixture(scope="module")
def authorizer():
    return AccessAuthorizer()


OWNED = RequestRecord(owner_user_id="U1", guest_access_token="T1", owner_email="singer@example.com")
UNLINKED = RequestRecord(guest_access_token="T1", owner_email="singer@example.com")


def test_worked_example_wrong_owner_beats_token(authorizer):
    """Viewer A: signed in as someone else, holding the owner's token."""
    decision = authorizer.authorize(OWNED, ViewerContext(authenticated_user_id="U2", presented_token="T1"))

    assert decision.granted is False
    assert decision.reason == AccessReason.WRONG_OWNER


def test_worked_example_owner(authorizer):
    """Viewer B: the owner."""
    decision = authorizer.authorize(OWNED, ViewerContext(authenticated_user_id="U1"))

    assert decision.granted is True
    assert decision.reason == AccessReason.OWNER_MATCH
    assert decision.prompt_account_claim is False


def test_worked_example_guest_token(authorizer):
    """Viewer C: anonymous holder of the token on an unlinked request."""
    decision = authorizer.authorize(UNLINKED, ViewerContext(presented_token="T1"))

    assert decision.granted is True
    assert decision.reason == AccessReason.GUEST_TOKEN_MATCH
    assert decision.prompt_account_claim is True


def test_worked_example_nothing_presented(authorizer):
    """Viewer D: nothing at all."""
    decision = authorizer.authorize(OWNED, ViewerContext())

    assert decision.granted is False
    assert decision.reason == AccessReason.NO_CREDENTIAL


@pytest.mark.parametrize("record", [OWNED, UNLINKED, RequestRecord()])
def test_operator_sees_everything(authorizer, record):
    decision = authorizer.authorize(record, ViewerContext(authenticated_user_id="OPS", is_operator=True))

    assert decision.granted is True
    assert decision.reason == AccessReason.OPERATOR_OVERRIDE


def test_token_ignored_once_request_is_linked(authorizer):
    """Anonymous viewers cannot use an old guest token after the request is claimed."""
    decision = authorizer.authorize(OWNED, ViewerContext(presented_token="T1"))

    assert decision.granted is False
    assert decision.reason == AccessReason.NO_CREDENTIAL


def test_signed_in_guest_token_holder_gets_no_claim_prompt(authorizer):
    decision = authorizer.authorize(UNLINKED, ViewerContext(authenticated_user_id="U9", presented_token="T1"))

    assert decision.granted is True
    assert decision.reason == AccessReason.GUEST_TOKEN_MATCH
    assert decision.prompt_account_claim is False


@pytest.mark.parametrize("presented", ["t1", "T", "T1 ", " T1", "T1T1", "", None])
def test_token_match_is_exact(authorizer, presented):
    decision = authorizer.authorize(UNLINKED, ViewerContext(presented_token=presented))

    assert decision.granted is False
    assert decision.reason == AccessReason.NO_CREDENTIAL


def test_missing_request_token_never_matches(authorizer):
    decision = authorizer.authorize(RequestRecord(), ViewerContext(presented_token=""))

    assert decision.granted is False


def test_email_is_not_a_credential(authorizer):
    """Knowing the owner's email grants nothing."""
    record = RequestRecord(owner_email="singer@example.com")
    decision = authorizer.authorize(record, ViewerContext(presented_token="singer@example.com"))

    assert decision.granted is False


def test_denials_read_the_same(authorizer):
    wrong_owner = authorizer.authorize(OWNED, ViewerContext(authenticated_user_id="U2"))
    no_credential = authorizer.authorize(OWNED, ViewerContext())

    assert wrong_owner.reason != no_credential.reason
    assert wrong_owner.viewer_message == no_credential.viewer_message
    assert authorizer.authorize(OWNED, ViewerContext(authenticated_user_id="U1")).viewer_message is None


_RECORDS = [
    RequestRecord(owner_user_id=o, guest_access_token=t)
    for o, t in itertools.product([None, "U1"], [None, "T1"])
]
_VIEWERS = [
    ViewerContext(authenticated_user_id=u, is_operator=op, presented_token=p)
    for u, op, p in itertools.product([None, "U1", "U2"], [False, True], [None, "T1", "T2"])
]


@pytest.mark.parametrize("record, viewer", list(itertools.product(_RECORDS, _VIEWERS)))
def test_decision_grid(record, viewer):
    """Exactly one grant reason per granted decision, and the module shortcut agrees."""
    decision = authorize(record, viewer)

    assert decision == AccessAuthorizer().authorize(record, viewer)

    if viewer.is_operator:
        expected = AccessReason.OPERATOR_OVERRIDE
    elif record.owner_user_id and viewer.authenticated_user_id == record.owner_user_id:
        expected = AccessReason.OWNER_MATCH
    elif record.owner_user_id and viewer.authenticated_user_id:
        expected = AccessReason.WRONG_OWNER
    elif not record.owner_user_id and record.guest_access_token and viewer.presented_token == record.guest_access_token:
        expected = AccessReason.GUEST_TOKEN_MATCH
    else:
        expected = AccessReason.NO_CREDENTIAL

    assert decision.reason == expected
    assert decision.granted == (expected in {
        AccessReason.OPERATOR_OVERRIDE, AccessReason.OWNER_MATCH, AccessReason.GUEST_TOKEN_MATCH
    })


# Guest tokens

def test_issued_tokens_are_unique_and_opaque():
    tokens = {issue_guest_access_token() for _ in range(200)}

    assert len(tokens) == 200
    assert all(len(t) == 43 for t in tokens)


def test_needs_guest_access_token():
    assert needs_guest_access_token(RequestRecord()) is True
    assert needs_guest_access_token(RequestRecord(guest_access_token="T1")) is False
    assert needs_guest_access_token(RequestRecord(owner_user_id="U1")) is False


def test_legacy_link_upgrade_issues_token():
    legacy = RequestRecord(owner_email="Singer@Example.com")
    upgraded = upgrade_legacy_link(legacy, " singer@example.COM ")

    assert upgraded is not None
    assert upgraded.guest_access_token
    assert "singer" not in upgraded.guest_access_token.lower()
    assert upgraded.owner_email == legacy.owner_email

    # Still needs a token match to get in
    assert authorize(legacy, ViewerContext()).granted is False
    assert authorize(upgraded, ViewerContext(presented_token=upgraded.guest_access_token)).granted is True


@pytest.mark.parametrize("record, email", [
    (RequestRecord(owner_email="singer@example.com"), "other@example.com"),
    (RequestRecord(owner_email="singer@example.com"), "singer@example"),
    (RequestRecord(owner_email="singer@example.com"), "singer"),
    (RequestRecord(owner_email="singer@example.com"), None),
    (RequestRecord(owner_email=None), ""),
    (RequestRecord(owner_email="singer@example.com", guest_access_token="T1"), "singer@example.com"),
    (RequestRecord(owner_email="singer@example.com", owner_user_id="U1"), "singer@example.com"),
])
def test_legacy_link_upgrade_refused(record, email):
    assert upgrade_legacy_link(record, email) is None


# Operator allowlist

def test_operator_allowlist():
    allowlist = OperatorAllowlist([" Ops@Example.com ", "", "owner@example.com"])

    assert allowlist.is_operator("ops@example.com") is True
    assert allowlist.is_operator("OPS@EXAMPLE.COM") is True
    assert allowlist.is_operator("ops@example.co") is False
    assert allowlist.is_operator(None) is False


def test_viewer_context_requires_sign_in_for_operator():
    allowlist = OperatorAllowlist(["ops@example.com"])

    assert allowlist.viewer_context(email="ops@example.com").is_operator is False
    viewer = allowlist.viewer_context(user_id="OPS", email="ops@example.com", token=" T1 ")
    assert viewer.is_operator is True
    assert viewer.presented_token == "T1"
    assert allowlist.viewer_context(user_id="  ", token="").authenticated_user_id is None
