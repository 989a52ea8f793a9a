"""
Guest Access - capability tokens for requests placed without an account.

Tokens are issued once at creation time and never rotated: rotation would
break links already sent by email.
"""
import secrets
from dataclasses import replace
from typing import Optional

from .access_authorizer import RequestRecord


TOKEN_BYTES = 32


def issue_guest_access_token() -> str:
    """A fresh random token, unrelated to the request id or email."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def needs_guest_access_token(record: RequestRecord) -> bool:
    """Unlinked requests must carry a token."""
    return not record.owner_user_id and not record.guest_access_token


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def upgrade_legacy_link(record: RequestRecord, presented_email: Optional[str]) -> Optional[RequestRecord]:
    """
    Migrate an old email-keyed guest link to a proper token.

    Applies only to unlinked requests that never received a token, and only on
    exact (case-insensitive) email equality. Returns the upgraded record for the
    caller to persist, or None. This never grants access by itself: the caller
    authorizes again with the issued token.
    """
    if not needs_guest_access_token(record):
        return None

    expected = _normalize_email(record.owner_email)
    if not expected or _normalize_email(presented_email) != expected:
        return None

    return replace(record, guest_access_token=issue_guest_access_token())
