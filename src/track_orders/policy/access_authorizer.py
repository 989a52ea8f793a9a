"""
Access Authorizer - Decides who may view a request's private details.
"""
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Optional


DENIED_MESSAGE = (
    "Request not found or you do not have permission to view it. "
    "Please check the link or sign in with the account used to place the order."
)


class AccessReason(str, Enum):
    OPERATOR_OVERRIDE = "operator_override"
    OWNER_MATCH = "owner_match"
    WRONG_OWNER = "wrong_owner"
    GUEST_TOKEN_MATCH = "guest_token_match"
    NO_CREDENTIAL = "no_credential"


@dataclass(frozen=True)
class RequestRecord:
    """The authorization-relevant subset of a backing-track request."""
    owner_user_id: Optional[str] = None
    guest_access_token: Optional[str] = None
    # Legacy migration key only, never an authorization credential
    owner_email: Optional[str] = None


@dataclass(frozen=True)
class ViewerContext:
    """Identity claims of whoever is looking at a request."""
    authenticated_user_id: Optional[str] = None
    is_operator: bool = False
    presented_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.authenticated_user_id)


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: AccessReason
    authenticated: bool = False

    @property
    def prompt_account_claim(self) -> bool:
        """Granted through a guest token to someone with no session: offer sign-in to claim it."""
        return self.granted and self.reason == AccessReason.GUEST_TOKEN_MATCH and not self.authenticated

    @property
    def viewer_message(self) -> Optional[str]:
        """User-facing copy. Every denial reads the same."""
        return None if self.granted else DENIED_MESSAGE


def tokens_match(presented: Optional[str], expected: Optional[str]) -> bool:
    """Exact, constant-time token comparison. Empty tokens never match."""
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode('utf-8'), expected.encode('utf-8'))


class AccessAuthorizer:
    """
    Decides access to a single request.

    Waterfall precedence (strongest credential first):
    1. Operator override
    2. Authenticated owner match
    3. Authenticated but different user -> denied, tokens are not considered
    4. Guest token match on an unlinked request
    5. Fallback: denied, no credential
    """

    def authorize(self, request: RequestRecord, viewer: ViewerContext) -> AccessDecision:
        authenticated = viewer.is_authenticated

        # 1. Operator bypass
        if viewer.is_operator:
            return AccessDecision(True, AccessReason.OPERATOR_OVERRIDE, authenticated)

        owner = request.owner_user_id or None

        if owner is not None and authenticated:
            # 2. Owner match
            if viewer.authenticated_user_id == owner:
                return AccessDecision(True, AccessReason.OWNER_MATCH, authenticated)
            # 3. Asserted identity wins over any presented capability
            return AccessDecision(False, AccessReason.WRONG_OWNER, authenticated)

        # 4. Guest capability, only for requests not linked to an account
        if owner is None and tokens_match(viewer.presented_token, request.guest_access_token):
            return AccessDecision(True, AccessReason.GUEST_TOKEN_MATCH, authenticated)

        # 5. Fallback
        return AccessDecision(False, AccessReason.NO_CREDENTIAL, authenticated)


_default_authorizer = AccessAuthorizer()


def authorize(request: RequestRecord, viewer: ViewerContext) -> AccessDecision:
    """Module-level shortcut for AccessAuthorizer().authorize()."""
    return _default_authorizer.authorize(request, viewer)
