"""Policy subpackage - access decisions and guest capabilities."""
from .access_authorizer import (
    AccessAuthorizer,
    AccessDecision,
    AccessReason,
    RequestRecord,
    ViewerContext,
    authorize,
)
from .guest_access import issue_guest_access_token, needs_guest_access_token, upgrade_legacy_link
from .operators import OperatorAllowlist

__all__ = [
    'AccessAuthorizer', 'AccessDecision', 'AccessReason', 'RequestRecord', 'ViewerContext', 'authorize',
    'issue_guest_access_token', 'needs_guest_access_token', 'upgrade_legacy_link',
    'OperatorAllowlist',
]
