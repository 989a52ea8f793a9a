"""
Operator allowlist - the identity collaborator's side of authorization.

The allowlist is configuration (Settings.operator_emails); the authorizer only
ever sees the resulting ViewerContext.is_operator flag.
"""
from typing import Iterable, Optional

from .access_authorizer import ViewerContext


class OperatorAllowlist:
    """Fixed set of operator emails, matched exactly after trimming and lowercasing."""

    def __init__(self, emails: Iterable[str] = ()):
        self.emails = frozenset(e.strip().lower() for e in emails if e and e.strip())

    def is_operator(self, email: Optional[str]) -> bool:
        if not email:
            return False
        return email.strip().lower() in self.emails

    def viewer_context(
        self,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        token: Optional[str] = None,
    ) -> ViewerContext:
        """Build the viewer claims for one caller. Operator status requires a signed-in user."""
        user_id = (user_id or "").strip() or None
        return ViewerContext(
            authenticated_user_id=user_id,
            is_operator=bool(user_id) and self.is_operator(email),
            presented_token=(token or "").strip() or None,
        )
