"""
Price copy for outgoing customer emails.

Plain-text lines only; the HTML templates that wrap them live with the email
generator.
"""
from urllib.parse import quote, urlencode

from ..engine import CostBreakdown
from .request_service import BackingRequest


def format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def format_price_lines(breakdown: CostBreakdown) -> list[str]:
    """
    Price lines for a payment reminder.

    With a final price: final line first, then recommended cost and estimated
    range. Without one: estimated range, then recommended cost.
    """
    recommended = breakdown.display_point if breakdown.has_final_price else breakdown.total_cost
    recommended_line = f"Recommended Cost: {format_money(recommended)}"

    estimated_line = None
    if breakdown.display_low is not None and breakdown.display_high is not None:
        estimated_line = (
            f"Estimated Range: {format_money(breakdown.display_low)} - {format_money(breakdown.display_high)}"
        )

    if breakdown.has_final_price:
        lines = [
            f"The final agreed cost for your track is: {format_money(breakdown.display_point)}",
            recommended_line,
        ]
        if estimated_line:
            lines.append(estimated_line)
        return lines

    lines = [estimated_line] if estimated_line else []
    lines.append(recommended_line)
    return lines


def client_portal_link(base_url: str, request: BackingRequest) -> str:
    """
    Link to the public track view for a request.

    Linked requests rely on sign-in; unlinked ones carry their guest token.
    Legacy requests without a token fall back to the email-keyed link, which
    the track view upgrades to a token on first use.
    """
    url = f"{base_url.rstrip('/')}/track/{quote(request.id)}"
    if request.user_id:
        return url
    if request.guest_access_token:
        return f"{url}?{urlencode({'token': request.guest_access_token})}"
    return f"{url}?{urlencode({'email': request.email})}"
