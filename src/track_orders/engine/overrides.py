"""
Override hierarchy - derives the customer-facing price display.

Used by the pricing engine after total_cost is known. Precedence:
1. Manual final price -> display point
2. Manual estimate low / high, each side independently
3. Computed default: ceil5(total x 0.5) .. floor5(total x 1.5)

total_cost itself is never touched here.
"""
import math
from dataclasses import dataclass
from typing import Optional

from .models import RequestOptions, InvalidManualRange


LOW_MULTIPLIER = 0.5
HIGH_MULTIPLIER = 1.5
ROUNDING_STEP = 5


def round_up_to_5(value: float) -> float:
    """Ceiling to the next multiple of 5."""
    # round() strips float noise such as 40.000000000000004 before the ceiling
    return float(math.ceil(round(value / ROUNDING_STEP, 9)) * ROUNDING_STEP)


def round_down_to_5(value: float) -> float:
    """Floor to the previous multiple of 5."""
    return float(math.floor(round(value / ROUNDING_STEP, 9)) * ROUNDING_STEP)


def default_display_range(total_cost: float) -> tuple[float, float]:
    """
    Computed published range for a total cost.

    Low rounds up and high rounds down, so the range is never wider than the
    raw +/-50% band. When no multiple of 5 fits inside the band the raw band
    is returned unrounded.
    """
    raw_low = total_cost * LOW_MULTIPLIER
    raw_high = total_cost * HIGH_MULTIPLIER
    low = round_up_to_5(raw_low)
    high = round_down_to_5(raw_high)
    if low > high:
        return raw_low, raw_high
    return low, high


@dataclass(frozen=True)
class DisplayPrice:
    """Resolved display values plus the trace of how they were chosen."""
    low: Optional[float]
    high: Optional[float]
    point: Optional[float]
    traces: tuple[tuple[str, str, Optional[str]], ...] = ()


def check_manual_range(options: RequestOptions) -> Optional[InvalidManualRange]:
    """Return InvalidManualRange when both manual bounds are set and inverted."""
    low = options.manual_estimate_low
    high = options.manual_estimate_high
    if low is not None and high is not None and low > high:
        return InvalidManualRange(low=low, high=high)
    return None


def resolve_display(options: RequestOptions, total_cost: float) -> DisplayPrice | InvalidManualRange:
    """
    Apply the override hierarchy to a computed total.

    Returns InvalidManualRange only when both manual bounds are set and
    inverted. A single manual bound that crosses the computed other side pulls
    that side along with it.
    """
    invalid = check_manual_range(options)
    if invalid:
        return invalid

    traces = []
    default_low, default_high = default_display_range(total_cost)

    point = None
    if options.manual_final_price is not None:
        point = float(options.manual_final_price)
        traces.append(("Final Price", "Operator set a final price", f"${point:.2f}"))

    if options.manual_estimate_low is not None:
        low = float(options.manual_estimate_low)
        traces.append(("Estimate Low", "Manual low estimate", f"${low:.2f}"))
    else:
        low = default_low
        traces.append(("Estimate Low", f"ceil5({LOW_MULTIPLIER} x total)", f"${low:.2f}"))

    if options.manual_estimate_high is not None:
        high = float(options.manual_estimate_high)
        traces.append(("Estimate High", "Manual high estimate", f"${high:.2f}"))
    else:
        high = default_high
        traces.append(("Estimate High", f"floor5({HIGH_MULTIPLIER} x total)", f"${high:.2f}"))

    # A lone manual bound wins over the computed side it crosses
    if low > high:
        if options.manual_estimate_low is not None:
            high = low
            traces.append(("Estimate High", "Raised to the manual low estimate", f"${high:.2f}"))
        else:
            low = high
            traces.append(("Estimate Low", "Lowered to the manual high estimate", f"${low:.2f}"))

    return DisplayPrice(low=low, high=high, point=point, traces=tuple(traces))
