"""
Pricing Engine - Core cost resolution for backing-track requests.

Turns a request's selected options into a CostBreakdown:
- Point base cost for the track type
- Flat add-ons for every backing type and additional service
- Override hierarchy for the customer-facing display range
- Execution trace and warnings for unknown option values
"""
from typing import Iterable, Optional

from ..config.settings import Settings
from .catalog import PriceCatalog, DEFAULT_CATALOG, BACKING_TYPE, SERVICE, TRACK_TYPE
from .models import (
    CostBreakdown,
    CostLine,
    InvalidManualRange,
    InvalidManualRangeError,
    RequestOptions,
)
from .overrides import resolve_display


class CatalogError(RuntimeError):
    """The configured price catalog file could not be loaded."""


class PricingEngine:
    """
    Core pricing engine.

    Resolution order:
    1. Base point cost for the track type (unknown type -> no base price)
    2. Add every selected backing type, in catalog order
    3. Add every selected additional service, in catalog order
    4. total_cost = raw sum of the above
    5. Apply the override hierarchy to derive display_low/high/point

    compute_cost() is pure: no I/O, no shared state, never raises for bad
    option values.
    """

    def __init__(self, catalog: Optional[PriceCatalog] = None):
        self.catalog = catalog or DEFAULT_CATALOG

    @classmethod
    def from_settings(cls, settings: Settings) -> 'PricingEngine':
        """Build an engine from the configured catalog CSV, or the built-in catalog."""
        from ..data.catalog_loader import load_price_catalog

        path = settings.price_catalog
        if path is None or not path.exists():
            return cls()

        catalog, report = load_price_catalog(path)
        if catalog is None:
            raise CatalogError(
                f"Price catalog at {path} is invalid: " + "; ".join(report["errors"])
            )
        return cls(catalog)

    def compute_cost(self, options: RequestOptions) -> CostBreakdown | InvalidManualRange:
        """
        Compute the cost breakdown for a request's options.

        Returns InvalidManualRange (and no breakdown) when the operator's
        manual estimate range is inverted.
        """
        track = self.catalog.track_type(options.track_type)
        if track:
            base_line = CostLine(kind=TRACK_TYPE, key=track.key, label=track.label, cost=track.cost)
        else:
            base_line = CostLine(kind=TRACK_TYPE, key=options.track_type or "", label="No Base Price", cost=0.0)

        breakdown = CostBreakdown(
            base_line=base_line,
            add_on_lines=[],
            total_cost=base_line.cost,
            base_range=track.display_range if track else None,
        )

        if track:
            breakdown.add_trace("Base Price", f"{track.label} base cost", f"${track.cost:.2f}")
        else:
            breakdown.add_trace("Base Price", "No base price for track type", options.track_type or None)
            if options.track_type:
                breakdown.add_warning(f"Unknown track type '{options.track_type}'")

        self._add_lines(breakdown, BACKING_TYPE, self.catalog.backing_types, options.backing_types)
        self._add_lines(breakdown, SERVICE, self.catalog.services, options.additional_services)

        breakdown.add_trace("Total", "Base plus add-ons", f"${breakdown.total_cost:.2f}")

        display = resolve_display(options, breakdown.total_cost)
        if isinstance(display, InvalidManualRange):
            return display

        breakdown.display_low = display.low
        breakdown.display_high = display.high
        breakdown.display_point = display.point
        for step, desc, val in display.traces:
            breakdown.add_trace(step, desc, val)

        return breakdown

    def quote(self, options: RequestOptions) -> CostBreakdown:
        """Like compute_cost, but raises InvalidManualRangeError for an inverted manual range."""
        result = self.compute_cost(options)
        if isinstance(result, InvalidManualRange):
            raise InvalidManualRangeError(result)
        return result

    def batch_total(self, options_list: Iterable[RequestOptions]) -> float:
        """Sum of total_cost across requests; requests with invalid manual ranges count at their raw total."""
        total = 0.0
        for options in options_list:
            # total_cost does not depend on manual overrides
            raw = RequestOptions(
                track_type=options.track_type,
                backing_types=options.backing_types,
                additional_services=options.additional_services,
            )
            total += self.compute_cost(raw).total_cost
        return total

    def _add_lines(self, breakdown: CostBreakdown, kind: str, entries, selected: frozenset):
        """Append add-on lines for the selected keys of one kind, in catalog order."""
        if not selected:
            return

        known = set()
        for entry in entries:
            known.add(entry.key)
            if entry.key in selected:
                line = CostLine(kind=kind, key=entry.key, label=entry.label, cost=entry.cost)
                breakdown.add_on_lines.append(line)
                breakdown.total_cost += entry.cost
                breakdown.add_trace("Add-on", entry.label, f"${entry.cost:.2f}")

        # Stale catalog values contribute zero; sorted for a stable warning order
        for key in sorted(str(k) for k in selected if k not in known):
            label = "backing type" if kind == BACKING_TYPE else "service"
            breakdown.add_warning(f"Unknown {label} '{key}'")
