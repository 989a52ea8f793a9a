"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TraceStep:
    """A single step in the cost resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class RequestOptions:
    """Selected options of a backing-track request, as read from the request entity."""
    track_type: Optional[str] = None
    backing_types: frozenset = frozenset()
    additional_services: frozenset = frozenset()

    # Operator-set overrides
    manual_final_price: Optional[float] = None
    manual_estimate_low: Optional[float] = None
    manual_estimate_high: Optional[float] = None

    def __post_init__(self):
        # Accept any iterable from callers, store as frozensets
        object.__setattr__(self, 'backing_types', frozenset(self.backing_types or ()))
        object.__setattr__(self, 'additional_services', frozenset(self.additional_services or ()))


@dataclass(frozen=True)
class CostLine:
    """A single priced line: the base tier or one add-on."""
    kind: str  # "track_type", "backing_type" or "service"
    key: str
    label: str
    cost: float


@dataclass
class CostBreakdown:
    """Complete result of a cost computation. Always recomputable from RequestOptions."""
    base_line: CostLine
    add_on_lines: list[CostLine]
    total_cost: float
    display_low: Optional[float] = None
    display_high: Optional[float] = None
    display_point: Optional[float] = None

    # Marketing range for the track type; never used for total_cost
    base_range: Optional[tuple[float, float]] = None

    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the breakdown trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a non-fatal warning (unknown option values)."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    @property
    def has_final_price(self) -> bool:
        return self.display_point is not None

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to a plain dict for JSON and email consumers."""
        return {
            "base_line": {
                "type": self.base_line.key,
                "label": self.base_line.label,
                "cost": self.base_line.cost,
            },
            "add_on_lines": [
                {"kind": line.kind, "key": line.key, "label": line.label, "cost": line.cost}
                for line in self.add_on_lines
            ],
            "total_cost": self.total_cost,
            "display_low": self.display_low,
            "display_high": self.display_high,
            "display_point": self.display_point,
            "base_range": list(self.base_range) if self.base_range else None,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class InvalidManualRange:
    """
    A manual estimate range whose low side exceeds its high side.

    Returned instead of a CostBreakdown: this is an operator data-entry mistake
    that must block saving, never be repaired.
    """
    low: float
    high: float

    @property
    def message(self) -> str:
        return (
            f"Manual estimate low (${self.low:.2f}) must not exceed "
            f"manual estimate high (${self.high:.2f})"
        )


class InvalidManualRangeError(ValueError):
    """Raised by saving and quoting entry points when a manual range is inverted."""

    def __init__(self, invalid: InvalidManualRange):
        super().__init__(invalid.message)
        self.invalid = invalid
