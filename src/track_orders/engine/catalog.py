"""
Price catalog for backing-track requests.

The catalog keeps two separate notions per track type:
- a point base cost, summed into total_cost (invoices, email copy)
- a display range, used only as marketing copy ("Quick $5-$10")
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CatalogEntry:
    """A single priced option in the catalog."""
    kind: str  # "track_type", "backing_type" or "service"
    key: str
    label: str
    cost: float
    range_low: Optional[float] = None
    range_high: Optional[float] = None

    @property
    def display_range(self) -> Optional[tuple[float, float]]:
        if self.range_low is None or self.range_high is None:
            return None
        return (self.range_low, self.range_high)


@dataclass(frozen=True)
class PriceCatalog:
    """
    Ordered price catalog.

    Entry order within each kind is the catalog order used for add-on lines,
    so breakdowns never depend on the order a customer ticked options in.
    """
    track_types: tuple[CatalogEntry, ...]
    backing_types: tuple[CatalogEntry, ...]
    services: tuple[CatalogEntry, ...]
    _index: dict = field(default=None, init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        index = {}
        for entry in self.track_types + self.backing_types + self.services:
            index[(entry.kind, entry.key)] = entry
        object.__setattr__(self, '_index', index)

    def get(self, kind: str, key: Optional[str]) -> Optional[CatalogEntry]:
        """Look up a catalog entry; None for unknown or missing keys."""
        if not key:
            return None
        return self._index.get((kind, key))

    def track_type(self, key: Optional[str]) -> Optional[CatalogEntry]:
        return self.get('track_type', key)

    def entries(self) -> list[CatalogEntry]:
        """All entries in catalog order."""
        return list(self.track_types + self.backing_types + self.services)

    def to_dict(self) -> dict:
        return {
            "track_types": [
                {"key": e.key, "label": e.label, "cost": e.cost, "display_range": e.display_range}
                for e in self.track_types
            ],
            "backing_types": [{"key": e.key, "label": e.label, "cost": e.cost} for e in self.backing_types],
            "services": [{"key": e.key, "label": e.label, "cost": e.cost} for e in self.services],
        }


TRACK_TYPE = 'track_type'
BACKING_TYPE = 'backing_type'
SERVICE = 'service'

KINDS = (TRACK_TYPE, BACKING_TYPE, SERVICE)


DEFAULT_CATALOG = PriceCatalog(
    track_types=(
        CatalogEntry(TRACK_TYPE, 'quick', 'Quick Reference', 5.0, 5.0, 10.0),
        CatalogEntry(TRACK_TYPE, 'one-take', 'One-Take Recording', 10.0, 10.0, 20.0),
        CatalogEntry(TRACK_TYPE, 'polished', 'Polished Backing', 15.0, 20.0, 40.0),
    ),
    backing_types=(
        CatalogEntry(BACKING_TYPE, 'full-song', 'Full Song', 15.0),
        CatalogEntry(BACKING_TYPE, 'audition-cut', 'Audition Cut', 10.0),
        CatalogEntry(BACKING_TYPE, 'note-bash', 'Note Bash', 5.0),
    ),
    services=(
        CatalogEntry(SERVICE, 'rush-order', 'Rush Order', 10.0),
        CatalogEntry(SERVICE, 'complex-songs', 'Complex Song', 7.0),
        CatalogEntry(SERVICE, 'additional-edits', 'Additional Edits', 5.0),
        CatalogEntry(SERVICE, 'exclusive-ownership', 'Exclusive Ownership', 40.0),
    ),
)
