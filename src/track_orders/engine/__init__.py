"""Engine subpackage - core cost logic and display resolution."""
from .pricing_engine import PricingEngine, CatalogError
from .models import RequestOptions, CostBreakdown, CostLine, InvalidManualRange, InvalidManualRangeError
from .catalog import PriceCatalog, CatalogEntry, DEFAULT_CATALOG
from .overrides import round_up_to_5, round_down_to_5

__all__ = [
    'PricingEngine', 'CatalogError',
    'RequestOptions', 'CostBreakdown', 'CostLine', 'InvalidManualRange', 'InvalidManualRangeError',
    'PriceCatalog', 'CatalogEntry', 'DEFAULT_CATALOG',
    'round_up_to_5', 'round_down_to_5',
]
