"""
Track Orders Package

Order valuation and access decisions for custom backing-track requests.
Prices requests from their selected options with a manual override hierarchy,
and decides who may view a request: operator, owner, or guest link holder.
"""

__version__ = "1.0.0"
