#!/usr/bin/env python
"""
Catalog check pipeline - validates the price catalog and runs the pricing tests.

Usage:
    python scripts/check_catalog.py [path/to/price_catalog.csv]
"""
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from track_orders.config.settings import get_settings
from track_orders.data.catalog_loader import load_price_catalog, write_report
from track_orders.engine import PricingEngine, RequestOptions


def main():
    settings = get_settings()
    catalog_path = Path(sys.argv[1]) if len(sys.argv) > 1 else settings.price_catalog

    print("=" * 60)
    print("PRICE CATALOG CHECK")
    print("=" * 60)
    print()

    print(f"[1/3] Loading {catalog_path}...")
    catalog, report = load_price_catalog(catalog_path, verbose=True)
    write_report(report, settings.project_root / 'data' / 'outputs' / 'catalog_report.json')

    if catalog is None:
        print("\n❌ CATALOG INVALID")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("[2/3] Sample quotes...")
    engine = PricingEngine(catalog)
    for track in catalog.track_types:
        breakdown = engine.quote(RequestOptions(track_type=track.key))
        print(
            f"  {track.label}: total ${breakdown.total_cost:.2f}, "
            f"published ${breakdown.display_low:.2f} - ${breakdown.display_high:.2f}"
        )

    print()
    print("[3/3] Running pricing tests...")
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_pricing_engine.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ CATALOG OK")
    print("=" * 60)
    print()
    print("Summary:")
    for kind, count in report["metrics"].items():
        print(f"  {kind}: {count} entries")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
