"""
Catalog Loader - Validates and loads the price catalog CSV.

Reads price_catalog.csv (kind, key, label, cost, range_low, range_high),
validates every row and builds a PriceCatalog. Row order is catalog order.
"""
import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.catalog import CatalogEntry, PriceCatalog, KINDS, TRACK_TYPE


REQUIRED_COLUMNS = ['kind', 'key', 'label', 'cost']


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def _parse_amount(value) -> Optional[float]:
    """Parse an optional money amount; None for blanks, ValueError for junk."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip().lstrip('$')
    if text == '' or text.lower() == 'nan':
        return None
    return float(text)


def validate_row(row: dict, line_num: int) -> tuple[Optional[CatalogEntry], list[str]]:
    """
    Validate and parse a catalog entry from a CSV row.

    Returns (entry, errors) - entry is None if validation failed.
    """
    errors = []

    kind = str(row.get('kind', '')).strip()
    key = str(row.get('key', '')).strip()
    label = str(row.get('label', '')).strip() or key

    if kind not in KINDS:
        errors.append(f"Line {line_num}: invalid kind '{kind}', must be one of: {', '.join(KINDS)}")
        return None, errors

    if not key:
        errors.append(f"Line {line_num}: key is required")
        return None, errors

    try:
        cost = _parse_amount(row.get('cost'))
    except ValueError:
        errors.append(f"Line {line_num}: cost must be numeric for '{key}'")
        return None, errors

    if cost is None:
        errors.append(f"Line {line_num}: cost is required for '{key}'")
        return None, errors

    if cost < 0:
        errors.append(f"Line {line_num}: cost must not be negative for '{key}'")
        return None, errors

    try:
        range_low = _parse_amount(row.get('range_low'))
        range_high = _parse_amount(row.get('range_high'))
    except ValueError:
        errors.append(f"Line {line_num}: display range must be numeric for '{key}'")
        return None, errors

    if range_low is not None and range_high is not None and range_low > range_high:
        errors.append(f"Line {line_num}: range_low must not exceed range_high for '{key}'")
        return None, errors

    return CatalogEntry(
        kind=kind,
        key=key,
        label=label,
        cost=cost,
        range_low=range_low,
        range_high=range_high,
    ), []


def load_price_catalog(path: Path, verbose: bool = False) -> tuple[Optional[PriceCatalog], dict]:
    """
    Load the price catalog from CSV.

    Returns (catalog, report) - catalog is None if any row failed validation.
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_file": {"path": str(path), "hash": get_file_hash(path)},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    if not path.exists():
        report["errors"].append(f"Price catalog not found: {path}")
        report["status"] = "failed"
        return None, report

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        report["errors"].append(f"Failed to read {path}. {e}")
        report["status"] = "failed"
        return None, report

    df.columns = [c.strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        report["errors"].append(f"Missing required columns: {', '.join(missing)}")
        report["status"] = "failed"
        return None, report

    entries = {kind: [] for kind in KINDS}
    seen = set()

    for line_num, row in enumerate(df.to_dict(orient='records'), start=2):  # +2 for 1-indexed header row
        entry, errors = validate_row(row, line_num)
        if errors:
            report["errors"].extend(errors)
            continue

        if (entry.kind, entry.key) in seen:
            report["errors"].append(f"Line {line_num}: duplicate {entry.kind} '{entry.key}'")
            continue
        seen.add((entry.kind, entry.key))

        if entry.kind == TRACK_TYPE and entry.display_range is None:
            report["warnings"].append(f"Track type '{entry.key}' has no display range")

        entries[entry.kind].append(entry)

    report["metrics"] = {kind: len(items) for kind, items in entries.items()}

    if not entries[TRACK_TYPE]:
        report["warnings"].append("Catalog defines no track types")

    if report["errors"]:
        report["status"] = "failed"
        if verbose:
            print("Validation errors:")
            for err in report["errors"]:
                print(f"  ❌ {err}")
        return None, report

    report["status"] = "success"
    catalog = PriceCatalog(
        track_types=tuple(entries['track_type']),
        backing_types=tuple(entries['backing_type']),
        services=tuple(entries['service']),
    )

    if verbose:
        print(f"✅ Loaded {sum(report['metrics'].values())} catalog entries from {path}")
        for warning in report["warnings"]:
            print(f"  WARNING: {warning}")

    return catalog, report


def write_report(report: dict, report_path: Path):
    """Save a load report next to other build outputs."""
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2)
