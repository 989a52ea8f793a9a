#!/usr/bin/env python
"""
Serve the Track Orders API.

Usage:
    python scripts/run_api.py [--reload]
"""
import sys
from pathlib import Path

import structlog
import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from track_orders.config.logging_setup import configure_logging
from track_orders.config.settings import get_settings


def main():
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    log = structlog.get_logger("run_api")

    if not settings.operator_emails:
        log.warning("no_operators_configured", env="TRACK_ORDERS_OPERATOR_EMAILS")
    log.info(
        "starting_api",
        catalog=str(settings.price_catalog),
        requests_csv=str(settings.requests_csv),
        public_url=settings.public_base_url,
    )

    uvicorn.run(
        "track_orders.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload="--reload" in sys.argv[1:],
        app_dir=str(src_path),
    )


if __name__ == "__main__":
    main()
