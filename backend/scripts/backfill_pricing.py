#!/usr/bin/env python
"""Fill missing price snapshots on existing order lines.

Order lines without a unit_price are priced as of their order's scheduled
date and the result is stored on the line. Lines whose price cannot be
resolved (no tier and no default price, activity gone) are skipped and
reported.

Usage:
    python backend/scripts/backfill_pricing.py [--dry-run]

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
"""

import argparse
import sys

from logiflow.config import get_settings
from logiflow.database import get_db_session
from logiflow.observability.logging_config import configure_logging
from logiflow.orders.backfill import backfill_missing_snapshots


def main():
    """Run the snapshot backfill."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve prices but do not write anything",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    try:
        with get_db_session() as session:
            result = backfill_missing_snapshots(session, dry_run=args.dry_run)

        print("SUCCESS: Snapshot backfill finished" + (" (dry run)" if args.dry_run else ""))
        print(f"  Updated: {result.updated}")
        print(f"  Skipped: {result.skipped}")
        for line_id in result.skipped_ids:
            print(f"    - {line_id}")

    except Exception as e:
        print(f"ERROR: Backfill failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
