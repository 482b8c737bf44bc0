"""Recompute stored dedup fingerprints for postings and blocklist rows.

Run after changing any fingerprint constant (stop words, title cap, token
cap); without it old rows stop matching new pastes.
"""

from __future__ import annotations

import argparse
import logging

from gigradar.db.crud import backfill_fingerprints
from gigradar.db.session import get_session

DEFAULT_SAMPLE_SIZE = 10


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Recompute dedup_hash for stored postings and blocklist rows")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without updating the database")
    parser.add_argument(
        "--sample-size",
        type=int,
        default=DEFAULT_SAMPLE_SIZE,
        help="Number of sample rows to include in the summary output",
    )
    args = parser.parse_args()

    with get_session() as session:
        summary = backfill_fingerprints(session, dry_run=args.dry_run, sample_size=args.sample_size)
    print(summary.to_dict())


if __name__ == "__main__":
    main()
