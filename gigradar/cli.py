# gigradar/cli.py
"""Command-line entry point (console script ``gig-radar``).

    gig-radar paste.txt --dry-run      chunk + pre-filter against the database
    gig-radar paste.txt                full run with the Claude classifier
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from gigradar import config
from gigradar.core.dedupe import KnownSetLoadError
from gigradar.core.identity import extract_identity
from gigradar.core.pipeline import ParsePlan, execute_parse, prepare_parse

LOGGER = logging.getLogger("gigradar.cli")


def _print_plan(plan: ParsePlan) -> None:
    pre = plan.prefilter
    for idx, chunk in enumerate(plan.chunks):
        status = pre.statuses.get(idx, "unknown")
        identity = extract_identity(chunk)
        label = identity.title if identity else chunk.splitlines()[0]
        print(f"[{status:<9}] {pre.fingerprints.get(idx, '-')[:40]:<40} {label[:60]}")
    print(
        f"chunks={len(plan.chunks)} to_classify={len(pre.to_classify)} "
        f"unknown={len(pre.unknown_identity)} pre_filtered={pre.pre_filtered} batches={plan.total_batches}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gig Radar: dedup and classify pasted job listings")
    parser.add_argument("paste_file", type=str, help="Text (or HTML) file holding the pasted results page")
    parser.add_argument("--dry-run", action="store_true", help="Only chunk and pre-filter; no classifier calls, no writes")
    parser.add_argument("--batch-size", type=int, default=None, help="Chunks per classifier call (overrides GIGRADAR_BATCH_SIZE)")
    parser.add_argument("--saved-search", type=str, default=None, help="Saved search id to tag stored postings with")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    # imported late so --help works without a database configured
    from gigradar.db.crud import SqlStore
    from gigradar.db.session import get_session

    raw = config.load_paste(args.paste_file)
    batch_size = args.batch_size or config.batch_size()

    with get_session() as session:
        store = SqlStore(session)
        try:
            plan = prepare_parse(raw, store, batch_size=batch_size, saved_search_id=args.saved_search)
        except KnownSetLoadError as exc:
            LOGGER.error("aborting: %s", exc)
            return 2

        if args.dry_run:
            _print_plan(plan)
            return 0

        from gigradar.classify.claude import ClaudeClassifier

        try:
            classifier = ClaudeClassifier.from_env()
        except ValueError as exc:
            LOGGER.error("%s", exc)
            return 2

        for event in execute_parse(plan, classifier, store):
            print(json.dumps({"event": event.kind, **event.data}, default=str))
    return 0


if __name__ == "__main__":
    # When executed as `python -m gigradar.cli ...`
    sys.exit(main())
