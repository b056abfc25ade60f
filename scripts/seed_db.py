"""
Seed script for the CivicEye issue store (in-memory or Firestore).

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force the in-memory store even if Firebase is configured: python scripts/seed_db.py --apply --force-mock
  - Custom seed file: python scripts/seed_db.py --seed path/to/seed.json

Behavior:
  - Loads `db_seed.json` from the repo root: {"issues": [{..., "reporterId": "..."}]}
  - Each entry is validated as a PendingSubmission and written through the
    store, so normalizedLocation is derived the same way as for live submissions.
  - Entries without a submissionId get "seed-<index>", which makes re-runs
    against Firestore idempotent.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` is set
and `USE_MOCK_DB=false` in `.env`.
"""

import argparse
import json
import logging
import os
from typing import List, Tuple

from pydantic import ValidationError

from app.core.settings import settings
from app.models.issue import PendingSubmission
from app.utils.location import normalize_location
from app.utils.logging import configure_logging

logger = logging.getLogger("seed_db")


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_issues(seed: dict) -> List[Tuple[PendingSubmission, str]]:
    """Validate seed entries; invalid ones are logged and skipped."""
    drafts = []
    for index, entry in enumerate(seed.get("issues", [])):
        entry = dict(entry)
        reporter_id = entry.pop("reporterId", None) or entry.pop("reporter_id", None)
        if not reporter_id:
            logger.warning(f"Skipping seed issue #{index}: missing reporterId")
            continue
        entry.setdefault("submissionId", f"seed-{index}")
        try:
            drafts.append((PendingSubmission(**entry), reporter_id))
        except ValidationError as e:
            logger.warning(f"Skipping seed issue #{index}: {e.error_count()} validation error(s)")
    return drafts


def write_to_store(store, drafts: List[Tuple[PendingSubmission, str]], apply: bool = False) -> int:
    written = 0
    for draft, reporter_id in drafts:
        logger.info(f"Preparing: issues/{draft.submission_id} ({draft.category.value}) by {reporter_id}")
        if not apply:
            continue
        try:
            record = store.create_issue(draft, reporter_id, normalize_location(draft.address))
            written += 1
            logger.info(f"Wrote: issues/{record.id}")
        except Exception as e:
            logger.error(f"Failed to write issues/{draft.submission_id}: {e}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force the in-memory store even if Firebase is configured")
    parser.add_argument("--seed", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)

    if not os.path.exists(args.seed):
        logger.error(f"Seed file not found: {args.seed}")
        return

    drafts = parse_issues(load_seed(args.seed))

    if args.force_mock:
        logger.info("Forcing in-memory store for this run.")
        # Settings is read once at import; the store singleton reads it lazily
        settings.USE_MOCK_DB = True

    from app.services.store import get_issue_store

    written = write_to_store(get_issue_store(), drafts, apply=args.apply)

    if args.apply:
        logger.info(f"Seeding completed: {written}/{len(drafts)} issue(s) written.")
    else:
        logger.info("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
