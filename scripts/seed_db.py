"""
Seed script for SaferHoods response teams (and optional sample incidents).

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured store: python scripts/seed_db.py --apply
  - Force the in-memory store even if Firebase is configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from repo root ({"teams": {...}, "incidents": {...}}).
  - Writes each record through the configured store (app.stores.get_stores),
    so locations and members are normalized the same way the API does it.

NOTE: The in-memory store lives only for this process, so --force-mock is
useful to check the seed file, not to pre-load a running server.
"""

import argparse
import asyncio
import json
import os
from typing import Any, Dict

from app.core.settings import settings
from app.stores import Stores, get_stores


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def write_to_store(stores: Stores, seed: Dict[str, Dict[str, Any]], apply: bool = False) -> int:
    writers = {
        "teams": stores.teams.insert_team,
        "incidents": stores.incidents.insert_incident,
    }
    written = 0
    for collection, docs in seed.items():
        writer = writers.get(collection)
        if writer is None:
            print(f"Skipping unknown collection: {collection}")
            continue
        for doc_id, data in docs.items():
            print(f"Preparing: {collection}/{doc_id}")
            if not apply:
                continue
            try:
                await writer({**data, "id": doc_id})
                written += 1
                print(f"Wrote: {collection}/{doc_id}")
            except Exception as e:
                print(f"Failed to write {collection}/{doc_id}: {e}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force the in-memory store even if Firebase is configured")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Seed file not found: {args.file}")
        return

    seed = load_seed(args.file)

    if args.force_mock:
        print("Forcing in-memory store for this run.")
        settings.USE_MOCK_DB = True

    written = asyncio.run(write_to_store(get_stores(), seed, apply=args.apply))

    if args.apply:
        print(f"Seeding completed ({written} records).")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()
