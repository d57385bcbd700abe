#!/usr/bin/env python3
"""
Drop local pending flags for entities the backend no longer lists.
"""

import argparse
import sys
from pathlib import Path

import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from burhanpur_admin.core.client import RestClient
from burhanpur_admin.core.errors import DashboardError
from burhanpur_admin.core.listings import admin_listing_loader
from burhanpur_admin.core.overrides import build_override_store
from burhanpur_admin.core.schema import EntityKind


def collect(client, store, kind: EntityKind, dry_run: bool = False):
    """Returns the keys that were (or would be) removed."""
    entities = admin_listing_loader(client, kind)()
    existing = {entity.id for entity in entities}
    if dry_run:
        return [entry.key for entry in store.list_pending(kind) if entry.entity_id not in existing]
    return store.garbage_collect(existing, kind)


def main():
    parser = argparse.ArgumentParser(description='Garbage-collect local pending flags')
    parser.add_argument('--kind', choices=[k.value for k in EntityKind],
                        help='Only this kind (default: all)')
    parser.add_argument('--dry-run', action='store_true',
                        help='List what would be removed without deleting')
    args = parser.parse_args()

    kinds = [EntityKind(args.kind)] if args.kind else list(EntityKind)
    client = RestClient()
    store = build_override_store()

    status = 0
    for kind in kinds:
        try:
            removed = collect(client, store, kind, args.dry_run)
        except DashboardError as e:
            # A failed listing must never be read as "nothing exists"
            print(f"❌ {kind.value}: listing unavailable, skipped ({e})")
            status = 1
            continue

        verb = "would remove" if args.dry_run else "removed"
        print(f"🧹 {kind.value}: {verb} {len(removed)} flag(s)")
        for key in removed:
            print(f"   {key}")

    client.close()
    return status


if __name__ == "__main__":
    sys.exit(main())
