"""
Re-key legacy live pins by address key, merging duplicates.

Usage:
  - Dry run (default): python scripts/consolidate_pins.py
  - Apply: python scripts/consolidate_pins.py --apply
  - Pending tree instead of verified: python scripts/consolidate_pins.py --tree pending --apply

Reported counts are summed, never dropped, so the stats snapshot stays valid.
"""

import argparse

from app.services.maintenance_service import get_maintenance_service
from app.services.stores.base import LIVE_TREES, VERIFIED


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write changes instead of dry-run")
    parser.add_argument("--tree", choices=LIVE_TREES, default=VERIFIED, help="Live tree to consolidate")
    args = parser.parse_args()

    result = get_maintenance_service().consolidate_live_reports(tree=args.tree, apply=args.apply)
    print(f"Keys: {result['keys']}")
    print(f"Keys rewritten: {result['rekeyed']}{'' if args.apply else ' (dry run)'}")
    print(f"Records without a usable address: {result['unkeyable']}")


if __name__ == "__main__":
    main()
