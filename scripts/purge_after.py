"""
Purge pins added on or after a date, from the live tree and cold storage.

Usage:
  - Dry run (default): python scripts/purge_after.py 2024-10-25
  - Delete after a prompt: python scripts/purge_after.py 2024-10-25 --apply
  - Delete without prompting: python scripts/purge_after.py 2024-10-25T12:30:00.000Z --apply --yes

Behavior:
  - Uses the configured stores (Firebase, or in-memory when USE_MOCK_DB=true).
  - Recalculates the stats snapshot after deleting.
"""

import argparse
import sys

from app.services.errors import ServiceError
from app.services.maintenance_service import get_maintenance_service


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("date", help='ISO 8601 date or timestamp, e.g. "2024-10-25"')
    parser.add_argument("--apply", action="store_true", help="Delete instead of dry-run")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    def confirm(count: int) -> bool:
        print(f"Found {count} pin(s) added on or after {args.date}")
        if not args.apply:
            print("Dry run: pass --apply to delete them")
            return False
        if args.yes:
            return True
        answer = input("Type 'yes' to delete them permanently: ")
        return answer.strip().lower() == "yes"

    try:
        result = get_maintenance_service().purge_reports_after(args.date, confirm=confirm)
    except ServiceError as e:
        print(f"Error: {e.message}")
        return 1

    print(result["message"])
    print(f"Deleted: live={result['deleted']['live']} cold={result['deleted']['cold']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
