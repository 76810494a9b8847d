#!/usr/bin/env python3
"""
Delete every offer with an id above a threshold, together with its offer
assets and stage remarks.
    python delete_offers.py [min_id]    (default: 3)
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import delete_offers_after


def main(argv):
    try:
        min_id = int(argv[1]) if len(argv) > 1 else 3
    except ValueError:
        print(f"Error: min_id must be an integer, got '{argv[1]}'")
        return 1

    confirm = input(f"Type 'YES' to delete all offers with id > {min_id}: ")
    if confirm != "YES":
        print("Aborted. No changes made.")
        return 0

    database = open_database(settings)
    db = database.session()
    try:
        deleted = delete_offers_after(db, min_id)
        print(f"✓ Deleted {deleted} offers")
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main(sys.argv))
