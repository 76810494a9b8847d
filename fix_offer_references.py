#!/usr/bin/env python3
"""
Replace the unknown-zone marker /X/ in offer references with the zone abbreviation.
Run from the repository root:
    python fix_offer_references.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import fix_offer_references


def main():
    database = open_database(settings)
    db = database.session()
    try:
        fixed = fix_offer_references(db)
        print(f"✓ Fixed {fixed} offer references")
        return 0
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        return 1
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
