#!/usr/bin/env python3
"""
Set the year of each offer month field to the offer's registration year.
Run from the repository root:
    python fix_offer_months.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import fix_offer_months


def main():
    database = open_database(settings)
    db = database.session()
    try:
        fixed = fix_offer_months(db)
        print(f"✓ Fixed month fields on {fixed} offers")
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
