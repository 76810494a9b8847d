#!/usr/bin/env python3
"""
Assign a short form to every service zone that has none.
Run from the repository root:
    python update_zone_shortform.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import update_zone_short_forms


def main():
    database = open_database(settings)
    db = database.session()
    try:
        results = update_zone_short_forms(db)
        for name, short_form in results.items():
            print(f"  {name}: {short_form or '(left unset, already taken)'}")
        print(f"✓ Processed {len(results)} zones")
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
