#!/usr/bin/env python3
"""
Rewrite offers in the deprecated PO_RECEIVED stage to WON.
Run from the repository root:
    python collapse_offer_stages.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import collapse_po_received


def main():
    database = open_database(settings)
    db = database.session()
    try:
        count = collapse_po_received(db)
        print(f"✓ Moved {count} offers from PO_RECEIVED to WON")
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
