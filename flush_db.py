#!/usr/bin/env python3
"""
Full database reset - drops all tables and recreates them.
WARNING: This destroys ALL data including users, customers, tickets and offers.

Execute from the repository root:
    python flush_db.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database


def flush_database():
    print("=" * 60)
    print("FULL DATABASE RESET")
    print("=" * 60)
    print("\nWARNING: This will DELETE ALL DATA in the database!")
    print("This includes: users, zones, customers, tickets, offers, etc.\n")

    confirm = input("Type 'YES' to confirm full database reset: ")
    if confirm != "YES":
        print("Aborted. No changes made.")
        return 0

    database = open_database(settings, create_tables=False)
    try:
        print("\nDropping all tables...")
        database.drop_all()
        print("✓ All tables dropped")

        print("\nRecreating all tables...")
        database.create_all()
        print("✓ All tables created")
    finally:
        database.dispose()

    print("\n" + "=" * 60)
    print("DATABASE RESET COMPLETE!")
    print("=" * 60)
    print("\nCreate a first administrator with:")
    print("  python create_admin.py <email> <password>")
    return 0


if __name__ == "__main__":
    sys.exit(flush_database())
