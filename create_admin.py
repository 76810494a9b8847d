#!/usr/bin/env python3
"""
Create an ADMIN user, or reset the password of an existing one.
Run from the repository root:
    python create_admin.py admin@example.com 'S3cret-pass' "Admin Name"
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.config import settings
from kardexcare.database import open_database
from kardexcare.maintenance import create_admin


def main(argv):
    if len(argv) < 3:
        print("Usage: python create_admin.py <email> <password> [name]")
        return 1

    email, password = argv[1], argv[2]
    name = argv[3] if len(argv) > 3 else "Admin"

    database = open_database(settings)
    db = database.session()
    try:
        user, created = create_admin(db, email, password, name)
        if created:
            print(f"Success! Created admin user: {user.email}")
        else:
            print(f"Success! Password reset for user: {user.email}")
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main(sys.argv))
