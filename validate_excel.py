#!/usr/bin/env python3
"""
Check that an import workbook has the required columns and at least one row.
    python validate_excel.py [path]    (default: ./data/import-data.xlsx)
Exits 0 when the file is valid, 1 otherwise.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from kardexcare.maintenance import DEFAULT_EXCEL_PATH, validate_excel_file
from kardexcare.services.excel import REQUIRED_COLUMNS


def main(argv):
    path = argv[1] if len(argv) > 1 else DEFAULT_EXCEL_PATH
    if not os.path.exists(path):
        print(f"Error: file not found: {path}")
        return 1

    try:
        valid, missing, row_count = validate_excel_file(path)
    except Exception as e:
        print(f"Error: unable to read {path}: {e}")
        return 1

    print(f"File: {path}")
    print(f"Data rows: {row_count}")
    for column in REQUIRED_COLUMNS:
        marker = "✗" if column in missing else "✓"
        print(f"  {marker} {column}")

    if valid:
        print("\n✓ File is valid for import")
        return 0
    if missing:
        print(f"\n✗ Missing required columns: {', '.join(missing)}")
    else:
        print("\n✗ The sheet has no data rows")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
