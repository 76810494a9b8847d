"""
Excel helpers for customer/asset imports and exports.

Source sheets are hand-maintained, so header names are matched exactly or
after trimming surrounding whitespace.
"""
import io
from typing import List, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

REQUIRED_COLUMNS = [
    "Name of the Customer",
    "Place",
    "Department",
    "Zone",
    "Serial Number",
]

OPTIONAL_COLUMNS = [
    "Machine ID",
    "Model",
    "Contact Person",
    "Contact Number",
]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _normalize(header) -> str:
    return str(header).strip() if header is not None else ""


def find_header(headers: List, column: str) -> Optional[str]:
    """Return the header as it appears in the sheet: exact, then with a trailing space, then trimmed"""
    if column in headers:
        return column
    if f"{column} " in headers:
        return f"{column} "
    for header in headers:
        if _normalize(header) == column:
            return header
    return None


def validate_import_headers(headers: List, data_row_count: int) -> Tuple[bool, List[str]]:
    """Valid when every required column is present and at least one data row exists"""
    missing = [column for column in REQUIRED_COLUMNS if find_header(headers, column) is None]
    return not missing and data_row_count > 0, missing


def get_cell(row: dict, column: str):
    header = find_header(list(row.keys()), column)
    if header is None:
        return None
    value = row[header]
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def read_sheet(content: bytes) -> Tuple[List, List[Tuple[int, dict]]]:
    """Read the first sheet into its header list and one (sheet row number, dict) pair per non-empty data row"""
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        try:
            headers = [h for h in next(rows)]
        except StopIteration:
            return [], []

        records = []
        for row_number, values in enumerate(rows, 2):
            if values is None or all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            records.append((row_number, {h: v for h, v in zip(headers, values) if h is not None}))
        return [h for h in headers if h is not None], records
    finally:
        wb.close()


def read_sheet_file(path: str) -> Tuple[List, List[Tuple[int, dict]]]:
    with open(path, "rb") as handle:
        return read_sheet(handle.read())


def create_styled_workbook(columns: List[str], sheet_name: str = "Data") -> Workbook:
    """Create a styled Excel workbook with headers"""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for col_idx, column in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=column)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = border
        ws.column_dimensions[cell.column_letter].width = max(15, len(column) + 5)

    ws.freeze_panes = "A2"
    return wb


def workbook_bytes(wb: Workbook) -> io.BytesIO:
    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output
