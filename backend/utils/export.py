from datetime import datetime
from io import BytesIO
from typing import Iterable, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from utils.formatting import display_user_name, format_display_date

# item attribute -> spreadsheet header, in column order
EXPORT_COLUMNS = {
    "id": "ID",
    "name": "Name",
    "quantity": "Quantity",
    "min_stock": "Min Stock",
    "code": "Code",
    "lot_number": "Lot Number",
    "packaging_type": "Packaging Type",
    "temperature": "Temperature",
    "section": "Section",
    "expiry_date": "Expiry Date",
    "created_by": "Created By",
    "updated_by": "Last Modified By",
    "created_at": "Created At",
    "updated_at": "Updated At",
}

_DATE_COLUMNS = {"expiry_date", "created_at", "updated_at"}
_USER_COLUMNS = {"created_by", "updated_by"}


def export_row(item) -> dict:
    row = {}
    for key, header in EXPORT_COLUMNS.items():
        value = getattr(item, key)
        if key in _DATE_COLUMNS:
            value = format_display_date(value)
        elif key in _USER_COLUMNS:
            value = display_user_name(value)
        elif value is None:
            value = ""
        row[header] = value
    return row


def export_filename(section: Optional[str], today: datetime) -> str:
    filename = "lab_inventory"
    if section:
        filename += "_" + "".join(section.split())
    return f"{filename}_{today:%Y-%m-%d}.xlsx"


def build_inventory_workbook(items: Iterable) -> BytesIO:
    """One row per item, fixed columns, single 'Inventory' sheet."""
    df = pd.DataFrame([export_row(item) for item in items], columns=list(EXPORT_COLUMNS.values()))

    excel_file = BytesIO()
    with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Inventory")
        worksheet = writer.sheets["Inventory"]
        for idx, header in enumerate(df.columns, start=1):
            longest = max([len(str(v)) for v in df[header]] + [len(header)])
            worksheet.column_dimensions[get_column_letter(idx)].width = min(longest + 2, 50)
    excel_file.seek(0)
    return excel_file
