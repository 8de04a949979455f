from datetime import datetime
from types import SimpleNamespace

from openpyxl import load_workbook

from schemas.users import UserRef
from utils.export import EXPORT_COLUMNS, build_inventory_workbook, export_filename, export_row
from utils.formatting import display_user_name, format_display_date
from utils.time_utils import APP_TZ


def test_display_user_name():
    assert display_user_name(None) == "System"
    assert display_user_name(UserRef(uid="abcdef123456", name="Dana Lab")) == "Dana Lab"
    assert display_user_name(UserRef(uid="abcdef123456")) == "User (abcdef12...)"
    assert display_user_name(UserRef(uid="guest987654321", is_anonymous=True)) == "Guest (guest987...)"
    assert display_user_name({"uid": "abcdef123456", "name": "Dana Lab", "is_anonymous": False}) == "Dana Lab"


def test_format_display_date():
    assert format_display_date(None) == "N/A"
    assert format_display_date(APP_TZ.localize(datetime(2026, 10, 18, 9, 5))) == "Oct 18, 2026, 09:05 AM"
    assert format_display_date(APP_TZ.localize(datetime(2026, 1, 2, 21, 30))) == "Jan 2, 2026, 09:30 PM"


def test_export_filename():
    today = datetime(2026, 10, 18)

    assert export_filename(None, today) == "lab_inventory_2026-10-18.xlsx"
    assert export_filename("Blood Bank", today) == "lab_inventory_BloodBank_2026-10-18.xlsx"


def _export_item(**overrides):
    fields = dict(
        id="item-1",
        name="Gauze",
        quantity=4,
        min_stock=None,
        code=None,
        lot_number="L-1",
        packaging_type=None,
        temperature="RT (Room Temp)",
        section="Phlebotomy",
        expiry_date=None,
        created_by={"uid": "abcdef123456", "name": "Dana Lab", "is_anonymous": False},
        updated_by=None,
        created_at=APP_TZ.localize(datetime(2026, 10, 1, 8, 0)),
        updated_at=APP_TZ.localize(datetime(2026, 10, 2, 8, 0)),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_export_row_formats_values():
    row = export_row(_export_item())

    assert list(row) == list(EXPORT_COLUMNS.values())
    assert row["Name"] == "Gauze"
    assert row["Code"] == ""
    assert row["Expiry Date"] == "N/A"
    assert row["Created By"] == "Dana Lab"
    assert row["Last Modified By"] == "System"
    assert row["Created At"] == "Oct 1, 2026, 08:00 AM"


def test_build_inventory_workbook():
    workbook = load_workbook(build_inventory_workbook([_export_item(), _export_item(id="item-2", name="Saline")]))

    sheet = workbook["Inventory"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == tuple(EXPORT_COLUMNS.values())
    assert [row[1] for row in rows[1:]] == ["Gauze", "Saline"]
