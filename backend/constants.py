DEFAULT_MIN_STOCK = 1

# Items expiring within this many days count as "expiring soon"
EXPIRY_WARNING_DAYS = 7

TEMP_OPTIONS = [
    "RT (Room Temp)",
    "2-8 °C (Refrigerated)",
    "-18 to -40 °C (Frozen)",
]

LAB_SECTIONS = [
    "Blood Bank",
    "Chemistry",
    "Hematology",
    "Histology",
    "Microbiology",
    "Molecular Diagnostics",
    "Office Items",
    "Phlebotomy",
]

STATUS_LOW_STOCK = "low-stock"
STATUS_EXPIRING = "expiring"

# Fields compared when editing an item, in display order
EDITABLE_FIELDS = [
    "name",
    "quantity",
    "min_stock",
    "expiry_date",
    "lot_number",
    "code",
    "temperature",
    "section",
    "packaging_type",
]
