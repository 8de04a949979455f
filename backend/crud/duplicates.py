from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models.deleted_inventory_items import DeletedInventoryItem
from models.inventory_items import InventoryItem

# Lot recall only kicks in once the typed lot is this long
MIN_LOT_RECALL_LENGTH = 3
# Name suggestions start once this many characters are typed
MIN_SUGGESTION_LENGTH = 2


def find_duplicate_item(db: Session, name: str, lot_number: Optional[str]) -> Optional[dict]:
    """
    Look for an active item that a new entry would duplicate.

    A lot number is the more specific identifier, so it is checked first. The bare
    name is only matched against items without a lot: two lots of the same reagent
    are legitimately separate items.

    Returns:
        {"item": InventoryItem, "is_lot": bool} or None when there is no conflict.
    """
    trimmed_name = (name or "").strip().lower()
    trimmed_lot = (lot_number or "").strip().lower()

    if trimmed_lot:
        existing = db.query(InventoryItem).filter(
            func.lower(func.trim(InventoryItem.lot_number)) == trimmed_lot
        ).first()
        if existing:
            return {"item": existing, "is_lot": True}

    existing = db.query(InventoryItem).filter(
        func.lower(func.trim(InventoryItem.name)) == trimmed_name,
        or_(InventoryItem.lot_number.is_(None), InventoryItem.lot_number == ""),
    ).first()
    if existing:
        return {"item": existing, "is_lot": False}
    return None


def get_item_suggestions(db: Session, name: str) -> dict:
    """Names (active and deleted) containing the typed text, and the lots on file for an exact name."""
    typed = (name or "").strip()
    if len(typed) < MIN_SUGGESTION_LENGTH:
        return {"names": [], "lots": []}

    pattern = f"%{typed.lower()}%"
    names = {n for (n,) in db.query(InventoryItem.name).filter(func.lower(InventoryItem.name).like(pattern))}
    names |= {n for (n,) in db.query(DeletedInventoryItem.name).filter(func.lower(DeletedInventoryItem.name).like(pattern))}

    lots = []
    for (lot,) in db.query(InventoryItem.lot_number).filter(
        InventoryItem.name == typed, InventoryItem.lot_number.isnot(None)
    ).order_by(InventoryItem.created_at):
        if lot and lot not in lots:
            lots.append(lot)

    return {"names": sorted(names, key=str.lower), "lots": lots}


def recall_lot(db: Session, lot_number: str):
    """Stored details of the active item carrying this lot, used to prefill the add form."""
    trimmed = (lot_number or "").strip().lower()
    if len(trimmed) < MIN_LOT_RECALL_LENGTH:
        return None
    return db.query(InventoryItem).filter(
        func.lower(func.trim(InventoryItem.lot_number)) == trimmed
    ).first()
