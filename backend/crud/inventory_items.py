import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from constants import DEFAULT_MIN_STOCK, EDITABLE_FIELDS
from crud.activity_log import add_activity
from crud.errors import ConflictError, InsufficientStockError, NotFoundError, StoreWriteError, ValidationError
from models.deleted_inventory_items import DeletedInventoryItem
from models.inventory_items import InventoryItem
from schemas.activity_log import (
    ConsumeDetails,
    CreateDetails,
    DeleteDetails,
    EditDetails,
    QuantityAdjustDetails,
    RestoreDetails,
)
from schemas.inventory_items import InventoryItemCreate, InventoryItemUpdate
from schemas.users import UserRef
from utils import column_values
from utils.time_utils import localize, now, to_expiry_datetime

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("lot_number", "code", "temperature", "section", "packaging_type")


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim free text; blank means not set."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@contextmanager
def _store_write(db: Session, action: str):
    """Roll back and translate database failures raised inside the block."""
    try:
        yield
    except StaleDataError as e:
        # Row removed by another request since it was read
        db.rollback()
        logger.warning(f"Failed to {action}: item no longer exists")
        raise NotFoundError("This item no longer exists.") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise StoreWriteError(f"Failed to {action}.") from e


def _commit(db: Session, action: str):
    with _store_write(db, action):
        db.commit()


def _lock_existing(db: Session, model, item_id: str):
    """Re-read the row (locking it where the database supports it). NotFoundError once another request removed it."""
    found = db.query(model.id).filter(model.id == item_id).with_for_update().first()
    if found is None:
        raise NotFoundError("This item no longer exists.")


def get_inventory_item(db: Session, item_id: str):
    return db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

def get_inventory_items(db: Session):
    return db.query(InventoryItem).all()

def get_deleted_item(db: Session, item_id: str):
    return db.query(DeletedInventoryItem).filter(DeletedInventoryItem.id == item_id).first()

def get_deleted_items(db: Session):
    return db.query(DeletedInventoryItem).order_by(DeletedInventoryItem.deleted_at.desc()).all()

def find_by_barcode(db: Session, code: str):
    """Match a scanned string against item codes and lot numbers, ignoring case."""
    trimmed = (code or "").strip().lower()
    if not trimmed:
        return None
    return db.query(InventoryItem).filter(
        or_(func.lower(InventoryItem.code) == trimmed, func.lower(InventoryItem.lot_number) == trimmed)
    ).first()


def create_inventory_item(db: Session, item: InventoryItemCreate, actor: UserRef):
    name = _clean(item.name)
    if not name or item.quantity is None or item.quantity <= 0:
        raise ValidationError("Item Name and a Quantity greater than zero are required.")

    timestamp = now()
    user_ref = actor.model_dump()
    db_item = InventoryItem(
        name=name,
        quantity=item.quantity,
        min_stock=item.min_stock if item.min_stock is not None else DEFAULT_MIN_STOCK,
        expiry_date=to_expiry_datetime(item.expiry_date),
        lot_number=_clean(item.lot_number),
        packaging_type=_clean(item.packaging_type),
        code=_clean(item.code),
        temperature=_clean(item.temperature),
        section=_clean(item.section),
        created_at=timestamp,
        updated_at=timestamp,
        created_by=user_ref,
        updated_by=user_ref,
        low_stock_notified=False,
        expiry_warning_notified=False,
    )
    db.add(db_item)
    with _store_write(db, "add item"):
        db.flush()
    add_activity(db, db_item.id, actor, CreateDetails(item_name=name, item_lot=db_item.lot_number, quantity=item.quantity))
    _commit(db, "add item")
    db.refresh(db_item)
    return db_item


def consume_inventory_item(db: Session, db_item: InventoryItem, amount: int, reason: Optional[str], actor: UserRef):
    if amount is None or amount <= 0:
        raise ValidationError("Consumption quantity must be a positive number.")
    if amount > db_item.quantity:
        raise InsufficientStockError("Stock cannot go below zero.")

    new_quantity = db_item.quantity - amount
    add_activity(db, db_item.id, actor, ConsumeDetails(
        consumed_quantity=amount,
        reason=(reason or "").strip() or "N/A",
        new_quantity=new_quantity,
        item_name=db_item.name,
        item_lot=db_item.lot_number,
    ))
    db_item.quantity = new_quantity
    db_item.updated_at = now()
    db_item.updated_by = actor.model_dump()
    _commit(db, "record consumption")
    db.refresh(db_item)
    return db_item


def adjust_inventory_quantity(db: Session, db_item: InventoryItem, delta: int, actor: UserRef):
    """Quick-receive: add stock. A restock re-arms the low-stock alert."""
    if delta is None or delta <= 0:
        raise ValidationError("Received quantity must be a positive number.")

    db_item.quantity = db_item.quantity + delta
    db_item.updated_at = now()
    db_item.updated_by = actor.model_dump()
    if db_item.low_stock_notified:
        db_item.low_stock_notified = False
    add_activity(db, db_item.id, actor, QuantityAdjustDetails(change=delta, new_quantity=db_item.quantity))
    _commit(db, "update quantity")
    db.refresh(db_item)
    return db_item


def _expiry_text(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "hour"):
        value = localize(value).date()
    return value.isoformat()


def compute_item_changes(db_item: InventoryItem, update: InventoryItemUpdate) -> dict:
    """Field-by-field diff between the stored item and the submitted fields ({field: {"old", "new"}})."""
    submitted = update.model_dump(exclude_unset=True)
    changes = {}
    for field in EDITABLE_FIELDS:
        if field not in submitted:
            continue
        value = submitted[field]
        if field == "name":
            old, new = db_item.name, (value or "").strip()
        elif field == "quantity":
            old, new = db_item.quantity, value
        elif field == "min_stock":
            old = db_item.min_stock if db_item.min_stock is not None else DEFAULT_MIN_STOCK
            new = value if value is not None else DEFAULT_MIN_STOCK
        elif field == "expiry_date":
            old, new = _expiry_text(db_item.expiry_date), _expiry_text(value)
            if old != new:
                changes[field] = {"old": old or "N/A", "new": new or "N/A"}
            continue
        else:
            old, new = getattr(db_item, field) or "", (value or "").strip()
        if old != new:
            changes[field] = {"old": old, "new": new}
    return changes


def edit_inventory_item(db: Session, db_item: InventoryItem, update: InventoryItemUpdate, actor: UserRef, confirm: bool = False):
    """Two-phase edit. Returns (applied, changes); nothing is written unless there are changes and `confirm` is set."""
    submitted = update.model_dump(exclude_unset=True)
    if "name" in submitted and not (submitted["name"] or "").strip():
        raise ValidationError("Item Name and a valid Quantity are required.")
    if "quantity" in submitted and (submitted["quantity"] is None or submitted["quantity"] < 0):
        raise ValidationError("Item Name and a valid Quantity are required.")

    changes = compute_item_changes(db_item, update)
    if not changes or not confirm:
        return False, changes

    for field in changes:
        value = submitted[field]
        if field == "expiry_date":
            value = to_expiry_datetime(value)
        elif field == "name":
            value = value.strip()
        elif field in _TEXT_FIELDS:
            value = _clean(value)
        setattr(db_item, field, value)
    db_item.updated_at = now()
    db_item.updated_by = actor.model_dump()
    add_activity(db, db_item.id, actor, EditDetails(changes=changes))
    _commit(db, "save changes")
    db.refresh(db_item)
    return True, changes


def delete_inventory_item(db: Session, db_item: InventoryItem, actor: UserRef):
    """Soft delete: snapshot to the deleted-items table, log, remove. One transaction."""
    _lock_existing(db, InventoryItem, db_item.id)
    db.refresh(db_item)
    snapshot = DeletedInventoryItem(**column_values(db_item), deleted_at=now(), deleted_by=actor.model_dump())
    # merge replaces a stale snapshot left under the same id
    db.merge(snapshot)
    add_activity(db, db_item.id, actor, DeleteDetails(item_name=db_item.name, item_lot=db_item.lot_number))
    db.delete(db_item)
    _commit(db, f'delete item "{db_item.name}"')


def restore_inventory_item(db: Session, deleted: DeletedInventoryItem, actor: UserRef):
    """Move a snapshot back to the active table with both alert flags re-armed. One transaction."""
    _lock_existing(db, DeletedInventoryItem, deleted.id)
    if get_inventory_item(db, deleted.id) is not None:
        raise ConflictError(f'Item "{deleted.name}" is already in the active inventory.')

    values = column_values(deleted)
    values.pop("deleted_at", None)
    values.pop("deleted_by", None)
    values.update(low_stock_notified=False, expiry_warning_notified=False)
    db_item = InventoryItem(**values)
    db.add(db_item)
    add_activity(db, deleted.id, actor, RestoreDetails(item_name=deleted.name, item_lot=deleted.lot_number))
    db.delete(deleted)
    _commit(db, "restore item")
    db.refresh(db_item)
    return db_item


def permanently_delete_item(db: Session, deleted: DeletedInventoryItem):
    # Terminal and unlogged: there is no parent left to log against
    _lock_existing(db, DeletedInventoryItem, deleted.id)
    db.delete(deleted)
    _commit(db, "permanently delete item")


def reconcile_deleted_items(db: Session) -> list:
    """Drop deleted-item snapshots whose id is also active. The active row wins."""
    stale = (
        db.query(DeletedInventoryItem)
        .join(InventoryItem, InventoryItem.id == DeletedInventoryItem.id)
        .all()
    )
    repaired = []
    for snapshot in stale:
        logger.warning(f"Item {snapshot.id} ('{snapshot.name}') is both active and deleted; dropping the deleted snapshot.")
        repaired.append(snapshot.id)
        db.delete(snapshot)
    if repaired:
        _commit(db, "reconcile deleted items")
    return repaired
