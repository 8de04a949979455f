from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from live_feed import InventoryFeed, get_inventory_feed
from schemas.inventory_items import DeletedInventoryItem, InventoryItem
from schemas.users import UserRef
from utils.auth_utils import get_current_actor, get_current_user
from utils.formatting import display_user_name
from utils.time_utils import localize
from crud import inventory_items as crud_inventory_items

router = APIRouter(prefix="/deleted-inventory-items", tags=["Deleted Inventory Items"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("deleted_inventory_items")


def _get_deleted_or_404(db: Session, item_id: str):
    deleted = crud_inventory_items.get_deleted_item(db=db, item_id=item_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail="Deleted item not found")
    return deleted


@router.get("/", response_model=List[DeletedInventoryItem])
def read_deleted_items(feed: InventoryFeed = Depends(get_inventory_feed)):
    """Deleted items from the live view, most recently deleted first."""
    items = feed.deleted_items()
    return sorted(items, key=lambda item: localize(item.deleted_at) if item.deleted_at else localize(item.updated_at), reverse=True)

@router.post("/{item_id}/restore", response_model=InventoryItem)
def restore_deleted_item(
    item_id: str,
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Move an item back to the active inventory. Both notification flags are re-armed."""
    deleted = _get_deleted_or_404(db, item_id)
    restored = crud_inventory_items.restore_inventory_item(db=db, deleted=deleted, actor=actor)
    logger.info(f"Inventory item '{restored.name}' (ID: {item_id}) restored by {display_user_name(actor)}")
    return restored

@router.delete("/{item_id}")
def permanently_delete_item(
    item_id: str,
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Erase a deleted item for good. This cannot be undone and leaves no activity entry."""
    deleted = _get_deleted_or_404(db, item_id)
    name = deleted.name
    crud_inventory_items.permanently_delete_item(db=db, deleted=deleted)
    logger.info(f"Deleted item '{name}' (ID: {item_id}) permanently removed by {display_user_name(actor)}")
    return {"message": f'Item "{name}" permanently deleted.'}

@router.post("/reconcile")
def reconcile_deleted_items(db: Session = Depends(get_db)):
    """Drop deleted-item snapshots that are also present in the active inventory."""
    repaired = crud_inventory_items.reconcile_deleted_items(db)
    return {"reconciled": repaired}
