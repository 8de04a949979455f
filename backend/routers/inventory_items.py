import asyncio
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from live_feed import InventoryFeed, get_inventory_feed
from schemas.activity_log import ActivityLogEntry
from schemas.inventory_items import (
    ConsumeRequest,
    DuplicateItemInfo,
    EditResult,
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    ItemSuggestions,
    ReceiveRequest,
)
from schemas.metrics import InventoryMetrics
from schemas.users import UserRef
from utils.auth_utils import get_current_actor, get_current_user
from utils.export import build_inventory_workbook, export_filename
from utils.formatting import display_user_name
from utils.inventory_view import compute_metrics, filter_items, sort_items
from utils.time_utils import now
from crud import activity_log as crud_activity_log
from crud import duplicates as crud_duplicates
from crud import inventory_items as crud_inventory_items

router = APIRouter(prefix="/inventory-items", tags=["Inventory Items"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("inventory_items")

STATUS_PATTERN = "^(low-stock|expiring)$"
SORT_PATTERN = "^(name|expiry_date|quantity|lot_number)$"
ORDER_PATTERN = "^(asc|desc)$"

# Per-client buffer of pending events; newer events are dropped once it is full
EVENT_QUEUE_SIZE = 100
KEEPALIVE_SECONDS = 15


def _get_item_or_404(db: Session, item_id: str):
    db_item = crud_inventory_items.get_inventory_item(db=db, item_id=item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item


def _filtered_view(
    feed: InventoryFeed,
    search: Optional[str],
    temperature: Optional[str],
    section: Optional[str],
    item_status: Optional[str],
    sort_by: str,
    sort_order: str,
):
    items = filter_items(feed.items(), now(), search=search, temperature=temperature, section=section, status=item_status)
    return sort_items(items, sort_by=sort_by, order=sort_order)


@router.post("/", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item: InventoryItemCreate,
    force: bool = Query(False, description="Create even if a matching item exists"),
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Create a new inventory item. Answers 409 with the conflicting item unless `force` is set."""
    if not force:
        duplicate = crud_duplicates.find_duplicate_item(db, item.name, item.lot_number)
        if duplicate:
            existing = duplicate["item"]
            if duplicate["is_lot"]:
                message = f'An item with Lot # {existing.lot_number} already exists: "{existing.name}".'
            else:
                message = f'An item named "{existing.name}" without a lot number already exists.'
            info = DuplicateItemInfo(item=InventoryItem.model_validate(existing), is_lot=duplicate["is_lot"])
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": message, "duplicate": info.model_dump(mode="json")},
            )

    new_item = crud_inventory_items.create_inventory_item(db=db, item=item, actor=actor)
    logger.info(f"Inventory item '{new_item.name}' (ID: {new_item.id}) created by {display_user_name(actor)}")
    return new_item

@router.get("/", response_model=List[InventoryItem])
def read_inventory_items(
    search: Optional[str] = None,
    temperature: Optional[str] = None,
    section: Optional[str] = None,
    item_status: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    sort_by: str = Query("name", pattern=SORT_PATTERN),
    sort_order: str = Query("asc", pattern=ORDER_PATTERN),
    feed: InventoryFeed = Depends(get_inventory_feed),
):
    """List active items from the live view, filtered and sorted."""
    return _filtered_view(feed, search, temperature, section, item_status, sort_by, sort_order)

@router.get("/metrics", response_model=InventoryMetrics)
def read_inventory_metrics(feed: InventoryFeed = Depends(get_inventory_feed)):
    return compute_metrics(feed.items(), now())

@router.get("/export")
def export_inventory_items(
    search: Optional[str] = None,
    temperature: Optional[str] = None,
    section: Optional[str] = None,
    item_status: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    sort_by: str = Query("name", pattern=SORT_PATTERN),
    sort_order: str = Query("asc", pattern=ORDER_PATTERN),
    feed: InventoryFeed = Depends(get_inventory_feed),
):
    """Download the current filtered and sorted view as an Excel workbook."""
    items = _filtered_view(feed, search, temperature, section, item_status, sort_by, sort_order)
    if not items:
        raise HTTPException(status_code=404, detail="No items to export based on current filters.")

    excel_file = build_inventory_workbook(items)
    filename = export_filename(section, now())
    logger.info(f"Exported {len(items)} item(s) to {filename}")
    return StreamingResponse(
        excel_file,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/lookup", response_model=InventoryItem)
def lookup_inventory_item(code: str, db: Session = Depends(get_db)):
    """Find an item by a scanned barcode, matching its code or lot number."""
    found = crud_inventory_items.find_by_barcode(db, code)
    if found is None:
        raise HTTPException(status_code=404, detail="No item found.")
    return found

@router.get("/suggestions", response_model=ItemSuggestions)
def read_item_suggestions(name: str, db: Session = Depends(get_db)):
    return crud_duplicates.get_item_suggestions(db, name)

@router.get("/lot-recall", response_model=InventoryItem)
def recall_lot_details(lot_number: str, db: Session = Depends(get_db)):
    """Details stored for an existing lot, to prefill the add form."""
    found = crud_duplicates.recall_lot(db, lot_number)
    if found is None:
        raise HTTPException(status_code=404, detail="No item found for this lot.")
    return found

def _enqueue_event(queue: asyncio.Queue, feed_event):
    try:
        queue.put_nowait(feed_event)
    except asyncio.QueueFull:
        logger.warning(f"Event stream client is behind; dropped change for item {feed_event.item_id}")


async def inventory_event_stream(request: Request, feed: InventoryFeed, keepalive: float = KEEPALIVE_SECONDS):
    """Subscribe to the feed for as long as the client stays connected."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)
    unsubscribe = feed.subscribe(lambda feed_event: loop.call_soon_threadsafe(_enqueue_event, queue, feed_event))
    try:
        while not await request.is_disconnected():
            try:
                feed_event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {feed_event.model_dump_json()}\n\n"
    finally:
        unsubscribe()


@router.get("/events")
async def stream_inventory_events(request: Request, feed: InventoryFeed = Depends(get_inventory_feed)):
    """Server-sent events, one per committed change to the active or deleted items."""
    return StreamingResponse(inventory_event_stream(request, feed), media_type="text/event-stream")

@router.get("/{item_id}", response_model=InventoryItem)
def read_inventory_item(item_id: str, db: Session = Depends(get_db)):
    """Retrieve a single inventory item by ID. 404 once it has been deleted."""
    return _get_item_or_404(db, item_id)

@router.patch("/{item_id}", response_model=EditResult)
def update_inventory_item(
    item_id: str,
    item: InventoryItemUpdate,
    confirm: bool = Query(False, description="Apply the changes; without it only the diff is returned"),
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Edit an item in two steps: preview the field changes, then send again with `confirm=true`."""
    db_item = _get_item_or_404(db, item_id)
    applied, changes = crud_inventory_items.edit_inventory_item(db=db, db_item=db_item, update=item, actor=actor, confirm=confirm)
    if applied:
        logger.info(f"Inventory item '{db_item.name}' (ID: {item_id}) updated by {display_user_name(actor)}: {', '.join(changes)}")
    return EditResult(applied=applied, changes=changes, item=InventoryItem.model_validate(db_item))

@router.post("/{item_id}/consume", response_model=InventoryItem)
def consume_inventory_item(
    item_id: str,
    request: ConsumeRequest,
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    db_item = _get_item_or_404(db, item_id)
    updated_item = crud_inventory_items.consume_inventory_item(db=db, db_item=db_item, amount=request.amount, reason=request.reason, actor=actor)
    logger.info(f"Consumed {request.amount} of '{updated_item.name}' (ID: {item_id}) by {display_user_name(actor)}")
    return updated_item

@router.post("/{item_id}/receive", response_model=InventoryItem)
def receive_inventory_item(
    item_id: str,
    request: ReceiveRequest,
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Quick-receive: add stock to an existing item."""
    db_item = _get_item_or_404(db, item_id)
    updated_item = crud_inventory_items.adjust_inventory_quantity(db=db, db_item=db_item, delta=request.amount, actor=actor)
    logger.info(f"Received {request.amount} of '{updated_item.name}' (ID: {item_id}) by {display_user_name(actor)}")
    return updated_item

@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: str,
    db: Session = Depends(get_db),
    actor: UserRef = Depends(get_current_actor),
):
    """Move an item to Deleted Items."""
    db_item = _get_item_or_404(db, item_id)
    name = db_item.name
    crud_inventory_items.delete_inventory_item(db=db, db_item=db_item, actor=actor)
    logger.info(f"Inventory item '{name}' (ID: {item_id}) moved to deleted items by {display_user_name(actor)}")
    return {"message": f'Item "{name}" moved to Deleted Items.'}

@router.get("/{item_id}/activity", response_model=List[ActivityLogEntry])
def get_inventory_item_activity(
    item_id: str,
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    Retrieve the activity history for an item, newest first.
    Works for deleted items too: the log is kept under the item id.
    """
    return crud_activity_log.get_item_activity(db=db, item_id=item_id, limit=limit)
