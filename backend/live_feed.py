"""
Live inventory read model.

Keeps an in-process copy of the active and deleted items in sync with the
database. Session events record which inventory rows a transaction touched;
once it commits, those rows are re-read and every subscriber is told about the
change. Nothing is published for rolled-back work.

The feed is started and stopped by the application lifespan. Readers always get
copies, never the live dicts.
"""

import logging
import threading
from typing import Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel
from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from database import SessionLocal
from models.deleted_inventory_items import DeletedInventoryItem
from models.inventory_items import InventoryItem
from schemas.inventory_items import (
    DeletedInventoryItem as DeletedInventoryItemSchema,
    InventoryItem as InventoryItemSchema,
)

logger = logging.getLogger(__name__)

ACTIVE = "inventory"
DELETED = "deleted_inventory"

_PENDING_KEY = "inventory_feed_pending"
_TRACKED = {InventoryItem: ACTIVE, DeletedInventoryItem: DELETED}


class FeedEvent(BaseModel):
    collection: Literal["inventory", "deleted_inventory"]
    item_id: str
    # None when the row left the collection
    item: Optional[Union[DeletedInventoryItemSchema, InventoryItemSchema]] = None


def _row_id(obj) -> Optional[str]:
    state = inspect(obj)
    if state.identity:
        return state.identity[0]
    return state.dict.get("id")


class InventoryFeed:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self._lock = threading.RLock()
        self._items: Dict[str, InventoryItemSchema] = {}
        self._deleted: Dict[str, DeletedInventoryItemSchema] = {}
        self._subscribers: List[Callable[[FeedEvent], None]] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def start(self):
        """Load the current state and begin listening for committed changes."""
        if self._running:
            return
        with self.session_factory() as db:
            items = {row.id: InventoryItemSchema.model_validate(row) for row in db.query(InventoryItem).all()}
            deleted = {row.id: DeletedInventoryItemSchema.model_validate(row) for row in db.query(DeletedInventoryItem).all()}
        with self._lock:
            self._items = items
            self._deleted = deleted
        event.listen(Session, "after_flush", self._collect_changes)
        event.listen(Session, "after_commit", self._publish_changes)
        event.listen(Session, "after_rollback", self._discard_changes)
        self._running = True
        logger.info(f"Inventory feed started with {len(items)} active and {len(deleted)} deleted item(s).")

    def stop(self):
        """Stop listening and drop all subscribers and cached state."""
        if not self._running:
            return
        event.remove(Session, "after_flush", self._collect_changes)
        event.remove(Session, "after_commit", self._publish_changes)
        event.remove(Session, "after_rollback", self._discard_changes)
        with self._lock:
            self._subscribers.clear()
            self._items.clear()
            self._deleted.clear()
        self._running = False
        logger.info("Inventory feed stopped.")

    def subscribe(self, callback: Callable[[FeedEvent], None]) -> Callable[[], None]:
        """Register a callback for every committed change. Returns the matching unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def items(self) -> List[InventoryItemSchema]:
        with self._lock:
            return [item.model_copy() for item in self._items.values()]

    def deleted_items(self) -> List[DeletedInventoryItemSchema]:
        with self._lock:
            return [item.model_copy() for item in self._deleted.values()]

    def get(self, item_id: str) -> Optional[InventoryItemSchema]:
        with self._lock:
            item = self._items.get(item_id)
            return item.model_copy() if item else None

    # Session event handlers

    def _collect_changes(self, session: Session, flush_context):
        pending = session.info.setdefault(_PENDING_KEY, set())
        for obj in list(session.new) + list(session.dirty) + list(session.deleted):
            collection = _TRACKED.get(type(obj))
            if collection is None:
                continue
            row_id = _row_id(obj)
            if row_id:
                pending.add((collection, row_id))

    def _discard_changes(self, session: Session):
        session.info.pop(_PENDING_KEY, None)

    def _publish_changes(self, session: Session):
        pending = session.info.pop(_PENDING_KEY, None)
        if not pending:
            return
        try:
            events = self._reload(pending)
        except Exception as e:
            logger.error(f"Failed to refresh inventory feed: {e}", exc_info=True)
            return
        with self._lock:
            subscribers = list(self._subscribers)
        for feed_event in events:
            for callback in subscribers:
                try:
                    callback(feed_event)
                except Exception as e:
                    logger.error(f"Inventory feed subscriber failed: {e}", exc_info=True)

    def _reload(self, pending) -> List[FeedEvent]:
        """Re-read the touched rows from a fresh session and fold them into the cached state."""
        active_ids = {row_id for collection, row_id in pending if collection == ACTIVE}
        deleted_ids = {row_id for collection, row_id in pending if collection == DELETED}
        with self.session_factory() as db:
            active_rows = {
                row.id: InventoryItemSchema.model_validate(row)
                for row in db.query(InventoryItem).filter(InventoryItem.id.in_(active_ids))
            } if active_ids else {}
            deleted_rows = {
                row.id: DeletedInventoryItemSchema.model_validate(row)
                for row in db.query(DeletedInventoryItem).filter(DeletedInventoryItem.id.in_(deleted_ids))
            } if deleted_ids else {}

        events = []
        with self._lock:
            for row_id in active_ids:
                item = active_rows.get(row_id)
                if item is None:
                    self._items.pop(row_id, None)
                else:
                    self._items[row_id] = item
                events.append(FeedEvent(collection=ACTIVE, item_id=row_id, item=item))
            for row_id in deleted_ids:
                item = deleted_rows.get(row_id)
                if item is None:
                    self._deleted.pop(row_id, None)
                else:
                    self._deleted[row_id] = item
                events.append(FeedEvent(collection=DELETED, item_id=row_id, item=item))
        return events


inventory_feed = InventoryFeed()


def get_inventory_feed() -> InventoryFeed:
    """FastAPI dependency returning the process-wide feed."""
    return inventory_feed
