from typing import Optional
from sqlalchemy.orm import Session

from models.inventory_activity_log import InventoryActivityLog
from schemas.users import UserRef
from utils.time_utils import now


def add_activity(db: Session, item_id: str, actor: Optional[UserRef], details) -> InventoryActivityLog:
    """Stage an activity entry in the caller's transaction. `details` is one of the schemas.activity_log variants."""
    entry = InventoryActivityLog(
        item_id=item_id,
        type=details.type,
        details=details.model_dump(mode="json"),
        user=actor.model_dump() if actor else None,
        timestamp=now(),
    )
    db.add(entry)
    return entry


def get_item_activity(db: Session, item_id: str, limit: Optional[int] = 10):
    """Entries for one item, newest first."""
    query = (
        db.query(InventoryActivityLog)
        .filter(InventoryActivityLog.item_id == item_id)
        .order_by(InventoryActivityLog.timestamp.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()
