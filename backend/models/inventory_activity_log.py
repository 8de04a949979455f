import uuid

from sqlalchemy import Column, DateTime, JSON, String
from database import Base
from utils.time_utils import now


class InventoryActivityLog(Base):
    __tablename__ = "inventory_activity_log"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    # No foreign key: entries outlive the item's stay in the active table
    item_id = Column(String(36), nullable=False, index=True)
    type = Column(String, nullable=False)  # CONSUME, EDIT, DELETE, CREATE, RESTORE, QUANTITY_ADJUST
    details = Column(JSON, nullable=False)
    user = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=now, nullable=False, index=True)
