import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from database import Base
from models.audit_mixin import TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class InventoryItemColumns(TimestampMixin):
    """Columns shared by active and soft-deleted items, so a row can move between them unchanged."""
    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    name = Column(String, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    lot_number = Column(String, nullable=True, index=True)
    packaging_type = Column(String, nullable=True)
    code = Column(String, nullable=True, index=True)
    temperature = Column(String, nullable=True)  # one of constants.TEMP_OPTIONS
    section = Column(String, nullable=True)  # one of constants.LAB_SECTIONS
    low_stock_notified = Column(Boolean, nullable=False, default=False)
    expiry_warning_notified = Column(Boolean, nullable=False, default=False)


class InventoryItem(Base, InventoryItemColumns):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
    )
