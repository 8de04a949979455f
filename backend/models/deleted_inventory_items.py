from database import Base
from models.audit_mixin import SoftDeleteMixin
from models.inventory_items import InventoryItemColumns


class DeletedInventoryItem(Base, InventoryItemColumns, SoftDeleteMixin):
    """Snapshot of a soft-deleted item, stored under the id it had while active."""
    __tablename__ = "deleted_inventory_items"
