from models.inventory_items import InventoryItem
from models.deleted_inventory_items import DeletedInventoryItem
from models.inventory_activity_log import InventoryActivityLog

__all__ = ['DeletedInventoryItem', 'InventoryActivityLog', 'InventoryItem',]
