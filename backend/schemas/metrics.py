from pydantic import BaseModel

class InventoryMetrics(BaseModel):
    total_items: int = 0
    total_quantity: int = 0
    low_stock_count: int = 0
    expiring_items_count: int = 0
