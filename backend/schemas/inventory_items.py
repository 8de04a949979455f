from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from constants import LAB_SECTIONS, TEMP_OPTIONS
from schemas.users import UserRef


def _check_option(value: Optional[str], options: List[str], label: str) -> Optional[str]:
    if value is None or value == "":
        return value
    if value not in options:
        raise ValueError(f"{label} must be one of: {', '.join(options)}")
    return value


class InventoryItemBase(BaseModel):
    name: str
    quantity: int
    min_stock: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None
    packaging_type: Optional[str] = None
    code: Optional[str] = None
    temperature: Optional[str] = None
    section: Optional[str] = None

    @field_validator("temperature")
    @classmethod
    def check_temperature(cls, value):
        return _check_option(value, TEMP_OPTIONS, "Temperature")

    @field_validator("section")
    @classmethod
    def check_section(cls, value):
        return _check_option(value, LAB_SECTIONS, "Section")

class InventoryItemCreate(InventoryItemBase):
    pass

class InventoryItemUpdate(BaseModel):
    # Only the fields sent are compared against the stored item
    name: Optional[str] = None
    quantity: Optional[int] = None
    min_stock: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None
    packaging_type: Optional[str] = None
    code: Optional[str] = None
    temperature: Optional[str] = None
    section: Optional[str] = None

    @field_validator("temperature")
    @classmethod
    def check_temperature(cls, value):
        return _check_option(value, TEMP_OPTIONS, "Temperature")

    @field_validator("section")
    @classmethod
    def check_section(cls, value):
        return _check_option(value, LAB_SECTIONS, "Section")

class ConsumeRequest(BaseModel):
    amount: int
    reason: Optional[str] = None

class ReceiveRequest(BaseModel):
    amount: int = 1

class InventoryItem(BaseModel):
    id: str
    name: str
    quantity: int
    min_stock: Optional[int] = None
    expiry_date: Optional[datetime] = None
    lot_number: Optional[str] = None
    packaging_type: Optional[str] = None
    code: Optional[str] = None
    temperature: Optional[str] = None
    section: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[UserRef] = None
    updated_by: Optional[UserRef] = None
    low_stock_notified: bool = False
    expiry_warning_notified: bool = False

    class Config:
        from_attributes = True

class DeletedInventoryItem(InventoryItem):
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[UserRef] = None

class DuplicateItemInfo(BaseModel):
    item: InventoryItem
    is_lot: bool

class FieldChange(BaseModel):
    old: Any = None
    new: Any = None

class EditResult(BaseModel):
    applied: bool
    changes: Dict[str, FieldChange] = {}
    item: InventoryItem

class ItemSuggestions(BaseModel):
    names: List[str] = []
    lots: List[str] = []
