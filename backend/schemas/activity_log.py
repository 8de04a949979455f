"""
Activity log entry schemas.

`details` is a tagged union keyed by the entry type, so every consumer of a log
entry handles a known shape per type instead of an open-ended dict.
"""

from datetime import datetime
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field

from schemas.inventory_items import FieldChange
from schemas.users import UserRef


def _field_label(field_name: str) -> str:
    return field_name.replace("_", " ").title()


class CreateDetails(BaseModel):
    type: Literal["CREATE"] = "CREATE"
    item_name: str
    item_lot: Optional[str] = None
    quantity: int

    def summary(self) -> str:
        return f"Item created with {self.quantity} unit(s)."

class ConsumeDetails(BaseModel):
    type: Literal["CONSUME"] = "CONSUME"
    consumed_quantity: int
    reason: str
    new_quantity: int
    item_name: Optional[str] = None
    item_lot: Optional[str] = None

    def summary(self) -> str:
        return f"Consumed: {self.consumed_quantity} unit(s). New stock: {self.new_quantity}. Reason: {self.reason}"

class QuantityAdjustDetails(BaseModel):
    type: Literal["QUANTITY_ADJUST"] = "QUANTITY_ADJUST"
    change: int
    new_quantity: int

    def summary(self) -> str:
        return f"Received {self.change} unit(s). New stock: {self.new_quantity}."

class EditDetails(BaseModel):
    type: Literal["EDIT"] = "EDIT"
    changes: Dict[str, FieldChange] = {}

    def summary(self) -> str:
        if not self.changes:
            return "Item details edited."
        parts = [f'{_field_label(field)}: "{change.old}" → "{change.new}"' for field, change in self.changes.items()]
        return "Item details edited: " + "; ".join(parts)

class DeleteDetails(BaseModel):
    type: Literal["DELETE"] = "DELETE"
    item_name: str
    item_lot: Optional[str] = None

    def summary(self) -> str:
        return "Item moved to Deleted Items."

class RestoreDetails(BaseModel):
    type: Literal["RESTORE"] = "RESTORE"
    item_name: str
    item_lot: Optional[str] = None

    def summary(self) -> str:
        return "Item restored from Deleted Items."


ActivityDetails = Annotated[
    Union[CreateDetails, ConsumeDetails, QuantityAdjustDetails, EditDetails, DeleteDetails, RestoreDetails],
    Field(discriminator="type"),
]


class ActivityLogEntry(BaseModel):
    id: str
    item_id: str
    timestamp: datetime
    user: Optional[UserRef] = None
    type: str
    details: ActivityDetails

    @computed_field
    @property
    def summary(self) -> str:
        return self.details.summary()

    class Config:
        from_attributes = True
