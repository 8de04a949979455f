from pydantic import BaseModel
from typing import Optional

class UserRef(BaseModel):
    """Snapshot of the acting user, stored with every item write and log entry."""
    uid: str
    name: Optional[str] = None
    is_anonymous: bool = False
