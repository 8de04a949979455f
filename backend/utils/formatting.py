from datetime import datetime
from typing import Optional, Union

from schemas.users import UserRef
from utils.time_utils import localize


def _short_id(uid: Optional[str]) -> str:
    return f"{uid[:8]}..." if uid else "N/A"


def format_display_date(value: Optional[datetime]) -> str:
    """e.g. "Oct 18, 2026, 09:05 AM"; "N/A" when missing."""
    if not value:
        return "N/A"
    value = localize(value)
    return f"{value:%b} {value.day}, {value.year}, {value:%I:%M %p}"


def display_user_name(user: Optional[Union[UserRef, dict]]) -> str:
    if not user:
        return "System"
    if isinstance(user, dict):
        user = UserRef(**user)
    if user.is_anonymous:
        return f"Guest ({_short_id(user.uid)})"
    return user.name or f"User ({_short_id(user.uid)})"
