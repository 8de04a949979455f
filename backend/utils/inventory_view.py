"""
Filtering, sorting and dashboard metrics over an in-memory set of items.

Nothing here touches the database; callers pass item snapshots (ORM rows or
schemas.inventory_items.InventoryItem) and the reference time.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from constants import DEFAULT_MIN_STOCK, EXPIRY_WARNING_DAYS, STATUS_EXPIRING, STATUS_LOW_STOCK
from schemas.metrics import InventoryMetrics
from utils.time_utils import localize

SORT_FIELDS = ("name", "expiry_date", "quantity", "lot_number")


def min_stock_threshold(item) -> int:
    return item.min_stock if item.min_stock is not None else DEFAULT_MIN_STOCK


def is_low_stock(item) -> bool:
    return item.quantity <= min_stock_threshold(item)


def is_expired(item, now: datetime) -> bool:
    if item.expiry_date is None:
        return False
    return localize(item.expiry_date) < localize(now)


def is_expiring_soon(item, now: datetime) -> bool:
    """Not yet expired, and expiring no later than EXPIRY_WARNING_DAYS from now."""
    if item.expiry_date is None or is_expired(item, now):
        return False
    return localize(item.expiry_date) <= localize(now) + timedelta(days=EXPIRY_WARNING_DAYS)


def is_expiring_or_expired(item, now: datetime) -> bool:
    return is_expired(item, now) or is_expiring_soon(item, now)


def compute_metrics(items: Iterable, now: datetime) -> InventoryMetrics:
    metrics = InventoryMetrics()
    for item in items:
        metrics.total_items += 1
        metrics.total_quantity += item.quantity
        if is_low_stock(item):
            metrics.low_stock_count += 1
        if is_expiring_or_expired(item, now):
            metrics.expiring_items_count += 1
    return metrics


def _matches_search(item, term: str) -> bool:
    for value in (item.name, item.code, item.lot_number, item.section):
        if value and term in value.lower():
            return True
    return False


def filter_items(
    items: Iterable,
    now: datetime,
    search: Optional[str] = None,
    temperature: Optional[str] = None,
    section: Optional[str] = None,
    status: Optional[str] = None,
) -> List:
    """Apply every given filter (they combine with AND). Unknown status values match nothing."""
    filtered = list(items)
    if search:
        term = search.lower()
        filtered = [item for item in filtered if _matches_search(item, term)]
    if temperature:
        filtered = [item for item in filtered if item.temperature == temperature]
    if section:
        filtered = [item for item in filtered if item.section == section]
    if status == STATUS_LOW_STOCK:
        filtered = [item for item in filtered if is_low_stock(item)]
    elif status == STATUS_EXPIRING:
        filtered = [item for item in filtered if is_expiring_or_expired(item, now)]
    elif status:
        filtered = []
    return filtered


def _sort_key(sort_by: str):
    if sort_by == "expiry_date":
        # No expiry date sorts as infinitely far in the future
        return lambda item: localize(item.expiry_date).timestamp() if item.expiry_date else math.inf
    if sort_by == "quantity":
        return lambda item: item.quantity
    if sort_by == "lot_number":
        return lambda item: (item.lot_number or "").lower()
    return lambda item: item.name.lower()


def sort_items(items: Iterable, sort_by: str = "name", order: str = "asc") -> List:
    return sorted(items, key=_sort_key(sort_by), reverse=(order == "desc"))
