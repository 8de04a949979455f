import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import settings
from constants import EXPIRY_WARNING_DAYS
from crud import inventory_items as crud_inventory_items
from database import SessionLocal
from models.inventory_items import InventoryItem
from utils.email_client import EmailClient, get_email_client
from utils.formatting import format_display_date
from utils.inventory_view import is_low_stock, min_stock_threshold
from utils.time_utils import now

logger = logging.getLogger(__name__)


def _low_stock_email(item: InventoryItem):
    subject = f"Low Stock Alert: {item.name}"
    body = (
        f"<p>The stock for <strong>{item.name}</strong> (Lot: {item.lot_number or 'N/A'}) is low.</p>"
        f"<p>Current Quantity: <strong>{item.quantity}</strong></p>"
        f"<p>Minimum Stock Level: {min_stock_threshold(item)}</p>"
    )
    return subject, body


def _expiry_email(item: InventoryItem):
    subject = f"Expiration Alert: {item.name}"
    body = (
        f"<p>The item <strong>{item.name}</strong> (Lot: {item.lot_number or 'N/A'}) is expiring soon.</p>"
        f"<p>Expiration Date: <strong>{format_display_date(item.expiry_date)}</strong></p>"
        f"<p>Current Quantity: {item.quantity}</p>"
    )
    return subject, body


def _deliver(email_client: EmailClient, subject: str, body: str) -> bool:
    try:
        return email_client.send(subject, body)
    except Exception as e:
        # One bad message must not stop the batch
        logger.error(f"Error sending notification '{subject}': {e}", exc_info=True)
        return False


def check_inventory_and_notify(
    db: Session,
    email_client: EmailClient,
    current_time: Optional[datetime] = None,
    require_delivery: Optional[bool] = None,
) -> dict:
    """
    Send at most one low-stock and one expiry email per item per episode.

    Each pass only looks at items whose dedup flag is still false and sets the
    flag once the item has been handled. The low-stock flag is re-armed by a
    restock, both flags by a restore.

    Args:
        db: Open session; committed here.
        email_client: Transport used for the alerts.
        current_time: Reference time (defaults to now).
        require_delivery: When true a flag is only set after a successful send, so
            failed alerts are retried on the next run. Defaults to settings.

    Returns:
        dict: counts of low_stock and expiring items handled, and failed sends.
    """
    current_time = current_time or now()
    if require_delivery is None:
        require_delivery = settings.NOTIFY_REQUIRE_DELIVERY
    summary = {"low_stock": 0, "expiring": 0, "failed": 0}

    # 1. Low stock
    candidates = db.query(InventoryItem).filter(InventoryItem.low_stock_notified.is_(False)).all()
    for item in candidates:
        if not is_low_stock(item):
            continue
        logger.info(f"Low stock detected for: {item.name}")
        delivered = _deliver(email_client, *_low_stock_email(item))
        if not delivered:
            summary["failed"] += 1
        if delivered or not require_delivery:
            item.low_stock_notified = True
            summary["low_stock"] += 1

    # 2. Expiring or already expired
    warning_date = current_time + timedelta(days=EXPIRY_WARNING_DAYS)
    expiring = db.query(InventoryItem).filter(
        InventoryItem.expiry_warning_notified.is_(False),
        InventoryItem.expiry_date.isnot(None),
        InventoryItem.expiry_date <= warning_date,
    ).all()
    for item in expiring:
        logger.info(f"Expiration warning for: {item.name}")
        delivered = _deliver(email_client, *_expiry_email(item))
        if not delivered:
            summary["failed"] += 1
        if delivered or not require_delivery:
            item.expiry_warning_notified = True
            summary["expiring"] += 1

    db.commit()
    return summary


def run_inventory_checks(
    session_factory: Callable[[], Session] = SessionLocal,
    email_client: Optional[EmailClient] = None,
):
    """Scheduled entry point: notification passes, then deleted-items reconciliation."""
    logger.info("Running scheduled inventory check...")
    db = session_factory()
    try:
        summary = check_inventory_and_notify(db, email_client or get_email_client())
        repaired = crud_inventory_items.reconcile_deleted_items(db)
        logger.info(
            f"Inventory check complete. {summary['low_stock']} low-stock and {summary['expiring']} expiry "
            f"notification(s) handled, {summary['failed']} failed, {len(repaired)} deleted item(s) reconciled."
        )
        return summary
    except Exception as e:
        logger.error(f"Error during scheduled inventory check: {e}", exc_info=True)
        db.rollback()
    finally:
        db.close()
