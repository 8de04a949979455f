from datetime import timedelta

from crud import inventory_items as crud_inventory_items
from models.inventory_items import InventoryItem
from tasks.notifications import check_inventory_and_notify, run_inventory_checks
from utils.time_utils import now


def test_low_stock_alert_sent_once_per_episode(db_session, actor, make_item, email_client):
    low = make_item(name="Gauze", quantity=1)
    make_item(name="Saline", quantity=50)

    summary = check_inventory_and_notify(db_session, email_client)

    assert summary == {"low_stock": 1, "expiring": 0, "failed": 0}
    assert [subject for subject, _ in email_client.sent] == ["Low Stock Alert: Gauze"]
    db_session.refresh(low)
    assert low.low_stock_notified is True

    # Nothing changed, nothing sent again
    check_inventory_and_notify(db_session, email_client)
    assert len(email_client.sent) == 1


def test_restock_rearms_low_stock_alert(db_session, actor, make_item, email_client):
    item = make_item(name="Gauze", quantity=1)
    check_inventory_and_notify(db_session, email_client)

    crud_inventory_items.adjust_inventory_quantity(db_session, item, 1, actor)
    check_inventory_and_notify(db_session, email_client)

    # Two units is above the default threshold
    assert len(email_client.sent) == 1

    crud_inventory_items.consume_inventory_item(db_session, item, 2, "QC", actor)
    check_inventory_and_notify(db_session, email_client)
    assert [subject for subject, _ in email_client.sent] == ["Low Stock Alert: Gauze", "Low Stock Alert: Gauze"]


def test_expiry_alert_covers_expiring_and_expired_items(db_session, make_item, email_client):
    today = now().date()
    soon = make_item(name="Reagent A", expiry_date=today + timedelta(days=3))
    expired = make_item(name="Reagent B", expiry_date=today - timedelta(days=2))
    make_item(name="Reagent C", expiry_date=today + timedelta(days=60))
    make_item(name="Reagent D")

    summary = check_inventory_and_notify(db_session, email_client, current_time=now())

    assert summary["expiring"] == 2
    subjects = sorted(subject for subject, _ in email_client.sent)
    assert subjects == ["Expiration Alert: Reagent A", "Expiration Alert: Reagent B"]
    db_session.refresh(soon)
    db_session.refresh(expired)
    assert soon.expiry_warning_notified is True
    assert expired.expiry_warning_notified is True

    check_inventory_and_notify(db_session, email_client)
    assert len(email_client.sent) == 2


def test_item_can_get_both_alerts(db_session, make_item, email_client):
    make_item(name="Reagent A", quantity=1, expiry_date=now().date() + timedelta(days=1))

    summary = check_inventory_and_notify(db_session, email_client)

    assert summary == {"low_stock": 1, "expiring": 1, "failed": 0}


def test_failed_delivery_sets_flag_by_default(db_session, make_item, fake_email_client):
    item = make_item(name="Gauze", quantity=1)
    failing = fake_email_client(succeed=False)

    summary = check_inventory_and_notify(db_session, failing, require_delivery=False)

    assert summary == {"low_stock": 1, "expiring": 0, "failed": 1}
    db_session.refresh(item)
    assert item.low_stock_notified is True


def test_failed_delivery_is_retried_when_delivery_required(db_session, make_item, fake_email_client):
    item = make_item(name="Gauze", quantity=1)
    failing = fake_email_client(succeed=False)

    summary = check_inventory_and_notify(db_session, failing, require_delivery=True)

    assert summary == {"low_stock": 0, "expiring": 0, "failed": 1}
    db_session.refresh(item)
    assert item.low_stock_notified is False

    working = fake_email_client()
    check_inventory_and_notify(db_session, working, require_delivery=True)
    db_session.refresh(item)
    assert item.low_stock_notified is True
    assert len(working.sent) == 1


def test_transport_error_does_not_stop_the_batch(db_session, make_item, fake_email_client):
    make_item(name="Broken", quantity=1)
    make_item(name="Gauze", quantity=1)
    client = fake_email_client(fail_subjects=("Broken",))

    summary = check_inventory_and_notify(db_session, client)

    assert summary["failed"] == 1
    assert [subject for subject, _ in client.sent] == ["Low Stock Alert: Gauze"]


def test_run_inventory_checks_uses_its_own_session(db_session, make_item, email_client):
    from database import SessionLocal

    item = make_item(name="Gauze", quantity=1)

    summary = run_inventory_checks(session_factory=SessionLocal, email_client=email_client)

    assert summary["low_stock"] == 1
    db_session.refresh(item)
    assert item.low_stock_notified is True


def test_expiry_window_ends_exactly_seven_days_out(db_session, email_client):
    current = now()
    db_session.add_all([
        InventoryItem(name="Edge", quantity=10, expiry_date=current + timedelta(days=7)),
        InventoryItem(name="Past Edge", quantity=10, expiry_date=current + timedelta(days=7, seconds=1)),
    ])
    db_session.commit()

    summary = check_inventory_and_notify(db_session, email_client, current_time=current)

    assert summary == {"low_stock": 0, "expiring": 1, "failed": 0}
    assert [subject for subject, _ in email_client.sent] == ["Expiration Alert: Edge"]
    flags = {item.name: item.expiry_warning_notified for item in db_session.query(InventoryItem)}
    assert flags == {"Edge": True, "Past Edge": False}
