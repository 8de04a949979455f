from apscheduler.triggers.cron import CronTrigger

from utils.auth_utils import user_ref_from_claims


def test_user_ref_prefers_display_name():
    ref = user_ref_from_claims({"sub": "u-1", "name": "Dana Lab", "email": "dana@lab.test"})

    assert ref.model_dump() == {"uid": "u-1", "name": "Dana Lab", "is_anonymous": False}


def test_user_ref_falls_back_to_email_then_username():
    assert user_ref_from_claims({"sub": "u-1", "email": "dana@lab.test"}).name == "dana@lab.test"
    assert user_ref_from_claims({"sub": "u-1", "cognito:username": "dana"}).name == "dana"


def test_user_ref_for_guest_sessions():
    guest = user_ref_from_claims({"sub": "u-2", "custom:is_anonymous": "true", "name": "ignored"})
    nameless = user_ref_from_claims({"sub": "u-3"})

    assert guest.is_anonymous and guest.name is None
    assert nameless.is_anonymous and nameless.name is None


def test_requests_without_token_are_rejected(db_session):
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as client:
        response = client.get("/inventory-items/")

    assert response.status_code == 401
    assert response.json() == {"detail": "Authorization header is missing"}


def test_notification_job_runs_every_six_hours():
    from scheduler import scheduler

    job = scheduler.get_job("inventory_notifications_job")

    assert job is not None
    assert isinstance(job.trigger, CronTrigger)
    fields = {field.name: str(field) for field in job.trigger.fields}
    assert fields["hour"] == "*/6"
    assert fields["minute"] == "0"
