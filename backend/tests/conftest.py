import os
import tempfile

# Point the application at a throwaway SQLite database before any app module reads settings
_TEST_DIR = tempfile.mkdtemp(prefix="lab_inventory_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["SCHEDULER_ENABLED"] = "False"
os.environ["NOTIFY_REQUIRE_DELIVERY"] = "False"
os.environ["LOG_DIR"] = os.path.join(_TEST_DIR, "logs")
os.environ["APP_TIMEZONE"] = "Asia/Riyadh"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
import models  # noqa: F401
from schemas.inventory_items import InventoryItemCreate
from schemas.users import UserRef


TEST_CLAIMS = {"sub": "user-1234567890", "email": "dana@lab.test"}


class FakeEmailClient:
    """Records every message instead of talking to an SMTP server."""

    def __init__(self, succeed=True, fail_subjects=()):
        self.succeed = succeed
        self.fail_subjects = fail_subjects
        self.sent = []

    def send(self, subject, html_body):
        for marker in self.fail_subjects:
            if marker in subject:
                raise RuntimeError("SMTP connection refused")
        self.sent.append((subject, html_body))
        return self.succeed


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def actor():
    return UserRef(uid="user-1234567890", name="Dana Lab")


@pytest.fixture
def make_item(db_session, actor):
    from crud import inventory_items as crud_inventory_items

    def _make(**fields):
        fields.setdefault("name", "WBC Lyse")
        fields.setdefault("quantity", 10)
        return crud_inventory_items.create_inventory_item(db_session, InventoryItemCreate(**fields), actor)

    return _make


@pytest.fixture
def fake_email_client():
    return FakeEmailClient


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def client(db_session):
    from main import app
    from utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: dict(TEST_CLAIMS)
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
