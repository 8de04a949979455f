from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


def test_upgrade_creates_inventory_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.set_main_option("sqlalchemy.url", url)

    command.upgrade(config, "head")

    inspector = inspect(create_engine(url))
    assert {"inventory_items", "deleted_inventory_items", "inventory_activity_log"} <= set(inspector.get_table_names())
    columns = {column["name"] for column in inspector.get_columns("deleted_inventory_items")}
    assert {"low_stock_notified", "expiry_warning_notified", "deleted_at", "deleted_by"} <= columns
