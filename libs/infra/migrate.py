# libs/infra/migrate.py
from __future__ import annotations
import os
from pathlib import Path

from alembic import command
from alembic.config import Config


def upgrade_to_head() -> None:
    """Применяет миграции схемы security (alembic upgrade head)."""
    root = Path(__file__).resolve().parents[2]
    cfg = Config(str(root / "alembic.ini"))
    cfg.set_main_option("script_location", str(root / "migrations"))
    db_url = os.getenv("DATABASE_URL")
    if db_url:
        cfg.set_main_option("sqlalchemy.url", db_url)
    # Схему env.py берёт из DB_SCHEMA
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    upgrade_to_head()
