from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.absence_booking.absence_booking.database.bootstrap import DEMO_ORGANIZATION_ID, DEMO_USERS, ensure_demo_users

logger = logging.getLogger("seed_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_users(db_config)
    logger.info(
        "Seeded %s demo users into organization %s (%s@%s/%s)",
        len(DEMO_USERS),
        DEMO_ORGANIZATION_ID,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
