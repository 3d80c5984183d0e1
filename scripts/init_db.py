from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.absence_booking.absence_booking.database.bootstrap import SCHEMA_PATH, apply_schema, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))
    if getattr(settings, "DB_BACKEND", "mysql") != "mysql":
        logger.error("init_db needs the mysql backend (APP_ENV=%s)", get_settings_module())
        raise SystemExit(1)

    db_config = dict(settings.DB_CONFIG)
    apply_schema(db_config, schema_path=SCHEMA_PATH)
    tables = list_tables(db_config)
    logger.info(
        "Applied %s -> %s@%s:%s/%s (tables=%s)",
        SCHEMA_PATH.name,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
