from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables, seed_memory_db
from .absences.controller import register as register_absences

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    backend = getattr(settings, "DB_BACKEND", "mysql")
    db_config = getattr(settings, "DB_CONFIG", None)

    if app.config["DEBUG"]:
        target = "memory" if backend == "memory" else (
            f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
        )
        logger.info("settings=%s db=%s", settings_module, target)

    if container is None:
        container = build_container(
            backend=backend,
            db_config=db_config,
            lock_wait_timeout=float(getattr(settings, "BOOKING_LOCK_WAIT_SECONDS", 5)),
            timeout=float(getattr(settings, "BOOKING_TIMEOUT_SECONDS", 10)),
            upcoming_limit=int(getattr(settings, "UPCOMING_LIMIT", 10)),
        )

        auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
        auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
        if backend == "mysql" and auto_init_db:
            apply_schema(db_config)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if auto_seed_db:
            if backend == "mysql":
                ensure_demo_users(db_config)
            else:
                seed_memory_db(container.store)
            logger.info("Demo seed ready")

    app.extensions["absence_booking"] = container
    register_absences(app, container)

    return app
