from __future__ import annotations

import atexit
import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .attendance.scheduler import AttendanceScheduler
from .container import Container, build_container
from .core.config import EngineConfig
from .database.bootstrap import SCHEMA_PATH, SEED_PATH, apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CRON_SECRET"] = getattr(settings, "CRON_SECRET", "")

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module, db_config.get("user"), db_config.get("host"),
        db_config.get("port", 3306), db_config.get("database"),
    )

    if container is None:
        engine_config = EngineConfig.from_mapping(getattr(settings, "ATTENDANCE", {}) or {})

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=SEED_PATH)
            ensure_demo_users(db_config)

        container = build_container(db_config=db_config, engine_config=engine_config)

        if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
            scheduler = AttendanceScheduler(
                container.config,
                container.sweeper,
                container.absence_service,
                interval_minutes=int(getattr(settings, "SWEEP_INTERVAL_MINUTES", 5)),
            )
            scheduler.start()
            atexit.register(scheduler.shutdown)
            app.extensions["attendance_scheduler"] = scheduler

    register_users(app, container)
    register_attendance(app, container)

    return app
