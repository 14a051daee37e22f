"""Run one auto-checkout + absentee pass (for system cron when the scheduler is off).

    python scripts/run_sweep.py [--catch-up]
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_engine.attendance_engine.attendance.scheduler import run_maintenance_pass
from src.attendance_engine.attendance_engine.common.datetime_utils import utc_now
from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.config import EngineConfig


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--catch-up", action="store_true", help="also mark absentees for the past week")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(asctime)s %(levelname)s %(message)s")

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        engine_config=EngineConfig.from_mapping(getattr(settings, "ATTENDANCE", {}) or {}),
    )
    report, marked = run_maintenance_pass(container.sweeper, container.absence_service)
    if args.catch_up:
        marked += container.absence_service.catch_up(now=utc_now())

    print(
        f"work_closed={report.work_closed} class_closed={report.class_closed} "
        f"failures={report.failures} absentees_marked={marked}"
    )
    return 1 if report.failures else 0


if __name__ == "__main__":
    sys.exit(main())
