from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_engine.attendance_engine.database.bootstrap import (
    DEMO_USERS,
    SEED_PATH,
    apply_seed_sql,
    ensure_demo_users,
)


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=SEED_PATH)
    ensure_demo_users(db_config)

    print(f"OK: Seeded {db_config.get('database')} with demo accounts:")
    for _, username, password, role in DEMO_USERS:
        print(f"  {role:<9} {username} / {password}")


if __name__ == "__main__":
    main()
