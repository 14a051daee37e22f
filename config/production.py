import os

from config.config import attendance_settings_from_env, db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env()

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

CRON_SECRET = os.getenv("CRON_SECRET", "")
# Multi-worker deployments usually disable this and call /api/cron/auto-checkout instead.
SCHEDULER_ENABLED = env_flag("SCHEDULER_ENABLED", "0")
SWEEP_INTERVAL_MINUTES = int(os.getenv("SWEEP_INTERVAL_MINUTES", "5"))

ATTENDANCE = attendance_settings_from_env()
