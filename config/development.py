import os

from config.config import attendance_settings_from_env, db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env(default_password="attendance")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed demo data on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

# Empty secret leaves the cron endpoint open (local development only).
CRON_SECRET = os.getenv("CRON_SECRET", "")
SCHEDULER_ENABLED = env_flag("SCHEDULER_ENABLED", "1")
SWEEP_INTERVAL_MINUTES = int(os.getenv("SWEEP_INTERVAL_MINUTES", "5"))

ATTENDANCE = attendance_settings_from_env()
