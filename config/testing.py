from config.config import db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(default_password="test")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

CRON_SECRET = "test-cron-secret"
SCHEDULER_ENABLED = False
SWEEP_INTERVAL_MINUTES = 5

ATTENDANCE = {}
