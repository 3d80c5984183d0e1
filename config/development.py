import os

from config.config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_BACKEND = os.getenv("DB_BACKEND", "mysql")
DB_CONFIG = dict(Config.DB_CONFIG)

BOOKING_LOCK_WAIT_SECONDS = Config.BOOKING_LOCK_WAIT_SECONDS
BOOKING_TIMEOUT_SECONDS = Config.BOOKING_TIMEOUT_SECONDS
UPCOMING_LIMIT = Config.UPCOMING_LIMIT

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
