import os

from config.config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_BACKEND = "mysql"
DB_CONFIG = dict(Config.DB_CONFIG)

BOOKING_LOCK_WAIT_SECONDS = Config.BOOKING_LOCK_WAIT_SECONDS
BOOKING_TIMEOUT_SECONDS = Config.BOOKING_TIMEOUT_SECONDS
UPCOMING_LIMIT = Config.UPCOMING_LIMIT

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = False
