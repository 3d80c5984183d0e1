import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    # Database
    DB_BACKEND = os.environ.get("DB_BACKEND", "mysql")
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "absence_db")

    # Booking transaction bounds (seconds)
    BOOKING_LOCK_WAIT_SECONDS = float(os.environ.get("BOOKING_LOCK_WAIT_SECONDS", "5"))
    BOOKING_TIMEOUT_SECONDS = float(os.environ.get("BOOKING_TIMEOUT_SECONDS", "10"))

    UPCOMING_LIMIT = int(os.environ.get("UPCOMING_LIMIT", "10"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    DB_CONFIG = {
        "host": DB_HOST,
        "port": DB_PORT,
        "user": DB_USER,
        "password": DB_PASSWORD,
        "database": DB_NAME,
    }
