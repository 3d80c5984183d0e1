SECRET_KEY = "test-secret"

DB_BACKEND = "memory"
DB_CONFIG = None

BOOKING_LOCK_WAIT_SECONDS = 2.0
BOOKING_TIMEOUT_SECONDS = 5.0
UPCOMING_LIMIT = 10

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
