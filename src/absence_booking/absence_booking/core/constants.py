"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MIN_REASON_LENGTH = 10
MAX_REASON_LENGTH = 500
MAX_RANGE_DAYS = 365

DEFAULT_UPCOMING_LIMIT = 10
DEFAULT_HISTORY_LIMIT = 200
MAX_PAGE_SIZE = 200

DEFAULT_LOCK_WAIT_SECONDS = 5.0
DEFAULT_TRANSACTION_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRY_AFTER_SECONDS = 1
