"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
PAGE_SIZE_OPTIONS = (5, 10, 20, 50)

CLASS_SELECT_PAGE_SIZE = 100
ENROLLMENT_SELECT_PAGE_SIZE = 500
AUDIT_DEFAULT_PAGE_SIZE = 50
AUDIT_USER_LIMIT = 100

TOGGLE_FEEDBACK_DELAY_SECONDS = 0.3

NOTIFICATION_MAX_RECONNECT_ATTEMPTS = 5
NOTIFICATION_BASE_BACKOFF_SECONDS = 1
NOTIFICATION_MAX_BACKOFF_SECONDS = 30

TOKEN_COOKIE_NAME = "academia_token"
TOKEN_MAX_AGE_DAYS = 7
CONTEXT_IDLE_TTL_SECONDS = 2 * 60 * 60

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MIN_PHONE_LENGTH = 8
MAX_PHONE_LENGTH = 15
MIN_CLASS_DURATION = 30
MAX_CLASS_DURATION = 180
MIN_CLASS_CAPACITY = 1
MAX_CLASS_CAPACITY = 50
MIN_PRICE = 0.01
MAX_PRICE = 999999.99

LOCAL_TIMEZONE = "America/Guayaquil"
