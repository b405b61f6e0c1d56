import os

SECRET_KEY = "test-secret"

API_BASE_URL = os.getenv("API_BASE_URL", "http://backend.test/api")
API_TIMEOUT_SECONDS = None

NOTIFICATIONS_ENABLED = False
NOTIFICATIONS_HUB_PATH = "/hubs/notificaciones"

TOGGLE_FEEDBACK_DELAY_SECONDS = 0.0
CONTEXT_IDLE_TTL_SECONDS = 7200.0

SESSION_COOKIE_NAME = "academia_session"
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True
