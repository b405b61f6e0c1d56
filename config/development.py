import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5225/api")
# no explicit timeout unless configured
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS")) if os.getenv("API_TIMEOUT_SECONDS") else None

NOTIFICATIONS_ENABLED = bool(int(os.getenv("NOTIFICATIONS_ENABLED", "1")))
NOTIFICATIONS_HUB_PATH = os.getenv("NOTIFICATIONS_HUB_PATH", "/hubs/notificaciones")

TOGGLE_FEEDBACK_DELAY_SECONDS = float(os.getenv("TOGGLE_FEEDBACK_DELAY_SECONDS", "0.3"))
CONTEXT_IDLE_TTL_SECONDS = float(os.getenv("CONTEXT_IDLE_TTL_SECONDS", "7200"))

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "academia_session")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True
