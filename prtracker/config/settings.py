import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "production").lower()
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

LOG_DRIVER: str = os.getenv("LOG_DRIVER", "console")
LOG_FILE: str = os.getenv("LOG_FILE", "prtracker.log")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
STATIC_DIR = os.getenv("STATIC_DIR", "static")

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
GITHUB_OAUTH_URL = os.getenv("GITHUB_OAUTH_URL", "https://github.com").rstrip("/")
GITHUB_CLIENT_ID = os.getenv("GITHUB_CLIENT_ID", "")
USER_AGENT = os.getenv("USER_AGENT", "PR-Tracker")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 30))

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true").lower() == "true"
COOKIE_MAX_AGE = int(os.getenv("COOKIE_MAX_AGE", 30 * 24 * 60 * 60))

AUTO_REFRESH_INTERVAL = float(os.getenv("AUTO_REFRESH_INTERVAL", 60))
MAX_FETCH_ATTEMPTS = int(os.getenv("MAX_FETCH_ATTEMPTS", 100))
RESTART_REFRESH_DELAY = float(os.getenv("RESTART_REFRESH_DELAY", 3))

if AUTO_REFRESH_INTERVAL <= 0:
    raise ValueError(
        f"Invalid AUTO_REFRESH_INTERVAL: {AUTO_REFRESH_INTERVAL}. Must be positive."
    )

if MAX_FETCH_ATTEMPTS < 1:
    raise ValueError(
        f"Invalid MAX_FETCH_ATTEMPTS: {MAX_FETCH_ATTEMPTS}. Must be at least 1."
    )
