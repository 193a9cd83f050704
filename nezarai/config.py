from __future__ import annotations

import os
import pathlib
import re
from zoneinfo import ZoneInfo

# -------------------------
# LLM
# -------------------------
GEMINI_API_KEY = (os.getenv("GEMINI_API_KEY", "").strip()
                  or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY", "").strip())
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "auto").strip().lower()
LLM_DEBUG = os.getenv("LLM_DEBUG", "0") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
OPENAI_FALLBACK_MODEL = os.getenv("OPENAI_FALLBACK_MODEL", "gpt-5-mini")

DEFAULT_CHAT_MODEL = "gemini-2.0-flash-lite"
WEB_SEARCH_MODEL = "gemini-2.0-flash"
ENHANCE_PROMPT_MODEL = "gemini-2.0-flash-lite"
YOUTUBE_MODEL = "gemini-2.5-flash"
GITHUB_MODEL = "gemini-2.5-pro"

# Model speed tiers exposed to the UI
MODEL_TIERS = {
    "cepat": "gemini-2.0-flash-lite",
    "seimbang": "gemini-2.5-flash",
    "akurat": "gemini-2.5-pro",
}
ALLOWED_CHAT_MODELS = list(MODEL_TIERS.values())

# -------------------------
# Integrations
# -------------------------
GITHUB_API = os.getenv("GITHUB_API", "https://api.github.com").rstrip("/")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "").strip()
GITHUB_USER_AGENT = "NezarAI-Bot"
GITHUB_README_LIMIT = 8000
GITHUB_FILE_LIMIT = 10000
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"
YOUTUBE_DESCRIPTION_URL = os.getenv(
    "YOUTUBE_DESCRIPTION_URL", "https://yt.lemnoslife.com/noKey/videos")

# -------------------------
# Google Calendar
# -------------------------
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Asia/Jakarta")
JAKARTA = ZoneInfo(DEFAULT_TIMEZONE)
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
GCAL_SCOPES = [
    "openid",
    "email",
    "profile",
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]
GCAL_DEFAULT_WINDOW_DAYS = 7
GCAL_DEFAULT_MAX_RESULTS = 10
GCAL_DEFAULT_REMINDERS = [
    {"method": "popup", "minutes": 30},
    {"method": "email", "minutes": 60},
]

# -------------------------
# Storage / sessions
# -------------------------
BASE_DIR = pathlib.Path(__file__).resolve().parent.parent
DATA_DIR = pathlib.Path(os.getenv("NEZARAI_DATA_DIR", str(BASE_DIR / "data")))
USER_DATA_DIR = DATA_DIR / "users"
ACCOUNTS_FILE = DATA_DIR / "accounts.json"
GOOGLE_TOKEN_DIR = pathlib.Path(
    os.getenv("GOOGLE_TOKEN_DIR", str(DATA_DIR / "gcal_tokens")))

SESSION_COOKIE_NAME = "nezarai_session"
SESSION_HEADER_NAME = "X-Session-Token"
GCAL_SESSION_COOKIE_NAME = "gcal_session"
OAUTH_STATE_COOKIE_NAME = "gcal_oauth_state"
SESSION_COOKIE_MAX_AGE_SECONDS = int(
    os.getenv("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24 * 30)))
OAUTH_STATE_MAX_AGE_SECONDS = int(
    os.getenv("GCAL_OAUTH_STATE_MAX_AGE_SECONDS", "600"))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "0") == "1"
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "").rstrip("/")

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "")
cors_origins: list[str] = []
if FRONTEND_BASE_URL:
    cors_origins.append(FRONTEND_BASE_URL)
if CORS_ALLOW_ORIGINS:
    cors_origins.extend(
        [origin.strip() for origin in CORS_ALLOW_ORIGINS.split(",") if origin.strip()])

# -------------------------
# Runtime limits
# -------------------------
ENFORCE_RATE_LIMIT = os.getenv("ENFORCE_RATE_LIMIT", "1") == "1"
RATE_LIMIT_WINDOW_SECONDS = 60
CONVERSATION_TITLE_MAX_CHARS = 100
USERNAME_MIN_CHARS = 3
PASSWORD_MIN_CHARS = 6

MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_IMAGE_ATTACHMENTS = 5
MAX_IMAGE_DATA_URL_CHARS = 4_500_000  # 약 3.4MB base64
IMAGE_TOO_LARGE_MESSAGE = "Gambar terlalu besar. Perkecil gambar hingga sekitar 3MB."

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HHMM_RE = re.compile(r"^\d{2}:\d{2}$")
