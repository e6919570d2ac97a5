"""
config.py

Single source of truth for:
- Environment variable reads
- Sharing / token defaults
- Flight form limits

Nothing here should contain route handlers or business logic beyond config resolution.
"""

import os


# =====================================================================
# SECTION: ENV VARS
# =====================================================================

# Base URL of the web app; view links are built as <base>?token=<token>
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "https://flights.example.com/")

# Mini-app bot, edit links open t.me/<bot>?start=share_<token>
TELEGRAM_BOT_USERNAME = os.getenv("TELEGRAM_BOT_USERNAME", "flight_history_bot")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


# =====================================================================
# SECTION: PRICE ANALYSIS
# =====================================================================

PRICE_THRESHOLD = int(os.getenv("PRICE_THRESHOLD", "500"))


# =====================================================================
# SECTION: AUTOSAVE
# Quiet period before the in-memory dataset is written back.
# =====================================================================

AUTOSAVE_DELAY_SECONDS = float(os.getenv("AUTOSAVE_DELAY_SECONDS", "2.0"))


# =====================================================================
# SECTION: SHARED SESSIONS
# =====================================================================

DEFAULT_SESSION_TTL_DAYS = int(os.getenv("DEFAULT_SESSION_TTL_DAYS", "7"))

# 365 days stands in for "no expiry", expires_at is always set
MAX_SESSION_TTL_DAYS = int(os.getenv("MAX_SESSION_TTL_DAYS", "365"))

TOKEN_SEGMENT_LENGTH = 13
TOKEN_SEGMENTS = 2

# Anything shorter is rejected without a lookup
TOKEN_MIN_LENGTH = int(os.getenv("TOKEN_MIN_LENGTH", "10"))


# =====================================================================
# SECTION: FLIGHT FORM LIMITS
# Hard limits enforced in code, not overridable by env.
# =====================================================================

MAX_PASSENGERS = 4
LAYOVER_MIN_MINUTES = 30
LAYOVER_MAX_MINUTES = 1440
