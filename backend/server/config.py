"""Global configuration — env vars for the push sender.

DEPLOYMENT:
  Copy .env.example → .env and fill in the values.
  Generate a key pair with scripts/generate_vapid.py.
"""

import os
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))  # backend/
PROJECT_DIR = os.path.dirname(BASE_DIR)  # project root

# Load .env from project root (overrides any system env vars with same name)
load_dotenv(os.path.join(PROJECT_DIR, ".env"), override=True)

APP_VERSION = "1.0.0"

# ─── Environment ─────────────────────────────────────────────
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

# ─── Server ──────────────────────────────────────────────────
PORT = int(os.environ.get("PORT", 8000))

# ─── CORS ────────────────────────────────────────────────────
# Dev:  ALLOWED_ORIGINS=*
# Prod: ALLOWED_ORIGINS=https://yourdomain.com,https://www.yourdomain.com
_raw_origins = os.environ.get("ALLOWED_ORIGINS", "*")
ALLOWED_ORIGINS = ["*"] if _raw_origins.strip() == "*" else [
    o.strip() for o in _raw_origins.split(",") if o.strip()
]

# ─── VAPID ───────────────────────────────────────────────────
# VAPID_PRIVATE_KEY may be a raw base64url scalar, base64url DER or PEM text.
# VAPID_PRIVATE_KEY_PATH (a PEM file) wins when the file exists.
VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY", "")
VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY", "")
VAPID_PRIVATE_KEY_PATH = os.environ.get("VAPID_PRIVATE_KEY_PATH", "")
VAPID_SUB_EMAIL = os.environ.get("VAPID_SUB_EMAIL", "mailto:admin@localhost")
VAPID_TOKEN_TTL_MAX = 24 * 60 * 60


def parse_token_ttl(raw) -> int:
    """VAPID tokens may live at most 24h; push services reject anything longer."""
    try:
        ttl = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"VAPID_TOKEN_TTL must be an integer number of seconds, got {raw!r}")
    if not 0 < ttl <= VAPID_TOKEN_TTL_MAX:
        raise ValueError(
            f"VAPID_TOKEN_TTL must be between 1 and {VAPID_TOKEN_TTL_MAX} seconds, got {ttl}"
        )
    return ttl


VAPID_TOKEN_TTL = parse_token_ttl(os.environ.get("VAPID_TOKEN_TTL", 12 * 60 * 60))

# ─── Push delivery ───────────────────────────────────────────
PUSH_TTL = int(os.environ.get("PUSH_TTL", 0))
# Round payloads up to a multiple of this many bytes (0 = no padding)
PUSH_PADDING_BUCKET = int(os.environ.get("PUSH_PADDING_BUCKET", 0))
PUSH_MAX_PAYLOAD = int(os.environ.get("PUSH_MAX_PAYLOAD", 4096))
PUSH_REQUEST_TIMEOUT = float(os.environ.get("PUSH_REQUEST_TIMEOUT", 10))

# Server key for legacy FCM endpoints (fcm.googleapis.com/fcm/send/...)
FCM_SERVER_KEY = os.environ.get("FCM_SERVER_KEY", "")


def vapid_key_source() -> str:
    if VAPID_PRIVATE_KEY_PATH and os.path.exists(VAPID_PRIVATE_KEY_PATH):
        return VAPID_PRIVATE_KEY_PATH
    return VAPID_PRIVATE_KEY
