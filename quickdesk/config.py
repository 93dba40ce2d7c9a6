"""
config.py — Settings for the QuickDesk help-desk server
=======================================================
Values come from a .env file next to the package (if present) and the
process environment. Everything else imports the constants from here.

An empty QUICKDESK_GATEWAY_URL selects the in-memory entity store and an
empty QUICKDESK_EMAIL_URL selects the in-memory outbox, so the server
runs locally with no hosted services at all.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


APP_NAME = "QuickDesk"

# ── Server ────────────────────────────────────────────────────────────────────

HOST = os.environ.get("QUICKDESK_HOST", "0.0.0.0")
PORT = int(os.environ.get("QUICKDESK_PORT", "8001"))
SERVER_URL = os.environ.get("QUICKDESK_SERVER_URL", f"http://localhost:{PORT}/mcp")
APP_URL = os.environ.get("QUICKDESK_APP_URL", "http://localhost:5173")

# ── Hosted services ───────────────────────────────────────────────────────────

GATEWAY_URL = os.environ.get("QUICKDESK_GATEWAY_URL", "")
GATEWAY_TOKEN = os.environ.get("QUICKDESK_GATEWAY_TOKEN", "")
EMAIL_URL = os.environ.get("QUICKDESK_EMAIL_URL", "")
EMAIL_TOKEN = os.environ.get("QUICKDESK_EMAIL_TOKEN", "")

# Applies to every gateway and notification call; expiry counts as a failure.
CALL_TIMEOUT_S = float(os.environ.get("QUICKDESK_CALL_TIMEOUT_S", "15"))

SEED_DEMO_DATA = _env_bool("QUICKDESK_SEED_DEMO_DATA", True)
LOG_LEVEL = os.environ.get("QUICKDESK_LOG_LEVEL", "INFO")

# ── Policy ────────────────────────────────────────────────────────────────────

INVITATION_TTL_DAYS = 7
TICKET_LIST_SORT = "-last_reply"
USER_LIST_SORT = "-created_date"
CATEGORY_LIST_SORT = "-created_date"
