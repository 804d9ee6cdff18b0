"""
Relay Configuration — Environment-based settings.

Read once at import; every component receives these values at construction
and never re-reads the environment.
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ── Server ────────────────────────────────────────────────
RELAY_HOST = os.environ.get("HOOKRELAY_HOST", "127.0.0.1")
RELAY_PORT = int(os.environ.get("HOOKRELAY_PORT", "9000"))

# ── Inbound webhook authentication ────────────────────────
WEBHOOK_TOKEN = os.environ.get("HOOKRELAY_WEBHOOK_TOKEN", "")
AUTH_HEADER = os.environ.get("HOOKRELAY_AUTH_HEADER", "x-gitlab-token").lower()
EVENT_HEADER = os.environ.get("HOOKRELAY_EVENT_HEADER", "x-gitlab-event").lower()

# ── Chat delivery ─────────────────────────────────────────
DISCORD_WEBHOOK_URL = os.environ.get("HOOKRELAY_DISCORD_WEBHOOK_URL", "")
DISCORD_DEBUG_WEBHOOK_URL = os.environ.get("HOOKRELAY_DISCORD_DEBUG_WEBHOOK_URL", "")
SEND_TIMEOUT = float(os.environ.get("HOOKRELAY_SEND_TIMEOUT", "10"))
MAX_EMBEDS_PER_MESSAGE = int(os.environ.get("HOOKRELAY_MAX_EMBEDS_PER_MESSAGE", "10"))
MAX_EMBED_CHARS_PER_MESSAGE = int(os.environ.get("HOOKRELAY_MAX_EMBED_CHARS_PER_MESSAGE", "6000"))

# ── Operator ──────────────────────────────────────────────
BOT_NAME = os.environ.get("HOOKRELAY_BOT_NAME", "hookrelay")
COMMAND_PREFIX = os.environ.get("HOOKRELAY_COMMAND_PREFIX", "!")
MASTER_USER_ID = os.environ.get("HOOKRELAY_MASTER_USER_ID", "")
DEBUG = _env_bool("HOOKRELAY_DEBUG")

# ── Connection monitor ────────────────────────────────────
POLL_INTERVAL = float(os.environ.get("HOOKRELAY_POLL_INTERVAL", "3"))
PROBE_INTERVAL = float(os.environ.get("HOOKRELAY_PROBE_INTERVAL", "60"))

# ── Rendering ─────────────────────────────────────────────
GITLAB_BASE_URL = os.environ.get("HOOKRELAY_GITLAB_BASE_URL", "https://gitlab.com")
FOOTER_TEXT = os.environ.get("HOOKRELAY_FOOTER_TEXT", BOT_NAME)
FOOTER_ICON_URL = os.environ.get("HOOKRELAY_FOOTER_ICON_URL", "")

TITLE_CAP = int(os.environ.get("HOOKRELAY_TITLE_CAP", "128"))
DESCRIPTION_CAP = int(os.environ.get("HOOKRELAY_DESCRIPTION_CAP", "128"))
FIELD_NAME_CAP = int(os.environ.get("HOOKRELAY_FIELD_NAME_CAP", "256"))
FIELD_VALUE_CAP = int(os.environ.get("HOOKRELAY_FIELD_VALUE_CAP", "1024"))
SNIPPET_CAP = int(os.environ.get("HOOKRELAY_SNIPPET_CAP", "128"))
COMMIT_MESSAGE_CAP = int(os.environ.get("HOOKRELAY_COMMIT_MESSAGE_CAP", "48"))
AUTHOR_CAP = int(os.environ.get("HOOKRELAY_AUTHOR_CAP", "256"))
FOOTER_CAP = int(os.environ.get("HOOKRELAY_FOOTER_CAP", "256"))
URL_CAP = int(os.environ.get("HOOKRELAY_URL_CAP", "2048"))

# Embed colors per event
COLORS = {
    "issue_opened": 15426592,           # orange
    "issue_closed": 5198940,            # grey
    "issue_comment": 15109472,          # pale orange
    "commit": 7506394,                  # blue
    "release": 2530048,                 # green
    "merge_request_opened": 12856621,   # red
    "merge_request_closed": 2530048,    # green
    "merge_request_comment": 15749300,  # pink
    "default": 5198940,                 # grey
    "error": 16773120,                  # yellow
    "status": 3447003,                  # light blue
}
