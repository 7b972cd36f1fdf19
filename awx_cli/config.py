"""
airwallex-cli shared configuration and constants.
Standalone module — no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.environ.get("AWX_ENV_FILE") or os.path.join(_PROJECT_ROOT, ".env")


def load_env(path=None):
    env = {}
    path = path or ENV_PATH
    if os.path.exists(path):
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip().strip('"').strip("'")
    return env


def merged_environ(environ=None):
    """The .env values overlaid by the real process environment."""
    merged = dict(env)
    merged.update(os.environ if environ is None else environ)
    return merged


def _env_bool(key, default=False, source=None):
    """Parse common boolean env formats."""
    raw = (env if source is None else source).get(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default, source=None):
    """Parse integer env values with fallback."""
    raw = (env if source is None else source).get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default, source=None):
    """Parse float env values with fallback."""
    raw = (env if source is None else source).get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"
PROG = "airwallex"

BASE_URL = "https://api.airwallex.com"
LOGIN_PATH = "/api/v1/authentication/login"

# Refresh the bearer token this many seconds before it expires.
TOKEN_REFRESH_MARGIN_SECONDS = 60

MAX_INPUT_SIZE = 10 * 1024 * 1024

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

VALID_OUTPUTS = ("text", "json", "jsonl")
VALID_COLORS = ("auto", "always", "never")

# Environment variable names
ENV_ACCOUNT = "AWX_ACCOUNT"
ENV_OUTPUT = "AWX_OUTPUT"
ENV_COLOR = "AWX_COLOR"
ENV_AGENT = "AWX_AGENT"
ENV_CLIENT_ID = "AWX_CLIENT_ID"
ENV_API_KEY = "AWX_API_KEY"
ENV_ACCOUNT_ID = "AWX_ACCOUNT_ID"
ENV_BASE_URL = "AWX_BASE_URL"
ENV_TIMEOUT = "AWX_TIMEOUT_SECONDS"
ENV_HTTP_LOG = "AWX_HTTP_LOG"

# ---------------------------------------------------------------------------
# Module-level defaults (loaded from .env, overridden by the environment)
# ---------------------------------------------------------------------------

env = load_env()
env.update({k: v for k, v in os.environ.items() if k.startswith("AWX_")})

HTTP_TIMEOUT_SECONDS = _env_int("AWX_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RETRIES = _env_int("AWX_HTTP_MAX_RETRIES", 2)
HTTP_RETRY_BASE_SECONDS = _env_float("AWX_HTTP_RETRY_BASE_SECONDS", 1.0)
HTTP_MAX_RESPONSE_BYTES = _env_int("AWX_HTTP_MAX_RESPONSE_BYTES", 20_000_000)
