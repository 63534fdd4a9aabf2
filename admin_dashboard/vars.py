import os
from pathlib import Path

SERVICE_NAME = os.getenv("SERVICE_NAME", "admin-dashboard")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

# Requests under this prefix are forwarded, the prefix itself is kept
PROXY_PREFIX = "/" + os.environ.get("PROXY_PREFIX", "/api").strip("/")
UPSTREAM_BASE_URL = os.environ.get("UPSTREAM_BASE_URL", "http://localhost:8080").rstrip(
    "/"
)


def _parse_optional_float(raw: str):
    raw = (raw or "").strip()
    if not raw:
        return None
    return float(raw)


# Unset means the HTTP client's own default timeout applies
PROXY_TIMEOUT = _parse_optional_float(os.environ.get("PROXY_TIMEOUT", ""))

STATIC_DIR = os.environ.get(
    "STATIC_DIR", str(Path(__file__).resolve().parent / "static")
)
RECENT_ACTIVITY_LIMIT = int(os.getenv("RECENT_ACTIVITY_LIMIT", "30"))

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
