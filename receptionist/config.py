"""Centralized configuration for the AI Receptionist.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/ai-receptionist/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415  # lazy import keeps tests free of boto3

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/ai-receptionist/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /ai-receptionist/{name} (AWS)."
    )


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number for {name}: {raw!r}") from None


# ── Auth ────────────────────────────────────────────────────────────
# Static bearer credential shared by the server and its clients.
RECEPTIONIST_API_KEY: str = _require_env("RECEPTIONIST_API_KEY")

# ── Remote service (client side) ────────────────────────────────────
RECEPTIONIST_BASE_URL: str = os.getenv(
    "RECEPTIONIST_BASE_URL", "http://localhost:8000/api",
)
PROBE_TIMEOUT_SECONDS: float = _float_env("PROBE_TIMEOUT_SECONDS", "5")
CONVERSATION_TIMEOUT_SECONDS: float = _float_env("CONVERSATION_TIMEOUT_SECONDS", "10")
RECORD_TIMEOUT_SECONDS: float = _float_env("RECORD_TIMEOUT_SECONDS", "5")

# ── Storage ─────────────────────────────────────────────────────────
# SQLAlchemy URL for the durable key-value table; empty means in-memory.
KV_DATABASE_URL: str = os.getenv("KV_DATABASE_URL", "")

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
