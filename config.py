"""Application configuration: environment variables and derived constants.

Loads ``IDC_LOG_LEVEL``, ``IDC_LOG_DIR``, ``IDC_DEFAULT_REGION``,
``IDC_STRICT_EXTENSIONS`` and ``IDC_OUTPUT_FORMAT`` from the environment via
``python-dotenv``.  All values are resolved at import time so the CLI can
``from config import …`` and hand them to the render engine, which never
reads configuration itself.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import logging
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import IdentityCenterLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_bool(raw: str | None, default: bool = False) -> bool:
    """Interpret ``"1"``, ``"true"``, ``"yes"`` and ``"on"`` as true.

    Anything else that is non-empty is false; unset or blank keeps *default*.
    """
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _parse_log_level(raw: str | None) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value.

    Unknown names fall back to ``INFO``.
    """
    if not raw:
        return logging.INFO
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _parse_output_format(raw: str | None) -> str:
    """Return ``"json"`` or ``"yaml"``; anything else means YAML."""
    value = (raw or "").strip().lower()
    return value if value in OUTPUT_FORMATS else "yaml"


# ── Public constants ─────────────────────────────────────────────────────────

OUTPUT_FORMATS: tuple[str, ...] = ("yaml", "json")

LOG_LEVEL: int = _parse_log_level(os.environ.get("IDC_LOG_LEVEL"))
LOG_DIR: str | None = os.environ.get("IDC_LOG_DIR") or None
DEFAULT_REGION: str = os.environ.get("IDC_DEFAULT_REGION") or "us-east-1"
STRICT_EXTENSIONS: bool = _parse_bool(os.environ.get("IDC_STRICT_EXTENSIONS"))
OUTPUT_FORMAT: str = _parse_output_format(os.environ.get("IDC_OUTPUT_FORMAT"))


# ── Logger (configured from the values above) ────────────────────────────────
logger = IdentityCenterLogger.configure(LOG_LEVEL, LOG_DIR)


# ── Startup diagnostics ─────────────────────────────────────────────────────

logger.debug(
    "Config loaded",
    extra={
        "log_level": logging.getLevelName(LOG_LEVEL),
        "default_region": DEFAULT_REGION,
        "strict_extensions": STRICT_EXTENSIONS,
        "output_format": OUTPUT_FORMAT,
    },
)

if LOG_DIR:
    logger.debug("File logging enabled", extra={"log_dir": LOG_DIR})
