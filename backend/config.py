"""
Application settings.

Values come from environment variables (a .env file is loaded first), with
defaults suitable for local development.
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Timestamps on stored rows are written in this zone
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Manila")

# Keys per existence / manufacturer lookup query during a commit
RECONCILE_CHUNK_SIZE = int(os.getenv("RECONCILE_CHUNK_SIZE", "500"))

# Rows echoed back in the parse response preview
PREVIEW_LIMIT = int(os.getenv("PREVIEW_LIMIT", "200"))

# One header row, plus spreadsheet rows being 1-based
HEADER_ROW_OFFSET = 2

AUTO_CREATE_TABLES = _env_bool("AUTO_CREATE_TABLES", True)

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

HEADER_ALIASES_FILE = os.getenv(
    "HEADER_ALIASES_FILE", str(BASE_DIR / "resources" / "header_aliases.json")
)


def load_header_aliases(path: str = HEADER_ALIASES_FILE) -> dict:
    """
    Load the spreadsheet header alias table.

    The file maps an upload kind ("procured_meds", "iar") to a table of
    canonical field name -> accepted header names, tried in order.
    """
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    return {
        kind: {field: list(names) for field, names in fields.items()}
        for kind, fields in raw.items()
    }


HEADER_ALIASES = load_header_aliases()
