"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Routing ──────────────────────────────────────────────────────────
GUIDE_PATH = os.getenv("HEALTHGATE_GUIDE_PATH", "/guide")
DEFAULT_HOME_PATH = os.getenv("HEALTHGATE_HOME_PATH", "/dashboard")

# Roles that are always steered to the guide (unknown roles are added implicitly).
GUIDE_ONLY_ROLES = frozenset({"volunteer"})

# ── Permission matrix ────────────────────────────────────────────────
# Optional JSON file overriding the built-in role → permission table.
PERMISSIONS_FILE = os.getenv("HEALTHGATE_PERMISSIONS_FILE")

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
MAX_RECORDS_PER_REQUEST = 10000


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
