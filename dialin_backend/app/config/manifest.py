# dialin_backend/app/config/manifest.py
from __future__ import annotations

import os
from typing import Dict, List

from .paths import DATA_DIR, resolve_rules_file

# ---- runtime settings (env with local defaults) ----

def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")

# DATABASE_URL wins; otherwise a sqlite file next to the other runtime data
DB_URL: str = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{(DATA_DIR / 'dialin.sqlite3').resolve()}"

APP_ENV: str = os.getenv("APP_ENV", "development").strip() or "development"
DEBUG_MODE: bool = _flag("DEBUG")
LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or ("DEBUG" if DEBUG_MODE else "INFO")).strip().upper()

# ---- coaching rule files ----
COACHING_POLICY_FILE: str = os.getenv("COACHING_POLICY_FILE", "coaching_policy.yaml")

# nothing is required: the policy has built-in defaults
RULES_OPTIONAL: List[str] = [COACHING_POLICY_FILE]

def validate_manifest() -> Dict[str, object]:
    return {
        "status": "ok",
        "app_env": APP_ENV,
        "database": DB_URL.split(":", 1)[0],
        "rules_optional": RULES_OPTIONAL,
        "rules_missing": [n for n in RULES_OPTIONAL if not resolve_rules_file(n).exists()],
    }


__all__ = ["DB_URL", "APP_ENV", "DEBUG_MODE", "LOG_LEVEL", "COACHING_POLICY_FILE", "validate_manifest"]
