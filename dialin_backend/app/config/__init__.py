# dialin_backend/app/config/__init__.py
from __future__ import annotations

# One import point for settings: env-driven values from manifest.py,
# filesystem locations from paths.py.

from .manifest import (
    DB_URL,
    APP_ENV,
    DEBUG_MODE,
    LOG_LEVEL,
    COACHING_POLICY_FILE,
    validate_manifest,
)
from .paths import (
    APP_ROOT,
    DATA_DIR,
    COACHING_RULES_DIR,
    resolve_rules_file,
    ensure_data_dir_exists,
)

__all__ = [
    "DB_URL",
    "APP_ENV",
    "DEBUG_MODE",
    "LOG_LEVEL",
    "COACHING_POLICY_FILE",
    "validate_manifest",
    "APP_ROOT",
    "DATA_DIR",
    "COACHING_RULES_DIR",
    "resolve_rules_file",
    "ensure_data_dir_exists",
]
