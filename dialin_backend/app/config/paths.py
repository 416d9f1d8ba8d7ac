# dialin_backend/app/config/paths.py
from __future__ import annotations

"""
Where Dial-In keeps its files.

    DIALIN_DATA_DIR | DATA_DIR   -> sqlite database and other runtime data
                                    (default <repo>/data)
    COACHING_RULES_DIR           -> coaching_policy.yaml
                                    (default dialin_backend/app/coaching/rules)
"""

import os
from pathlib import Path

APP_ROOT: Path = Path(__file__).resolve().parents[1]
REPO_ROOT: Path = APP_ROOT.parents[1]


def _path_from_env(*names: str) -> Path | None:
    # first non-empty variable wins; quotes from .env files are tolerated
    for name in names:
        raw = (os.getenv(name) or "").strip().strip("'\"")
        if raw:
            return Path(raw).expanduser().resolve()
    return None


DATA_DIR: Path = _path_from_env("DIALIN_DATA_DIR", "DATA_DIR") or (REPO_ROOT / "data").resolve()
COACHING_RULES_DIR: Path = _path_from_env("COACHING_RULES_DIR") or APP_ROOT / "coaching" / "rules"


def resolve_rules_file(name: str) -> Path:
    return COACHING_RULES_DIR / name

def ensure_data_dir_exists(*parts: str) -> Path:
    """Create DATA_DIR (or a subfolder of it) if missing and return it."""
    target = DATA_DIR.joinpath(*parts)
    target.mkdir(parents=True, exist_ok=True)
    return target


__all__ = [
    "APP_ROOT",
    "REPO_ROOT",
    "DATA_DIR",
    "COACHING_RULES_DIR",
    "resolve_rules_file",
    "ensure_data_dir_exists",
]
