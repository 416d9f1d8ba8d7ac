# dialin_backend/app/coaching/policy.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from dialin_backend.app.config import COACHING_POLICY_FILE, resolve_rules_file
from dialin_backend.app.utils.logs import get_logger

# Purpose:
# Tunable constants for the coaching engines. Defaults live here; the YAML
# rulebook (rules/coaching_policy.yaml) may override any subset of them.

log = get_logger("policy")


class TasteFit(BaseModel):
    model_config = ConfigDict(frozen=True)

    perfect: int = Field(30, ge=0)
    informative: int = Field(10, ge=0)   # sour or bitter
    neutral: int = Field(15, ge=0)       # nothing recorded


class CoachingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    # extraction window (seconds)
    optimal_time_min: int = 25
    optimal_time_max: int = 30
    reason_display_max: int = 999

    # quality scoring
    time_fit_weight: int = Field(40, ge=0)
    time_decay_seconds: float = Field(15.0, gt=0)
    ratio_min: float = 1.5
    ratio_max: float = 3.0
    ratio_fit_weight: int = Field(30, ge=0)
    ratio_decay: float = Field(1.5, gt=0)
    taste_fit: TasteFit = TasteFit()
    consistency_bonus: int = Field(0, ge=0)
    consistency_ratio_tolerance: float = 0.3
    consistency_time_tolerance: float = 5.0
    consistency_min_history: int = 2

    # aggregate analysis
    excellent_score: int = 85
    good_score: int = 60
    trend_threshold: int = 5
    recent_window: int = 5

    # bean status
    min_shots_for_status: int = 3
    dial_in_average: int = 70
    dial_in_min_score: int = 60
    needs_work_average: int = 40

    # grind adjustment
    seconds_per_step: int = Field(3, ge=1)
    min_prior_shots: int = 3

    # recommendation lifecycle
    recent_days: int = Field(7, ge=1)

    @model_validator(mode="after")
    def _check_windows(self) -> "CoachingPolicy":
        if self.optimal_time_min > self.optimal_time_max:
            raise ValueError("optimal_time_min must not exceed optimal_time_max")
        if self.ratio_min > self.ratio_max:
            raise ValueError("ratio_min must not exceed ratio_max")
        return self

    @property
    def optimal_window(self) -> Tuple[int, int]:
        return (self.optimal_time_min, self.optimal_time_max)


DEFAULT_POLICY = CoachingPolicy()


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Coaching policy in {path} must be a mapping")
    return data


def load_policy(path: Optional[Path] = None) -> CoachingPolicy:
    """
    Build a policy from a YAML file. A missing file yields the defaults;
    a malformed one raises ValueError so bad tuning never ships silently.
    """
    path = path or resolve_rules_file(COACHING_POLICY_FILE)
    if not path.exists():
        log.info(f"[policy] {path.name} not found at {path}; using defaults")
        return DEFAULT_POLICY
    raw = _read_yaml(path)
    try:
        policy = CoachingPolicy(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid coaching policy in {path}: {e}") from e
    log.info(f"[policy] loaded {path.name} from {path}")
    return policy


@lru_cache(maxsize=1)
def get_policy() -> CoachingPolicy:
    return load_policy()


__all__ = ["CoachingPolicy", "TasteFit", "DEFAULT_POLICY", "load_policy", "get_policy"]
