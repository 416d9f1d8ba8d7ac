# dialin_backend/app/coaching/grinder_scale.py
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from dialin_backend.app.utils.clock import as_utc, utcnow
from .models import ValidationResult

# Purpose:
# The user's physical grinder dial: range, step resolution, and the
# clamp/quantize helpers the grind calculator needs to land on a setting
# the grinder can actually be turned to.

MIN_RANGE_STEPS = 3
MAX_RANGE_STEPS = 100
MAX_SCALE_VALUE = 1000
MIN_STEP_SIZE = 0.01
MAX_STEP_SIZE = 10.0

STEP_SIZE_PRESETS: Tuple[float, ...] = (0.1, 0.2, 0.5, 1.0)

# float noise from repeated step arithmetic
_EPS = 1e-9


def validate_scale(scale_min: int, scale_max: int, step_size: float) -> ValidationResult:
    """Check every rule and return all violations at once."""
    errors: List[str] = []

    if scale_min >= scale_max:
        errors.append("Minimum scale value must be less than maximum scale value")
    if scale_min < 0:
        errors.append("Minimum scale value cannot be negative")
    if scale_max > MAX_SCALE_VALUE:
        errors.append(f"Maximum scale value cannot exceed {MAX_SCALE_VALUE}")

    range_size = scale_max - scale_min
    if range_size < MIN_RANGE_STEPS:
        errors.append(f"Scale range must have at least {MIN_RANGE_STEPS} steps (current range: {range_size})")
    if range_size > MAX_RANGE_STEPS:
        errors.append(f"Scale range cannot exceed {MAX_RANGE_STEPS} steps (current range: {range_size})")

    if step_size <= 0:
        errors.append("Step size must be greater than 0")
    elif step_size < MIN_STEP_SIZE:
        errors.append(f"Step size must be at least {MIN_STEP_SIZE}")
    elif step_size > MAX_STEP_SIZE:
        errors.append(f"Step size cannot exceed {MAX_STEP_SIZE}")
    elif range_size > 0 and step_size > range_size:
        errors.append("Step size cannot be larger than the scale range")

    return ValidationResult.from_errors(errors)


def parse_setting(raw: Optional[str]) -> Optional[float]:
    """Numeric grinder setting or None for free text ("2 turns + 3")."""
    s = (raw or "").strip().replace(",", ".")
    if not s:
        return None
    try:
        v = float(s)
    except ValueError:
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def _decimals_for(step: float) -> int:
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    return max(0, -exp) if isinstance(exp, int) else 0


@dataclass(frozen=True)
class GrinderScale:
    scale_min: int
    scale_max: int
    step_size: float = 0.5
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", as_utc(self.created_at))

    # ---- validation ----
    def validate(self) -> ValidationResult:
        return validate_scale(self.scale_min, self.scale_max, self.step_size)

    @property
    def is_valid(self) -> bool:
        return self.validate().is_valid

    # ---- derived ----
    @property
    def range_size(self) -> int:
        return self.scale_max - self.scale_min

    @property
    def middle_value(self) -> int:
        return (self.scale_min + self.scale_max) // 2

    @property
    def max_steps(self) -> int:
        # grid points past scale_min that still fit under scale_max
        if self.step_size <= 0 or self.range_size <= 0:
            return 0
        return int(math.floor(self.range_size / self.step_size + _EPS))

    # ---- range ops ----
    def is_value_in_range(self, value: float) -> bool:
        return self.scale_min <= value <= self.scale_max

    def clamp_value(self, value: float) -> float:
        return max(self.scale_min, min(self.scale_max, value))

    def steps_from_min(self, value: float) -> int:
        """Nearest grid index for `value`, unclamped (half-up)."""
        if self.step_size <= 0:
            return 0
        return int(math.floor((value - self.scale_min) / self.step_size + 0.5 + _EPS))

    def value_at(self, steps: int) -> float:
        return round(self.scale_min + steps * self.step_size, 9)

    def quantize(self, value: float) -> float:
        """
        Round to the nearest step counted from scale_min, then clamp onto the
        grid. The result is always a reachable dial position, so applying it
        twice changes nothing.
        """
        steps = max(0, min(self.max_steps, self.steps_from_min(value)))
        return self.value_at(steps)

    def would_clamp(self, value: float) -> bool:
        steps = self.steps_from_min(value)
        return steps < 0 or steps > self.max_steps

    def valid_values(self) -> List[float]:
        return [self.value_at(i) for i in range(self.max_steps + 1)]

    def format_value(self, value: float) -> str:
        decimals = _decimals_for(self.step_size)
        q = Decimal(1).scaleb(-decimals)
        return str(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


DEFAULT_SCALE = GrinderScale(scale_min=1, scale_max=10, step_size=0.5, id="default")

COMMON_PRESETS: Tuple[GrinderScale, ...] = (
    GrinderScale(scale_min=1, scale_max=10, step_size=0.5, id="preset-1-10"),
    GrinderScale(scale_min=30, scale_max=80, step_size=1.0, id="preset-30-80"),
    GrinderScale(scale_min=50, scale_max=60, step_size=0.5, id="preset-50-60"),
    GrinderScale(scale_min=0, scale_max=100, step_size=1.0, id="preset-0-100"),
)


__all__ = [
    "GrinderScale", "validate_scale", "parse_setting",
    "DEFAULT_SCALE", "COMMON_PRESETS", "STEP_SIZE_PRESETS",
]
