# dialin_backend/app/coaching/models.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple

from dialin_backend.app.utils.clock import as_utc, utcnow

# Purpose:
# Domain types shared by the coaching engines:
# - closed enums for taste, direction, confidence, bean status
# - the Shot record and the validation result used for inline errors
# - the transient adjustment and its persisted counterpart


# ===================== Enums =====================

class TastePrimary(str, Enum):
    SOUR = "sour"          # under-extracted, acidic
    PERFECT = "perfect"    # balanced
    BITTER = "bitter"      # over-extracted, harsh

class TasteSecondary(str, Enum):
    WEAK = "weak"
    STRONG = "strong"

class AdjustmentDirection(str, Enum):
    FINER = "finer"
    COARSER = "coarser"
    NO_CHANGE = "no_change"

class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def downgrade(self) -> "ConfidenceLevel":
        if self is ConfidenceLevel.HIGH:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

class AdjustmentNotice(str, Enum):
    AT_MINIMUM = "at_minimum"
    AT_MAXIMUM = "at_maximum"
    NON_NUMERIC_SETTING = "non_numeric_setting"
    SCALE_UNCONFIGURED = "scale_unconfigured"

class BeanStatus(str, Enum):
    FRESH_START = "fresh_start"
    EXPERIMENTING = "experimenting"
    DIALED_IN = "dialed_in"
    NEEDS_WORK = "needs_work"

class RecommendationState(str, Enum):
    CREATED = "created"
    FOLLOWED = "followed"
    IGNORED = "ignored"
    SUPERSEDED = "superseded"


# ===================== Validation =====================

@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


# ===================== Shot =====================

def _new_id() -> str:
    return str(uuid.uuid4())

@dataclass(frozen=True)
class Shot:
    """
    One espresso extraction. Immutable; taste tagging after the fact goes
    through `with_taste`, which returns a new value.
    """
    bean_id: str
    coffee_weight_in: float
    coffee_weight_out: float
    extraction_time_seconds: int
    grinder_setting: str
    notes: str = ""
    taste_primary: Optional[TastePrimary] = None
    taste_secondary: Optional[TasteSecondary] = None
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        # timestamps are always aware UTC; naive input is taken as UTC
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    @property
    def brew_ratio(self) -> float:
        if self.coffee_weight_in <= 0:
            return 0.0
        return round(self.coffee_weight_out / self.coffee_weight_in, 2)

    def with_taste(
        self,
        primary: Optional[TastePrimary],
        secondary: Optional[TasteSecondary] = None,
    ) -> "Shot":
        # secondary only carries meaning next to a primary
        return replace(self, taste_primary=primary, taste_secondary=secondary if primary else None)

    def validate(self) -> ValidationResult:
        errors: List[str] = []

        if self.coffee_weight_in < 0.1:
            errors.append("Coffee input weight must be at least 0.1g")
        elif self.coffee_weight_in > 50.0:
            errors.append("Coffee input weight cannot exceed 50.0g")

        if self.coffee_weight_out < 0.1:
            errors.append("Coffee output weight must be at least 0.1g")
        elif self.coffee_weight_out > 100.0:
            errors.append("Coffee output weight cannot exceed 100.0g")

        if self.extraction_time_seconds < 5:
            errors.append("Extraction time must be at least 5 seconds")
        elif self.extraction_time_seconds > 120:
            errors.append("Extraction time cannot exceed 120 seconds")

        if not self.grinder_setting.strip():
            errors.append("Grinder setting cannot be empty")
        elif len(self.grinder_setting) > 50:
            errors.append("Grinder setting cannot exceed 50 characters")

        if not self.bean_id.strip():
            errors.append("Bean ID cannot be empty")

        if len(self.notes) > 500:
            errors.append("Notes cannot exceed 500 characters")

        if self.taste_secondary is not None and self.taste_primary is None:
            errors.append("Secondary taste requires a primary taste")

        return ValidationResult.from_errors(errors)

    def is_optimal_extraction_time(self, window: Tuple[int, int] = (25, 30)) -> bool:
        return window[0] <= self.extraction_time_seconds <= window[1]

    def is_typical_brew_ratio(self, window: Tuple[float, float] = (1.5, 3.0)) -> bool:
        return window[0] <= self.brew_ratio <= window[1]

    def formatted_brew_ratio(self) -> str:
        return f"1:{self.brew_ratio:.1f}"

    def formatted_extraction_time(self) -> str:
        total = max(0, self.extraction_time_seconds)
        if total < 60:
            return f"{total}s"
        return f"{total // 60:02d}:{total % 60:02d}"


# ===================== Grind adjustment =====================

@dataclass(frozen=True)
class GrindAdjustmentRecommendation:
    """Transient output of the calculator for one shot."""
    current_grind_setting: str
    suggested_grind_setting: str
    adjustment_direction: AdjustmentDirection
    adjustment_steps: int
    extraction_time_deviation: int  # seconds outside the optimal window, signed
    taste_issue: Optional[TastePrimary]
    confidence: ConfidenceLevel
    explanation: str
    notice: Optional[AdjustmentNotice] = None

    def has_adjustment(self) -> bool:
        return self.adjustment_direction is not AdjustmentDirection.NO_CHANGE

    @property
    def at_scale_limit(self) -> Optional[Literal["min", "max"]]:
        if self.notice is AdjustmentNotice.AT_MINIMUM:
            return "min"
        if self.notice is AdjustmentNotice.AT_MAXIMUM:
            return "max"
        return None


_DIRECTION_TEXT = {
    AdjustmentDirection.FINER: "Grind finer",
    AdjustmentDirection.COARSER: "Grind coarser",
    AdjustmentDirection.NO_CHANGE: "No change needed",
}

_CONFIDENCE_TEXT = {
    ConfidenceLevel.HIGH: "High confidence",
    ConfidenceLevel.MEDIUM: "Medium confidence",
    ConfidenceLevel.LOW: "Low confidence",
}

@dataclass(frozen=True)
class PersistentGrindRecommendation:
    """
    The open next-shot suggestion for a bean. Values are never edited in
    place: following and superseding both produce new copies.
    """
    bean_id: str
    suggested_grind_setting: str
    adjustment_direction: AdjustmentDirection
    reason: str
    confidence: ConfidenceLevel
    based_on_taste: bool = False
    recommended_dose: Optional[float] = None
    target_extraction_time: Tuple[int, int] = (25, 30)
    timestamp: datetime = field(default_factory=utcnow)
    was_followed: bool = False
    superseded_at: Optional[datetime] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))
        object.__setattr__(self, "superseded_at", as_utc(self.superseded_at))

    @property
    def is_active(self) -> bool:
        return self.superseded_at is None

    @property
    def state(self) -> RecommendationState:
        if self.superseded_at is not None:
            return RecommendationState.SUPERSEDED
        if self.was_followed:
            return RecommendationState.FOLLOWED
        return RecommendationState.CREATED

    @property
    def outcome(self) -> Optional[RecommendationState]:
        if self.was_followed:
            return RecommendationState.FOLLOWED
        if self.superseded_at is not None:
            return RecommendationState.IGNORED
        return None

    def mark_as_followed(self) -> "PersistentGrindRecommendation":
        return replace(self, was_followed=True)

    def mark_superseded(self, at: Optional[datetime] = None) -> "PersistentGrindRecommendation":
        return replace(self, superseded_at=at or utcnow())

    def has_adjustment(self) -> bool:
        return self.adjustment_direction is not AdjustmentDirection.NO_CHANGE

    def adjustment_description(self) -> str:
        return _DIRECTION_TEXT[self.adjustment_direction]

    def confidence_description(self) -> str:
        return _CONFIDENCE_TEXT[self.confidence]

    def formatted_target_time(self) -> str:
        lo, hi = self.target_extraction_time
        return f"{lo}-{hi}s"

    def detailed_summary(self) -> str:
        dose = f"{self.recommended_dose}g" if self.recommended_dose is not None else "n/a"
        return (
            f"PersistentGrindRecommendation(bean={self.bean_id}, grind={self.suggested_grind_setting}, "
            f"direction={self.adjustment_direction.name}, dose={dose}, basedOnTaste={self.based_on_taste}, "
            f"confidence={self.confidence.name}, followed={self.was_followed})"
        )


__all__ = [
    "TastePrimary", "TasteSecondary", "AdjustmentDirection", "ConfidenceLevel",
    "AdjustmentNotice", "BeanStatus", "RecommendationState", "ValidationResult",
    "Shot", "GrindAdjustmentRecommendation", "PersistentGrindRecommendation",
]
