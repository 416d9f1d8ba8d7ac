# dialin_backend/app/coaching/extraction.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import AdjustmentDirection, TastePrimary
from .policy import CoachingPolicy, get_policy

# Purpose:
# Judge one shot as fast / slow / on target from its extraction time, with
# the user's taste feedback taking precedence whenever it is present.
# Everything here is pure; any integer time is accepted.


@dataclass(frozen=True)
class ExtractionVerdict:
    direction: AdjustmentDirection
    reason: str


_TASTE_DIRECTION = {
    TastePrimary.SOUR: AdjustmentDirection.FINER,
    TastePrimary.BITTER: AdjustmentDirection.COARSER,
    TastePrimary.PERFECT: AdjustmentDirection.NO_CHANGE,
}

_TASTE_REASON = {
    TastePrimary.SOUR: "Last shot was sour ({t}s)",
    TastePrimary.BITTER: "Last shot was bitter ({t}s)",
    TastePrimary.PERFECT: "Last shot was perfect ({t}s)",
}


class ExtractionClassifier:
    def __init__(self, policy: Optional[CoachingPolicy] = None) -> None:
        self.policy = policy or get_policy()

    def _display_seconds(self, t: int) -> int:
        return max(0, min(self.policy.reason_display_max, int(t)))

    def timing_direction(self, extraction_time_seconds: int) -> AdjustmentDirection:
        if extraction_time_seconds < self.policy.optimal_time_min:
            return AdjustmentDirection.FINER
        if extraction_time_seconds > self.policy.optimal_time_max:
            return AdjustmentDirection.COARSER
        return AdjustmentDirection.NO_CHANGE

    @staticmethod
    def taste_direction(taste: Optional[TastePrimary]) -> Optional[AdjustmentDirection]:
        return _TASTE_DIRECTION.get(taste) if taste is not None else None

    def time_deviation(self, extraction_time_seconds: int) -> int:
        """Signed seconds outside the optimal window; 0 inside it."""
        lo, hi = self.policy.optimal_window
        return int(extraction_time_seconds) - max(lo, min(hi, int(extraction_time_seconds)))

    def classify(
        self,
        extraction_time_seconds: int,
        taste: Optional[TastePrimary] = None,
    ) -> ExtractionVerdict:
        t = self._display_seconds(extraction_time_seconds)

        if taste is not None:
            return ExtractionVerdict(_TASTE_DIRECTION[taste], _TASTE_REASON[taste].format(t=t))

        direction = self.timing_direction(extraction_time_seconds)
        if direction is AdjustmentDirection.FINER:
            reason = f"Last shot ran too fast ({t}s)"
        elif direction is AdjustmentDirection.COARSER:
            reason = f"Last shot ran too slow ({t}s)"
        else:
            reason = f"Based on previous shot ({t}s)"
        return ExtractionVerdict(direction, reason)

    def preselect_taste(self, extraction_time_seconds: Optional[float]) -> Optional[TastePrimary]:
        """Likely taste for a time, used to pre-fill the taste picker."""
        if extraction_time_seconds is None or extraction_time_seconds <= 0:
            return None
        if extraction_time_seconds < self.policy.optimal_time_min:
            return TastePrimary.SOUR
        if extraction_time_seconds <= self.policy.optimal_time_max:
            return TastePrimary.PERFECT
        return TastePrimary.BITTER


__all__ = ["ExtractionClassifier", "ExtractionVerdict"]
