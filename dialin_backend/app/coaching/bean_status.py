# dialin_backend/app/coaching/bean_status.py
from __future__ import annotations

import math
from statistics import mean
from typing import List, Optional, Protocol, Sequence

from .models import BeanStatus, Shot
from .policy import CoachingPolicy, get_policy
from .quality import ShotQualityScorer


class ShotScorer(Protocol):
    def score(self, shot: Shot, bean_history: Sequence[Shot] = ...) -> int: ...


# UI looks these up in its theme; the core only names them.
_STATUS_COLOR_TOKENS = {
    BeanStatus.DIALED_IN: "extraction_optimal",
    BeanStatus.EXPERIMENTING: "extraction_too_fast",
    BeanStatus.NEEDS_WORK: "extraction_too_slow",
    BeanStatus.FRESH_START: "extraction_idle",
}


def status_to_color_token(status: BeanStatus) -> str:
    return _STATUS_COLOR_TOKENS[status]


def recent_shots(shots: Sequence[Shot], n: int) -> List[Shot]:
    """Last `n` shots oldest-first; id breaks timestamp ties so the pick is stable."""
    return sorted(shots, key=lambda s: (s.timestamp, s.id))[-n:] if n > 0 else []


class BeanStatusClassifier:
    def __init__(
        self,
        scorer: Optional[ShotScorer] = None,
        policy: Optional[CoachingPolicy] = None,
    ) -> None:
        self.policy = policy or get_policy()
        self.scorer = scorer or ShotQualityScorer(self.policy)

    def recent_scores(self, shots: Sequence[Shot], scorer: Optional[ShotScorer] = None) -> List[int]:
        scorer = scorer or self.scorer
        window = recent_shots(shots, self.policy.min_shots_for_status)
        return [scorer.score(s, shots) for s in window]

    def classify(self, shots: Sequence[Shot], scorer: Optional[ShotScorer] = None) -> BeanStatus:
        p = self.policy
        if not shots:
            return BeanStatus.FRESH_START
        if len(shots) < p.min_shots_for_status:
            return BeanStatus.EXPERIMENTING

        scores = self.recent_scores(shots, scorer)
        avg_quality = int(math.floor(mean(scores) + 0.5))

        if avg_quality >= p.dial_in_average and all(sc >= p.dial_in_min_score for sc in scores):
            return BeanStatus.DIALED_IN
        if avg_quality < p.needs_work_average:
            return BeanStatus.NEEDS_WORK
        return BeanStatus.EXPERIMENTING


__all__ = ["BeanStatusClassifier", "status_to_color_token", "recent_shots", "ShotScorer"]
