# dialin_backend/app/coaching/quality.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from statistics import mean, pstdev
from typing import List, Optional, Sequence

from .models import Shot, TastePrimary
from .policy import CoachingPolicy, get_policy

# Purpose:
# 0-100 quality score for a shot: time-fit + ratio-fit + taste-fit, each
# measured against a reference window with linear fall-off outside it.
# History only ever adds an optional consistency bonus, and the total is
# capped at 100. No wall clock is read here.

MAX_SCORE = 100


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _window_distance(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo - value
    if value > hi:
        return value - hi
    return 0.0


def _linear_fit(distance: float, weight: int, decay: float) -> float:
    return max(0.0, weight * (1.0 - distance / decay))


@dataclass(frozen=True)
class QualityBreakdown:
    time_points: float
    ratio_points: float
    taste_points: int
    consistency_bonus: int
    total: int


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class QualityTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_WORK = "needs_work"


@dataclass(frozen=True)
class QualityAnalysis:
    total_shots: int
    overall_average: int
    recent_average: int
    quality_tier: QualityTier
    excellent_count: int
    good_count: int
    needs_work_count: int
    trend: TrendDirection
    improvement_rate: float
    consistency_score: int

    @classmethod
    def empty(cls) -> "QualityAnalysis":
        return cls(0, 0, 0, QualityTier.NEEDS_WORK, 0, 0, 0, TrendDirection.STABLE, 0.0, 0)


class ShotQualityScorer:
    def __init__(self, policy: Optional[CoachingPolicy] = None) -> None:
        self.policy = policy or get_policy()

    # ---- components ----
    def time_points(self, extraction_time_seconds: int) -> float:
        p = self.policy
        d = _window_distance(extraction_time_seconds, p.optimal_time_min, p.optimal_time_max)
        return _linear_fit(d, p.time_fit_weight, p.time_decay_seconds)

    def ratio_points(self, brew_ratio: float) -> float:
        p = self.policy
        d = _window_distance(brew_ratio, p.ratio_min, p.ratio_max)
        return _linear_fit(d, p.ratio_fit_weight, p.ratio_decay)

    def taste_points(self, taste: Optional[TastePrimary]) -> int:
        fit = self.policy.taste_fit
        if taste is None:
            return fit.neutral
        if taste is TastePrimary.PERFECT:
            return fit.perfect
        return fit.informative

    def consistency_bonus(self, shot: Shot, bean_history: Sequence[Shot]) -> int:
        p = self.policy
        if p.consistency_bonus <= 0:
            return 0
        others = [s for s in bean_history if s.bean_id == shot.bean_id and s.id != shot.id]
        if len(others) < p.consistency_min_history:
            return 0
        avg_ratio = mean(s.brew_ratio for s in others)
        avg_time = mean(s.extraction_time_seconds for s in others)
        consistent = (
            abs(shot.brew_ratio - avg_ratio) < p.consistency_ratio_tolerance
            and abs(shot.extraction_time_seconds - avg_time) < p.consistency_time_tolerance
        )
        return p.consistency_bonus if consistent else 0

    # ---- public ----
    def breakdown(self, shot: Shot, bean_history: Sequence[Shot] = ()) -> QualityBreakdown:
        tp = self.time_points(shot.extraction_time_seconds)
        rp = self.ratio_points(shot.brew_ratio)
        sp = self.taste_points(shot.taste_primary)
        bonus = self.consistency_bonus(shot, bean_history)
        total = max(0, min(MAX_SCORE, _round_half_up(tp + rp + sp + bonus)))
        return QualityBreakdown(
            time_points=round(tp, 2),
            ratio_points=round(rp, 2),
            taste_points=sp,
            consistency_bonus=bonus,
            total=total,
        )

    def score(self, shot: Shot, bean_history: Sequence[Shot] = ()) -> int:
        return self.breakdown(shot, bean_history).total

    def analyze(self, shots: Sequence[Shot]) -> QualityAnalysis:
        """Dashboard rollup: distribution, recent vs overall trend, consistency."""
        if not shots:
            return QualityAnalysis.empty()
        p = self.policy

        scored = [(s, self.score(s, shots)) for s in shots]
        scores = [sc for _, sc in scored]
        overall = int(mean(scores))

        newest = sorted(scored, key=lambda pair: (pair[0].timestamp, pair[0].id), reverse=True)[: p.recent_window]
        recent = int(mean(sc for _, sc in newest))

        if recent > overall + p.trend_threshold:
            trend = TrendDirection.IMPROVING
        elif recent < overall - p.trend_threshold:
            trend = TrendDirection.DECLINING
        else:
            trend = TrendDirection.STABLE

        improvement = ((recent - overall) / overall) * 100.0 if overall > 0 else 0.0

        if overall > 0:
            spread = pstdev(scores) if len(scores) > 1 else 0.0
            consistency = int(max(0.0, min(float(MAX_SCORE), MAX_SCORE - spread / overall * 100.0)))
        else:
            consistency = 0

        if recent >= p.excellent_score:
            tier = QualityTier.EXCELLENT
        elif recent >= p.good_score:
            tier = QualityTier.GOOD
        else:
            tier = QualityTier.NEEDS_WORK

        return QualityAnalysis(
            total_shots=len(shots),
            overall_average=overall,
            recent_average=recent,
            quality_tier=tier,
            excellent_count=sum(1 for sc in scores if sc >= p.excellent_score),
            good_count=sum(1 for sc in scores if p.good_score <= sc < p.excellent_score),
            needs_work_count=sum(1 for sc in scores if sc < p.good_score),
            trend=trend,
            improvement_rate=round(improvement, 1),
            consistency_score=consistency,
        )


__all__ = [
    "ShotQualityScorer", "QualityBreakdown", "QualityAnalysis",
    "TrendDirection", "QualityTier", "MAX_SCORE",
]
