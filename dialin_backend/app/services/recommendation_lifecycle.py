# dialin_backend/app/services/recommendation_lifecycle.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from threading import RLock
from typing import Callable, List, Optional

from dialin_backend.app.coaching.models import (
    GrindAdjustmentRecommendation,
    PersistentGrindRecommendation,
)
from dialin_backend.app.coaching.policy import CoachingPolicy, get_policy
from dialin_backend.app.coaching.ports import RecommendationStore, ShotSource
from dialin_backend.app.utils.clock import as_utc, utcnow
from dialin_backend.app.utils.logs import get_logger

# Purpose:
# Owns the "next shot" suggestion per bean:
#   CREATED -> FOLLOWED (user dialled the suggested setting)
#   CREATED -> SUPERSEDED (a newer suggestion replaced it; counts as ignored)
# At most one non-superseded row exists per bean at any time.

log = get_logger("lifecycle")

# the lock keeps two create() calls for one bean apart
_CREATE_LOCK = RLock()


class GrindRecommendationLifecycle:
    def __init__(
        self,
        store: RecommendationStore,
        shots: Optional[ShotSource] = None,
        policy: Optional[CoachingPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.shots = shots
        self.policy = policy or get_policy()
        self.clock = clock

    def create(
        self,
        bean_id: str,
        recommendation: GrindAdjustmentRecommendation,
        recommended_dose: Optional[float] = None,
        based_on_taste: bool = False,
    ) -> PersistentGrindRecommendation:
        p = self.policy
        rec = PersistentGrindRecommendation(
            bean_id=bean_id,
            suggested_grind_setting=recommendation.suggested_grind_setting,
            adjustment_direction=recommendation.adjustment_direction,
            reason=recommendation.explanation,
            confidence=recommendation.confidence,
            based_on_taste=based_on_taste,
            recommended_dose=recommended_dose,
            target_extraction_time=(p.optimal_time_min, p.optimal_time_max),
            timestamp=self.clock(),
        )
        with _CREATE_LOCK:
            # the store supersedes the previous active row in the same transaction
            saved = self.store.save_recommendation(rec)
        log.info(f"[lifecycle] new {saved.detailed_summary()} id={saved.id}")
        return saved

    def get_active(self, bean_id: str) -> Optional[PersistentGrindRecommendation]:
        if self.shots is not None and not self.shots.get_shots_for_bean(bean_id):
            return None
        return self.store.get_active_recommendation(bean_id)

    @staticmethod
    def mark_followed(recommendation: PersistentGrindRecommendation) -> PersistentGrindRecommendation:
        return recommendation.mark_as_followed()

    def is_recent(self, recommendation: PersistentGrindRecommendation, now: Optional[datetime] = None) -> bool:
        now = as_utc(now or self.clock())
        return now - recommendation.timestamp <= timedelta(days=self.policy.recent_days)

    def record_followed(self, recommendation: PersistentGrindRecommendation) -> PersistentGrindRecommendation:
        if recommendation.was_followed:
            return recommendation
        saved = self.store.update_recommendation(self.mark_followed(recommendation))
        log.info(f"[lifecycle] bean={saved.bean_id} recommendation {saved.id} followed")
        return saved

    def update_with_taste(
        self,
        bean_id: str,
        recommendation: GrindAdjustmentRecommendation,
        based_on_taste: bool = True,
    ) -> Optional[PersistentGrindRecommendation]:
        """
        Rewrite the active suggestion after taste was added to the shot that
        produced it. Creation time and followed flag stay as they were.
        Returns None when the bean has nothing active to update.
        """
        active = self.store.get_active_recommendation(bean_id)
        if active is None:
            return None
        updated = replace(
            active,
            suggested_grind_setting=recommendation.suggested_grind_setting,
            adjustment_direction=recommendation.adjustment_direction,
            reason=recommendation.explanation,
            confidence=recommendation.confidence,
            based_on_taste=based_on_taste,
        )
        saved = self.store.update_recommendation(updated)
        log.info(f"[lifecycle] bean={bean_id} recommendation {saved.id} refreshed with taste")
        return saved

    def history(self, bean_id: str) -> List[PersistentGrindRecommendation]:
        return self.store.list_recommendations(bean_id)

    def follow_rate(self, bean_id: str) -> float:
        """Share of closed suggestions the user actually followed (0.0 when none closed)."""
        closed = [r for r in self.history(bean_id) if r.outcome is not None]
        if not closed:
            return 0.0
        return round(sum(1 for r in closed if r.was_followed) / len(closed), 2)


__all__ = ["GrindRecommendationLifecycle"]
