# dialin_backend/app/services/coaching_flow.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from dialin_backend.app.coaching.bean_status import BeanStatusClassifier, status_to_color_token
from dialin_backend.app.coaching.grind_adjust import GrindAdjustmentCalculator
from dialin_backend.app.coaching.grinder_scale import GrinderScale, parse_setting
from dialin_backend.app.coaching.models import (
    BeanStatus,
    GrindAdjustmentRecommendation,
    PersistentGrindRecommendation,
    Shot,
    TastePrimary,
    TasteSecondary,
)
from dialin_backend.app.coaching.policy import get_policy
from dialin_backend.app.coaching.quality import QualityAnalysis, QualityBreakdown, ShotQualityScorer
from dialin_backend.app.observability.adjustment_trace import AdjustmentTrace
from dialin_backend.app.services.data_stores import GrinderScaleStore, RecommendationStore, ShotStore
from dialin_backend.app.services.recommendation_lifecycle import GrindRecommendationLifecycle
from dialin_backend.app.utils.logs import get_logger

# Purpose:
# Request-level orchestration around the coaching core:
#   record_shot  -> validate, persist, follow-through check, score, recommend
#   tag_taste    -> post-hoc taste, refresh the open suggestion if still relevant
#   bean_overview-> status + color token + open suggestion + quality rollup
# Routers call these and only translate exceptions to HTTP codes.

log = get_logger("flow")


class ShotValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


@dataclass
class ShotOutcome:
    shot: Shot
    quality: QualityBreakdown
    adjustment: GrindAdjustmentRecommendation
    recommendation: Optional[PersistentGrindRecommendation]
    followed_previous: bool = False
    trace: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BeanOverview:
    bean_id: str
    status: BeanStatus
    color_token: str
    shot_count: int
    recent_scores: List[int]
    recommendation: Optional[PersistentGrindRecommendation]
    recommendation_is_recent: bool
    analysis: QualityAnalysis


# ---------------- wiring ----------------

def _lifecycle(session: Session, shots: ShotStore) -> GrindRecommendationLifecycle:
    return GrindRecommendationLifecycle(RecommendationStore(session), shots=shots)

def _matches_suggestion(setting: str, suggested: str, scale: Optional[GrinderScale]) -> bool:
    """True when `setting` is within one grinder step of `suggested`."""
    if setting.strip() == suggested.strip():
        return True
    current, target = parse_setting(setting), parse_setting(suggested)
    if scale is None or current is None or target is None:
        return False
    return abs(current - target) <= scale.step_size + 1e-9


# ---------------- flows ----------------

def record_shot(session: Session, shot: Shot) -> ShotOutcome:
    result = shot.validate()
    if not result.is_valid:
        raise ShotValidationError(result.errors)

    shots = ShotStore(session)
    scale = GrinderScaleStore(session).get_current_grinder_scale()
    lifecycle = _lifecycle(session, shots)

    previous = lifecycle.store.get_active_recommendation(shot.bean_id)
    saved = shots.add_shot(shot)
    history = shots.get_shots_for_bean(saved.bean_id)

    followed = False
    if previous is not None and previous.has_adjustment() and not previous.was_followed:
        if _matches_suggestion(saved.grinder_setting, previous.suggested_grind_setting, scale):
            lifecycle.record_followed(previous)
            followed = True

    quality = ShotQualityScorer().breakdown(saved, history)

    trace = AdjustmentTrace()
    adjustment = GrindAdjustmentCalculator().recommend(saved, scale, history=history, trace=trace)
    recommendation = lifecycle.create(
        saved.bean_id,
        adjustment,
        recommended_dose=saved.coffee_weight_in,
        based_on_taste=saved.taste_primary is not None,
    )

    log.info(
        f"[flow] bean={saved.bean_id} shot={saved.id} score={quality.total} "
        f"next={adjustment.adjustment_direction.value} followed_previous={followed}"
    )
    return ShotOutcome(
        shot=saved,
        quality=quality,
        adjustment=adjustment,
        recommendation=recommendation,
        followed_previous=followed,
        trace=trace.to_public(),
    )


def tag_taste(
    session: Session,
    shot_id: str,
    primary: Optional[TastePrimary],
    secondary: Optional[TasteSecondary] = None,
) -> ShotOutcome:
    """Apply taste after the fact; KeyError if the shot does not exist."""
    if secondary is not None and primary is None:
        raise ShotValidationError(["Secondary taste requires a primary taste"])

    shots = ShotStore(session)
    tagged = shots.update_taste(shot_id, primary, secondary)
    history = shots.get_shots_for_bean(tagged.bean_id)
    scale = GrinderScaleStore(session).get_current_grinder_scale()
    lifecycle = _lifecycle(session, shots)

    quality = ShotQualityScorer().breakdown(tagged, history)
    trace = AdjustmentTrace()
    adjustment = GrindAdjustmentCalculator().recommend(tagged, scale, history=history, trace=trace)

    recommendation: Optional[PersistentGrindRecommendation] = None
    latest = shots.latest_shot(tagged.bean_id)
    if latest is not None and latest.id == tagged.id:
        recommendation = lifecycle.update_with_taste(tagged.bean_id, adjustment, based_on_taste=primary is not None)
        if recommendation is None:
            recommendation = lifecycle.create(
                tagged.bean_id, adjustment,
                recommended_dose=tagged.coffee_weight_in,
                based_on_taste=primary is not None,
            )
    else:
        log.debug(f"[flow] shot={shot_id} is not the latest for bean={tagged.bean_id}; suggestion unchanged")

    return ShotOutcome(
        shot=tagged,
        quality=quality,
        adjustment=adjustment,
        recommendation=recommendation,
        trace=trace.to_public(),
    )


def bean_overview(session: Session, bean_id: str) -> BeanOverview:
    shots = ShotStore(session)
    history = shots.get_shots_for_bean(bean_id)
    policy = get_policy()
    scorer = ShotQualityScorer(policy)
    classifier = BeanStatusClassifier(scorer, policy)
    lifecycle = _lifecycle(session, shots)

    status = classifier.classify(history)
    active = lifecycle.get_active(bean_id)
    return BeanOverview(
        bean_id=bean_id,
        status=status,
        color_token=status_to_color_token(status),
        shot_count=len(history),
        recent_scores=classifier.recent_scores(history) if history else [],
        recommendation=active,
        recommendation_is_recent=lifecycle.is_recent(active) if active else False,
        analysis=scorer.analyze(history),
    )


def follow_recommendation(session: Session, bean_id: str) -> PersistentGrindRecommendation:
    """Explicit 'I used it' from the UI; KeyError when nothing is open for the bean."""
    shots = ShotStore(session)
    lifecycle = _lifecycle(session, shots)
    active = lifecycle.get_active(bean_id)
    if active is None:
        raise KeyError(f"no active recommendation for bean: {bean_id}")
    return lifecycle.record_followed(active)


__all__ = [
    "ShotValidationError", "ShotOutcome", "BeanOverview",
    "record_shot", "tag_taste", "bean_overview", "follow_recommendation",
]
