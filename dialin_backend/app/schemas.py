# schemas.py  (API payloads: shots, grinder scale, recommendations, bean status)

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict

from dialin_backend.app.coaching.grinder_scale import GrinderScale
from dialin_backend.app.coaching.models import (
    AdjustmentDirection,
    AdjustmentNotice,
    BeanStatus,
    ConfidenceLevel,
    GrindAdjustmentRecommendation,
    PersistentGrindRecommendation,
    RecommendationState,
    Shot,
    TastePrimary,
    TasteSecondary,
)
from dialin_backend.app.coaching.quality import QualityAnalysis, QualityBreakdown, QualityTier, TrendDirection
from dialin_backend.app.utils.clock import as_utc


# ===================== Shots =====================

class ShotIn(BaseModel):
    # Ranges are checked by Shot.validate so every violation is reported at once
    bean_id: str
    coffee_weight_in: float
    coffee_weight_out: float
    extraction_time_seconds: int
    grinder_setting: str
    notes: str = ""
    taste_primary: Optional[TastePrimary] = None
    taste_secondary: Optional[TasteSecondary] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    def to_domain(self) -> Shot:
        extra = {}
        if self.timestamp is not None:
            # naive input is read as UTC
            extra["timestamp"] = as_utc(self.timestamp)
        return Shot(
            bean_id=self.bean_id,
            coffee_weight_in=self.coffee_weight_in,
            coffee_weight_out=self.coffee_weight_out,
            extraction_time_seconds=self.extraction_time_seconds,
            grinder_setting=self.grinder_setting,
            notes=self.notes,
            taste_primary=self.taste_primary,
            taste_secondary=self.taste_secondary,
            **extra,
        )

class TasteIn(BaseModel):
    taste_primary: Optional[TastePrimary] = None
    taste_secondary: Optional[TasteSecondary] = None

class ShotOut(BaseModel):
    id: str
    bean_id: str
    coffee_weight_in: float
    coffee_weight_out: float
    extraction_time_seconds: int
    grinder_setting: str
    notes: str
    taste_primary: Optional[TastePrimary] = None
    taste_secondary: Optional[TasteSecondary] = None
    timestamp: datetime
    brew_ratio: float
    formatted_brew_ratio: str
    formatted_extraction_time: str

    @classmethod
    def from_domain(cls, s: Shot) -> "ShotOut":
        return cls(
            id=s.id,
            bean_id=s.bean_id,
            coffee_weight_in=s.coffee_weight_in,
            coffee_weight_out=s.coffee_weight_out,
            extraction_time_seconds=s.extraction_time_seconds,
            grinder_setting=s.grinder_setting,
            notes=s.notes,
            taste_primary=s.taste_primary,
            taste_secondary=s.taste_secondary,
            timestamp=s.timestamp,
            brew_ratio=s.brew_ratio,
            formatted_brew_ratio=s.formatted_brew_ratio(),
            formatted_extraction_time=s.formatted_extraction_time(),
        )


# ===================== Quality =====================

class QualityOut(BaseModel):
    time_points: float
    ratio_points: float
    taste_points: int
    consistency_bonus: int
    total: int = Field(..., ge=0, le=100)

    @classmethod
    def from_domain(cls, q: QualityBreakdown) -> "QualityOut":
        return cls(
            time_points=round(q.time_points, 2),
            ratio_points=round(q.ratio_points, 2),
            taste_points=q.taste_points,
            consistency_bonus=q.consistency_bonus,
            total=q.total,
        )

class QualityAnalysisOut(BaseModel):
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
    def from_domain(cls, a: QualityAnalysis) -> "QualityAnalysisOut":
        return cls(**{k: getattr(a, k) for k in cls.model_fields})


# ===================== Grinder scale =====================

class GrinderScaleIn(BaseModel):
    scale_min: int
    scale_max: int
    step_size: float = 0.5

class GrinderScaleOut(BaseModel):
    id: str
    scale_min: int
    scale_max: int
    step_size: float
    range_size: int
    middle_value: int
    max_steps: int
    created_at: datetime

    @classmethod
    def from_domain(cls, g: GrinderScale) -> "GrinderScaleOut":
        return cls(
            id=g.id,
            scale_min=g.scale_min,
            scale_max=g.scale_max,
            step_size=g.step_size,
            range_size=g.range_size,
            middle_value=g.middle_value,
            max_steps=g.max_steps,
            created_at=g.created_at,
        )

class ValidationOut(BaseModel):
    is_valid: bool
    errors: List[str] = []


# ===================== Recommendations =====================

class AdjustmentOut(BaseModel):
    current_grind_setting: str
    suggested_grind_setting: str
    adjustment_direction: AdjustmentDirection
    adjustment_steps: int
    extraction_time_deviation: int
    taste_issue: Optional[TastePrimary] = None
    confidence: ConfidenceLevel
    explanation: str
    notice: Optional[AdjustmentNotice] = None
    at_scale_limit: Optional[str] = None

    @classmethod
    def from_domain(cls, a: GrindAdjustmentRecommendation) -> "AdjustmentOut":
        return cls(
            current_grind_setting=a.current_grind_setting,
            suggested_grind_setting=a.suggested_grind_setting,
            adjustment_direction=a.adjustment_direction,
            adjustment_steps=a.adjustment_steps,
            extraction_time_deviation=a.extraction_time_deviation,
            taste_issue=a.taste_issue,
            confidence=a.confidence,
            explanation=a.explanation,
            notice=a.notice,
            at_scale_limit=a.at_scale_limit,
        )

class RecommendationOut(BaseModel):
    id: str
    bean_id: str
    suggested_grind_setting: str
    adjustment_direction: AdjustmentDirection
    adjustment_description: str
    reason: str
    confidence: ConfidenceLevel
    confidence_description: str
    based_on_taste: bool
    recommended_dose: Optional[float] = None
    target_extraction_time: Tuple[int, int]
    formatted_target_time: str
    timestamp: datetime
    was_followed: bool
    superseded_at: Optional[datetime] = None
    state: RecommendationState
    outcome: Optional[RecommendationState] = None
    is_recent: Optional[bool] = None

    @classmethod
    def from_domain(cls, r: PersistentGrindRecommendation, is_recent: Optional[bool] = None) -> "RecommendationOut":
        return cls(
            id=r.id,
            bean_id=r.bean_id,
            suggested_grind_setting=r.suggested_grind_setting,
            adjustment_direction=r.adjustment_direction,
            adjustment_description=r.adjustment_description(),
            reason=r.reason,
            confidence=r.confidence,
            confidence_description=r.confidence_description(),
            based_on_taste=r.based_on_taste,
            recommended_dose=r.recommended_dose,
            target_extraction_time=r.target_extraction_time,
            formatted_target_time=r.formatted_target_time(),
            timestamp=r.timestamp,
            was_followed=r.was_followed,
            superseded_at=r.superseded_at,
            state=r.state,
            outcome=r.outcome,
            is_recent=is_recent,
        )

class RecommendationHistoryOut(BaseModel):
    bean_id: str
    follow_rate: float
    items: List[RecommendationOut] = []


# ===================== Composite responses =====================

class ShotRecordedOut(BaseModel):
    shot: ShotOut
    quality: QualityOut
    adjustment: AdjustmentOut
    recommendation: Optional[RecommendationOut] = None
    followed_previous: bool = False
    trace: Dict[str, Any] = {}

class BeanStatusOut(BaseModel):
    bean_id: str
    status: BeanStatus
    color_token: str
    shot_count: int
    recent_scores: List[int] = []

class ExtractionOut(BaseModel):
    extraction_time_seconds: int
    taste: Optional[TastePrimary] = None
    direction: AdjustmentDirection
    reason: str
    deviation_seconds: int

class TastePreselectOut(BaseModel):
    extraction_time_seconds: Optional[float] = None
    suggested_taste: Optional[TastePrimary] = None
