# models.py  (shots, grinder scales, grind recommendations)

from typing import Optional
from datetime import datetime
import uuid

from sqlalchemy import DateTime, Index, text
from sqlmodel import SQLModel, Field

from dialin_backend.app.utils.clock import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------- Shots ----------

class ShotRecord(SQLModel, table=True):
    __table_args__ = (
        Index("ix_shot_bean_timestamp", "bean_id", "timestamp"),
    )

    id: str = Field(default_factory=_uuid, primary_key=True)
    bean_id: str = Field(index=True)
    coffee_weight_in: float
    coffee_weight_out: float
    extraction_time_seconds: int
    grinder_setting: str
    notes: str = ""
    taste_primary: Optional[str] = None            # enum string
    taste_secondary: Optional[str] = None          # enum string
    timestamp: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))


# ---------- Grinder scale ----------
# Superseded configurations stay for history; the partial unique index
# makes "more than one current scale" impossible at the database level.

class GrinderScaleRecord(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_grinder_scale_current", "is_current", unique=True,
            sqlite_where=text("is_current = 1"),
            postgresql_where=text("is_current"),
        ),
    )

    id: str = Field(default_factory=_uuid, primary_key=True)
    scale_min: int
    scale_max: int
    step_size: float = 0.5
    is_current: bool = False
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))
    activated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


# ---------- Grind recommendations ----------
# One active (superseded_at IS NULL) row per bean; older rows are kept.

class GrindRecommendationRecord(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_grind_rec_active_bean", "bean_id", unique=True,
            sqlite_where=text("superseded_at IS NULL"),
            postgresql_where=text("superseded_at IS NULL"),
        ),
    )

    id: str = Field(default_factory=_uuid, primary_key=True)
    bean_id: str = Field(index=True)
    suggested_grind_setting: str
    adjustment_direction: str                      # enum string
    reason: str
    recommended_dose: Optional[float] = None
    target_time_min: int = 25
    target_time_max: int = 30
    timestamp: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))
    was_followed: bool = False
    based_on_taste: bool = False
    confidence: str                                # enum string
    superseded_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
