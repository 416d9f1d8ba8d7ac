from __future__ import annotations

from threading import RLock
from typing import List, Optional

from sqlmodel import Session, select

from dialin_backend.app.coaching.models import (
    AdjustmentDirection,
    ConfidenceLevel,
    PersistentGrindRecommendation,
)
from dialin_backend.app.db.models import GrindRecommendationRecord
from dialin_backend.app.utils.clock import as_utc, utcnow

_IO_LOCK = RLock()


def _to_domain(row: GrindRecommendationRecord) -> PersistentGrindRecommendation:
    return PersistentGrindRecommendation(
        id=row.id,
        bean_id=row.bean_id,
        suggested_grind_setting=row.suggested_grind_setting,
        adjustment_direction=AdjustmentDirection(row.adjustment_direction),
        reason=row.reason,
        confidence=ConfidenceLevel(row.confidence),
        based_on_taste=row.based_on_taste,
        recommended_dose=row.recommended_dose,
        target_extraction_time=(row.target_time_min, row.target_time_max),
        timestamp=row.timestamp,
        was_followed=row.was_followed,
        superseded_at=row.superseded_at,
    )

def _apply(row: GrindRecommendationRecord, rec: PersistentGrindRecommendation) -> GrindRecommendationRecord:
    row.bean_id = rec.bean_id
    row.suggested_grind_setting = rec.suggested_grind_setting
    row.adjustment_direction = rec.adjustment_direction.value
    row.reason = rec.reason
    row.confidence = rec.confidence.value
    row.based_on_taste = rec.based_on_taste
    row.recommended_dose = rec.recommended_dose
    row.target_time_min, row.target_time_max = rec.target_extraction_time
    row.timestamp = rec.timestamp
    row.was_followed = rec.was_followed
    row.superseded_at = rec.superseded_at
    return row


class RecommendationStore:
    """
    Grind recommendation rows. Rows are never deleted; superseding stamps
    `superseded_at` and the partial unique index keeps one active row per bean.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _active_rows(self, bean_id: str) -> List[GrindRecommendationRecord]:
        stmt = select(GrindRecommendationRecord).where(
            GrindRecommendationRecord.bean_id == bean_id,
            GrindRecommendationRecord.superseded_at == None,  # noqa: E711
        )
        return list(self.session.exec(stmt).all())

    def get_active_recommendation(self, bean_id: str) -> Optional[PersistentGrindRecommendation]:
        rows = self._active_rows(bean_id)
        if not rows:
            return None
        rows.sort(key=lambda r: (as_utc(r.timestamp), r.id))
        return _to_domain(rows[-1])

    def supersede(self, bean_id: str) -> int:
        with _IO_LOCK:
            rows = self._active_rows(bean_id)
            now = utcnow()
            for row in rows:
                row.superseded_at = now
                self.session.add(row)
            if rows:
                self.session.commit()
            return len(rows)

    def save_recommendation(self, rec: PersistentGrindRecommendation) -> PersistentGrindRecommendation:
        """Insert `rec`; any other active row for the bean is superseded in the same transaction."""
        with _IO_LOCK:
            if self.session.get(GrindRecommendationRecord, rec.id) is not None:
                raise ValueError(f"recommendation id already exists: {rec.id}")
            try:
                if rec.is_active:
                    now = utcnow()
                    for row in self._active_rows(rec.bean_id):
                        row.superseded_at = now
                        self.session.add(row)
                    self.session.flush()
                row = _apply(GrindRecommendationRecord(id=rec.id), rec)
                self.session.add(row)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
            self.session.refresh(row)
            return _to_domain(row)

    def update_recommendation(self, rec: PersistentGrindRecommendation) -> PersistentGrindRecommendation:
        with _IO_LOCK:
            row = self.session.get(GrindRecommendationRecord, rec.id)
            if row is None:
                raise KeyError(f"recommendation not found: {rec.id}")
            self.session.add(_apply(row, rec))
            self.session.commit()
            self.session.refresh(row)
            return _to_domain(row)

    def list_recommendations(self, bean_id: str) -> List[PersistentGrindRecommendation]:
        stmt = (
            select(GrindRecommendationRecord)
            .where(GrindRecommendationRecord.bean_id == bean_id)
            .order_by(GrindRecommendationRecord.timestamp.desc(), GrindRecommendationRecord.id.desc())
        )
        return [_to_domain(r) for r in self.session.exec(stmt).all()]
