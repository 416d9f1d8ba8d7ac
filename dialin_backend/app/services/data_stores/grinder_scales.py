from __future__ import annotations

from threading import RLock
from typing import List, Optional

from sqlmodel import Session, select

from dialin_backend.app.coaching.grinder_scale import GrinderScale, validate_scale
from dialin_backend.app.db.models import GrinderScaleRecord
from dialin_backend.app.utils.clock import utcnow
from dialin_backend.app.utils.logs import get_logger

log = get_logger("store.grinder")
_IO_LOCK = RLock()


class ScaleValidationError(ValueError):
    """Invalid grinder scale; `errors` lists every violated rule."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


def _to_domain(row: GrinderScaleRecord) -> GrinderScale:
    return GrinderScale(
        id=row.id,
        scale_min=row.scale_min,
        scale_max=row.scale_max,
        step_size=row.step_size,
        created_at=row.created_at,
    )


class GrinderScaleStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_current_grinder_scale(self) -> Optional[GrinderScale]:
        stmt = select(GrinderScaleRecord).where(GrinderScaleRecord.is_current == True)  # noqa: E712
        row = self.session.exec(stmt).first()
        return _to_domain(row) if row else None

    def get_scale(self, scale_id: str) -> GrinderScale:
        row = self.session.get(GrinderScaleRecord, scale_id)
        if row is None:
            raise KeyError(f"grinder scale not found: {scale_id}")
        return _to_domain(row)

    def list_scales(self) -> List[GrinderScale]:
        stmt = select(GrinderScaleRecord).order_by(GrinderScaleRecord.created_at.desc())
        return [_to_domain(r) for r in self.session.exec(stmt).all()]

    def _find_same_range(self, scale_min: int, scale_max: int, step_size: float) -> Optional[GrinderScaleRecord]:
        stmt = select(GrinderScaleRecord).where(
            GrinderScaleRecord.scale_min == scale_min,
            GrinderScaleRecord.scale_max == scale_max,
            GrinderScaleRecord.step_size == step_size,
        )
        return self.session.exec(stmt).first()

    def create_scale(self, scale_min: int, scale_max: int, step_size: float, activate: bool = True) -> GrinderScale:
        """
        Validate and store a configuration. Recreating an identical range is
        a no-op that returns (and optionally re-activates) the stored one.
        """
        result = validate_scale(scale_min, scale_max, step_size)
        if not result.is_valid:
            raise ScaleValidationError(result.errors)

        with _IO_LOCK:
            row = self._find_same_range(scale_min, scale_max, step_size)
            if row is None:
                row = GrinderScaleRecord(scale_min=scale_min, scale_max=scale_max, step_size=step_size)
                self.session.add(row)
                self.session.commit()
                self.session.refresh(row)
                log.info(f"[grinder] stored scale {row.id} {scale_min}-{scale_max} step {step_size}")
            scale_id = row.id

        return self.activate(scale_id) if activate else self.get_scale(scale_id)

    def activate(self, scale_id: str) -> GrinderScale:
        """Make one scale current and every other one not, in one transaction."""
        with _IO_LOCK:
            target = self.session.get(GrinderScaleRecord, scale_id)
            if target is None:
                raise KeyError(f"grinder scale not found: {scale_id}")
            try:
                stmt = select(GrinderScaleRecord).where(
                    GrinderScaleRecord.is_current == True,  # noqa: E712
                    GrinderScaleRecord.id != scale_id,
                )
                for other in self.session.exec(stmt).all():
                    other.is_current = False
                    self.session.add(other)
                # the old current row must be cleared before the unique index sees the new one
                self.session.flush()
                target.is_current = True
                target.activated_at = utcnow()
                self.session.add(target)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
            self.session.refresh(target)
            log.info(f"[grinder] current scale is now {scale_id}")
            return _to_domain(target)
