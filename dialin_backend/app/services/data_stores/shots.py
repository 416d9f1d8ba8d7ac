from __future__ import annotations

from typing import List, Optional

from sqlmodel import Session, select

from dialin_backend.app.coaching.models import Shot, TastePrimary, TasteSecondary
from dialin_backend.app.db.models import ShotRecord


class DuplicateShotError(ValueError):
    """A shot with this id is already stored."""


def _enum_or_none(enum_cls, raw: Optional[str]):
    return enum_cls(raw) if raw else None

def _to_domain(row: ShotRecord) -> Shot:
    return Shot(
        id=row.id,
        bean_id=row.bean_id,
        coffee_weight_in=row.coffee_weight_in,
        coffee_weight_out=row.coffee_weight_out,
        extraction_time_seconds=row.extraction_time_seconds,
        grinder_setting=row.grinder_setting,
        notes=row.notes or "",
        taste_primary=_enum_or_none(TastePrimary, row.taste_primary),
        taste_secondary=_enum_or_none(TasteSecondary, row.taste_secondary),
        timestamp=row.timestamp,
    )

def _to_row(shot: Shot) -> ShotRecord:
    return ShotRecord(
        id=shot.id,
        bean_id=shot.bean_id,
        coffee_weight_in=shot.coffee_weight_in,
        coffee_weight_out=shot.coffee_weight_out,
        extraction_time_seconds=shot.extraction_time_seconds,
        grinder_setting=shot.grinder_setting,
        notes=shot.notes,
        taste_primary=shot.taste_primary.value if shot.taste_primary else None,
        taste_secondary=shot.taste_secondary.value if shot.taste_secondary else None,
        timestamp=shot.timestamp,
    )


class ShotStore:
    """Shot persistence over one SQLModel session (one per request)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_shot(self, shot: Shot) -> Shot:
        if self.session.get(ShotRecord, shot.id) is not None:
            raise DuplicateShotError(f"shot id already exists: {shot.id}")
        row = _to_row(shot)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return _to_domain(row)

    def get_shot(self, shot_id: str) -> Shot:
        row = self.session.get(ShotRecord, shot_id)
        if row is None:
            raise KeyError(f"shot not found: {shot_id}")
        return _to_domain(row)

    def get_shots_for_bean(self, bean_id: str) -> List[Shot]:
        stmt = (
            select(ShotRecord)
            .where(ShotRecord.bean_id == bean_id)
            .order_by(ShotRecord.timestamp, ShotRecord.id)
        )
        return [_to_domain(r) for r in self.session.exec(stmt).all()]

    def latest_shot(self, bean_id: str) -> Optional[Shot]:
        shots = self.get_shots_for_bean(bean_id)
        return shots[-1] if shots else None

    def update_taste(
        self,
        shot_id: str,
        primary: Optional[TastePrimary],
        secondary: Optional[TasteSecondary] = None,
    ) -> Shot:
        row = self.session.get(ShotRecord, shot_id)
        if row is None:
            raise KeyError(f"shot not found: {shot_id}")
        tagged = _to_domain(row).with_taste(primary, secondary)
        row.taste_primary = tagged.taste_primary.value if tagged.taste_primary else None
        row.taste_secondary = tagged.taste_secondary.value if tagged.taste_secondary else None
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return _to_domain(row)

    def list_bean_ids(self) -> List[str]:
        stmt = select(ShotRecord.bean_id).distinct().order_by(ShotRecord.bean_id)
        return list(self.session.exec(stmt).all())
