# dialin_backend/app/routers/shots.py
from __future__ import annotations
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from dialin_backend.app.db.session import get_session
from dialin_backend.app.schemas import (
    AdjustmentOut,
    QualityOut,
    RecommendationOut,
    ShotIn,
    ShotOut,
    ShotRecordedOut,
    TasteIn,
)
from dialin_backend.app.coaching.quality import ShotQualityScorer
from dialin_backend.app.services.coaching_flow import (
    ShotOutcome,
    ShotValidationError,
    record_shot,
    tag_taste,
)
from dialin_backend.app.services.data_stores import DuplicateShotError, ShotStore

router = APIRouter(prefix="/shots", tags=["shots"])


def _outcome_out(outcome: ShotOutcome) -> ShotRecordedOut:
    rec = outcome.recommendation
    return ShotRecordedOut(
        shot=ShotOut.from_domain(outcome.shot),
        quality=QualityOut.from_domain(outcome.quality),
        adjustment=AdjustmentOut.from_domain(outcome.adjustment),
        recommendation=RecommendationOut.from_domain(rec) if rec else None,
        followed_previous=outcome.followed_previous,
        trace=outcome.trace,
    )


# What it does:
# Records a shot and returns its score plus the grind suggestion for the next one.
@router.post("", response_model=ShotRecordedOut, status_code=status.HTTP_201_CREATED)
def create_shot(payload: ShotIn, session: Session = Depends(get_session)):
    try:
        outcome = record_shot(session, payload.to_domain())
    except ShotValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    except DuplicateShotError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _outcome_out(outcome)


# What it does:
# Lists a bean's shots oldest first.
@router.get("", response_model=List[ShotOut])
def list_shots(bean_id: str = Query(..., min_length=1), session: Session = Depends(get_session)):
    return [ShotOut.from_domain(s) for s in ShotStore(session).get_shots_for_bean(bean_id)]


@router.get("/{shot_id}", response_model=ShotOut)
def get_shot(shot_id: str, session: Session = Depends(get_session)):
    try:
        return ShotOut.from_domain(ShotStore(session).get_shot(shot_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="shot not found")


# What it does:
# Score breakdown for one shot against its bean's history.
@router.get("/{shot_id}/quality", response_model=QualityOut)
def get_shot_quality(shot_id: str, session: Session = Depends(get_session)):
    store = ShotStore(session)
    try:
        shot = store.get_shot(shot_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="shot not found")
    history = store.get_shots_for_bean(shot.bean_id)
    return QualityOut.from_domain(ShotQualityScorer().breakdown(shot, history))


# What it does:
# Post-hoc taste tagging. Refreshes the open suggestion when this is the bean's latest shot.
@router.patch("/{shot_id}/taste", response_model=ShotRecordedOut)
def update_shot_taste(shot_id: str, payload: TasteIn, session: Session = Depends(get_session)):
    try:
        outcome = tag_taste(session, shot_id, payload.taste_primary, payload.taste_secondary)
    except KeyError:
        raise HTTPException(status_code=404, detail="shot not found")
    except ShotValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    return _outcome_out(outcome)
