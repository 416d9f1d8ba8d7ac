# dialin_backend/app/routers/beans.py
from __future__ import annotations
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from dialin_backend.app.db.session import get_session
from dialin_backend.app.schemas import (
    BeanStatusOut,
    QualityAnalysisOut,
    RecommendationHistoryOut,
    RecommendationOut,
)
from dialin_backend.app.services.coaching_flow import bean_overview, follow_recommendation
from dialin_backend.app.services.data_stores import RecommendationStore, ShotStore
from dialin_backend.app.services.recommendation_lifecycle import GrindRecommendationLifecycle

router = APIRouter(prefix="/beans", tags=["beans"])


def _status_out(session: Session, bean_id: str) -> BeanStatusOut:
    o = bean_overview(session, bean_id)
    return BeanStatusOut(
        bean_id=o.bean_id,
        status=o.status,
        color_token=o.color_token,
        shot_count=o.shot_count,
        recent_scores=o.recent_scores,
    )


# What it does:
# Every bean that has shots, with its status chip.
@router.get("", response_model=List[BeanStatusOut])
def list_beans(session: Session = Depends(get_session)):
    return [_status_out(session, b) for b in ShotStore(session).list_bean_ids()]


# What it does:
# Dial-in status chip for a bean (status + theme color token).
@router.get("/{bean_id}/status", response_model=BeanStatusOut)
def get_bean_status(bean_id: str, session: Session = Depends(get_session)):
    return _status_out(session, bean_id)


@router.get("/{bean_id}/quality", response_model=QualityAnalysisOut)
def get_bean_quality(bean_id: str, session: Session = Depends(get_session)):
    return QualityAnalysisOut.from_domain(bean_overview(session, bean_id).analysis)


# What it does:
# The open next-shot suggestion, with whether it is still recent enough to show.
@router.get("/{bean_id}/recommendation", response_model=RecommendationOut)
def get_active_recommendation(bean_id: str, session: Session = Depends(get_session)):
    o = bean_overview(session, bean_id)
    if o.recommendation is None:
        raise HTTPException(status_code=404, detail="no active recommendation")
    return RecommendationOut.from_domain(o.recommendation, is_recent=o.recommendation_is_recent)


@router.get("/{bean_id}/recommendations", response_model=RecommendationHistoryOut)
def get_recommendation_history(bean_id: str, session: Session = Depends(get_session)):
    lifecycle = GrindRecommendationLifecycle(RecommendationStore(session), shots=ShotStore(session))
    return RecommendationHistoryOut(
        bean_id=bean_id,
        follow_rate=lifecycle.follow_rate(bean_id),
        items=[RecommendationOut.from_domain(r) for r in lifecycle.history(bean_id)],
    )


@router.post("/{bean_id}/recommendation/followed", response_model=RecommendationOut)
def mark_recommendation_followed(bean_id: str, session: Session = Depends(get_session)):
    try:
        return RecommendationOut.from_domain(follow_recommendation(session, bean_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="no active recommendation")
