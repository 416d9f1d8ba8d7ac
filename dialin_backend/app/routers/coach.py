# dialin_backend/app/routers/coach.py
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Query

from dialin_backend.app.coaching.extraction import ExtractionClassifier
from dialin_backend.app.coaching.models import TastePrimary
from dialin_backend.app.schemas import ExtractionOut, TastePreselectOut

router = APIRouter(prefix="/coach", tags=["coach"])


# What it does:
# Stateless extraction verdict for the timer screen (no persistence).
@router.get("/extraction", response_model=ExtractionOut)
def classify_extraction(
    time: int = Query(..., description="extraction time in seconds"),
    taste: Optional[TastePrimary] = Query(None),
):
    clf = ExtractionClassifier()
    verdict = clf.classify(time, taste)
    return ExtractionOut(
        extraction_time_seconds=time,
        taste=taste,
        direction=verdict.direction,
        reason=verdict.reason,
        deviation_seconds=clf.time_deviation(time),
    )


@router.get("/taste-preselect", response_model=TastePreselectOut)
def taste_preselect(time: Optional[float] = Query(None)):
    return TastePreselectOut(
        extraction_time_seconds=time,
        suggested_taste=ExtractionClassifier().preselect_taste(time),
    )
