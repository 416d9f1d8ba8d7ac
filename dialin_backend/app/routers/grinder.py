# dialin_backend/app/routers/grinder.py
from __future__ import annotations
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from dialin_backend.app.coaching.grinder_scale import COMMON_PRESETS, STEP_SIZE_PRESETS, validate_scale
from dialin_backend.app.db.session import get_session
from dialin_backend.app.schemas import GrinderScaleIn, GrinderScaleOut, ValidationOut
from dialin_backend.app.services.data_stores import GrinderScaleStore, ScaleValidationError

router = APIRouter(prefix="/grinder", tags=["grinder"])


@router.get("/scale", response_model=GrinderScaleOut)
def get_current_scale(session: Session = Depends(get_session)):
    scale = GrinderScaleStore(session).get_current_grinder_scale()
    if scale is None:
        raise HTTPException(status_code=404, detail="no grinder scale configured")
    return GrinderScaleOut.from_domain(scale)


@router.get("/scales", response_model=List[GrinderScaleOut])
def list_scales(session: Session = Depends(get_session)):
    return [GrinderScaleOut.from_domain(s) for s in GrinderScaleStore(session).list_scales()]


# What it does:
# Stores a scale and makes it the current one; 422 lists every rule it breaks.
@router.post("/scale", response_model=GrinderScaleOut, status_code=201)
def create_scale(payload: GrinderScaleIn, session: Session = Depends(get_session)):
    try:
        scale = GrinderScaleStore(session).create_scale(payload.scale_min, payload.scale_max, payload.step_size)
    except ScaleValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    return GrinderScaleOut.from_domain(scale)


# What it does:
# Dry-run validation for the setup form.
@router.post("/scale/validate", response_model=ValidationOut)
def validate_scale_payload(payload: GrinderScaleIn):
    result = validate_scale(payload.scale_min, payload.scale_max, payload.step_size)
    return ValidationOut(is_valid=result.is_valid, errors=result.errors)


@router.post("/scale/{scale_id}/activate", response_model=GrinderScaleOut)
def activate_scale(scale_id: str, session: Session = Depends(get_session)):
    try:
        return GrinderScaleOut.from_domain(GrinderScaleStore(session).activate(scale_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="grinder scale not found")


@router.get("/scale/presets", response_model=Dict[str, Any])
def scale_presets():
    return {
        "step_sizes": list(STEP_SIZE_PRESETS),
        "ranges": [
            {"scale_min": p.scale_min, "scale_max": p.scale_max, "step_size": p.step_size}
            for p in COMMON_PRESETS
        ],
    }
