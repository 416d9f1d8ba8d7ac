# dialin_backend/app/observability/adjustment_trace.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from dialin_backend.app.utils.req_id import new_request_id

class AdjustmentTrace:
    """
    Lightweight, structured trace of how a grind recommendation was produced.
    Collects rule steps, scale clamps, confidence changes and the final output.
    Safe to return in API responses.
    """
    def __init__(self, request_id: Optional[str] = None) -> None:
        self._t0 = time.time()
        self.request_id = request_id or new_request_id("adj")
        self.meta: Dict[str, Any] = {}
        self.steps: List[Dict[str, Any]] = []
        self.scale_clamps: List[Dict[str, Any]] = []
        self.confidence_changes: List[Dict[str, Any]] = []
        self.outputs: Dict[str, Any] = {}

    # -------- meta --------
    def set_meta(self, **kwargs: Any) -> None:
        self.meta.update(kwargs)

    # -------- narrative steps --------
    def add_step(self, label: str, **detail: Any) -> None:
        self.steps.append({"label": label, **detail})

    # -------- clamps against the grinder range --------
    def add_scale_clamp(self, value_before: float, value_after: float, limit: str) -> None:
        self.scale_clamps.append({"before": value_before, "after": value_after, "limit": limit})

    # -------- confidence --------
    def add_confidence_change(self, before: Any, after: Any, reason: str) -> None:
        self.confidence_changes.append({"before": before, "after": after, "reason": reason})

    # -------- final outputs --------
    def set_outputs(self, **kwargs: Any) -> None:
        self.outputs.update(kwargs)

    # -------- export --------
    def to_public(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "elapsed_ms": int((time.time() - self._t0) * 1000),
            "meta": self.meta,
            "steps": self.steps,
            "scale_clamps": self.scale_clamps,
            "confidence_changes": self.confidence_changes,
            "outputs": self.outputs,
        }
