# dialin_backend/app/coaching/grind_adjust.py
from __future__ import annotations

from typing import Optional, Sequence

from dialin_backend.app.observability.adjustment_trace import AdjustmentTrace
from dialin_backend.app.utils.logs import get_logger
from .extraction import ExtractionClassifier
from .grinder_scale import GrinderScale, parse_setting
from .models import (
    AdjustmentDirection,
    AdjustmentNotice,
    ConfidenceLevel,
    GrindAdjustmentRecommendation,
    Shot,
)
from .policy import CoachingPolicy, get_policy

# Purpose:
# Turn one shot into a concrete next grind setting:
#   direction  <- ExtractionClassifier (taste first, then timing)
#   magnitude  <- seconds outside the optimal window, one step per N seconds
#   setting    <- current +/- steps * step_size, quantized onto the grinder dial
#   confidence <- agreement between taste and timing, history depth, clamping
# Bad input (free-text setting, no grinder configured) degrades to a
# NO_CHANGE / LOW result instead of raising.

log = get_logger("coaching.grind")


class GrindAdjustmentCalculator:
    def __init__(
        self,
        classifier: Optional[ExtractionClassifier] = None,
        policy: Optional[CoachingPolicy] = None,
    ) -> None:
        self.policy = policy or (classifier.policy if classifier else get_policy())
        self.classifier = classifier or ExtractionClassifier(self.policy)

    # ---- rules ----
    def adjustment_steps(self, deviation: int) -> int:
        return max(1, abs(int(deviation)) // self.policy.seconds_per_step)

    def signal_confidence(self, extraction_time_seconds: int, taste) -> ConfidenceLevel:
        timing = self.classifier.timing_direction(extraction_time_seconds)
        tasted = self.classifier.taste_direction(taste)
        if tasted is None:
            return ConfidenceLevel.MEDIUM          # timing alone
        if tasted is timing:
            return ConfidenceLevel.HIGH            # both agree
        if timing is AdjustmentDirection.NO_CHANGE:
            return ConfidenceLevel.MEDIUM          # taste alone, timing neutral
        return ConfidenceLevel.LOW                 # taste and timing disagree

    def prior_shot_count(self, shot: Shot, history: Sequence[Shot]) -> int:
        return sum(
            1 for s in history
            if s.bean_id == shot.bean_id and s.id != shot.id and s.timestamp <= shot.timestamp
        )

    # ---- degraded results ----
    def _unactionable(
        self,
        shot: Shot,
        notice: AdjustmentNotice,
        explanation: str,
        trace: Optional[AdjustmentTrace],
    ) -> GrindAdjustmentRecommendation:
        log.info(f"[grind] bean={shot.bean_id} shot={shot.id} not actionable: {notice.value}")
        if trace is not None:
            trace.add_step("unactionable", notice=notice.value)
        return GrindAdjustmentRecommendation(
            current_grind_setting=shot.grinder_setting,
            suggested_grind_setting=shot.grinder_setting,
            adjustment_direction=AdjustmentDirection.NO_CHANGE,
            adjustment_steps=0,
            extraction_time_deviation=self.classifier.time_deviation(shot.extraction_time_seconds),
            taste_issue=shot.taste_primary,
            confidence=ConfidenceLevel.LOW,
            explanation=explanation,
            notice=notice,
        )

    # ---- public ----
    def recommend(
        self,
        shot: Shot,
        scale: Optional[GrinderScale],
        history: Optional[Sequence[Shot]] = None,
        trace: Optional[AdjustmentTrace] = None,
    ) -> GrindAdjustmentRecommendation:
        t = shot.extraction_time_seconds
        taste = shot.taste_primary
        if trace is not None:
            trace.set_meta(bean_id=shot.bean_id, shot_id=shot.id, extraction_time_s=t,
                           taste=taste.value if taste else None, grinder_setting=shot.grinder_setting)

        if scale is None or not scale.is_valid:
            return self._unactionable(
                shot, AdjustmentNotice.SCALE_UNCONFIGURED,
                "No grinder scale configured; set up your grinder to get grind suggestions", trace,
            )

        current = parse_setting(shot.grinder_setting)
        if current is None:
            return self._unactionable(
                shot, AdjustmentNotice.NON_NUMERIC_SETTING,
                f"Grind setting '{shot.grinder_setting}' is not numeric; no adjustment calculated", trace,
            )

        verdict = self.classifier.classify(t, taste)
        deviation = self.classifier.time_deviation(t)
        if trace is not None:
            trace.add_step("classify", direction=verdict.direction.value, reason=verdict.reason, deviation_s=deviation)

        confidence = self.signal_confidence(t, taste)
        if trace is not None:
            trace.add_step("signals", confidence=confidence.value)

        if history is not None:
            prior = self.prior_shot_count(shot, history)
            if prior < self.policy.min_prior_shots and confidence is not ConfidenceLevel.LOW:
                if trace is not None:
                    trace.add_confidence_change(confidence.value, ConfidenceLevel.LOW.value,
                                                f"only {prior} prior shots")
                confidence = ConfidenceLevel.LOW

        notice: Optional[AdjustmentNotice] = None
        if verdict.direction is AdjustmentDirection.NO_CHANGE:
            steps = 0
            suggested = shot.grinder_setting
        else:
            planned = self.adjustment_steps(deviation)
            sign = -1 if verdict.direction is AdjustmentDirection.FINER else 1
            raw = current + sign * planned * scale.step_size
            target = scale.quantize(raw)

            if scale.would_clamp(raw):
                # an out-of-range setting can clamp against the direction
                below = scale.steps_from_min(raw) < 0
                notice = AdjustmentNotice.AT_MINIMUM if below else AdjustmentNotice.AT_MAXIMUM
                downgraded = confidence.downgrade()
                if trace is not None:
                    trace.add_scale_clamp(raw, target, "min" if below else "max")
                    trace.add_confidence_change(confidence.value, downgraded.value, "clamped at scale edge")
                confidence = downgraded

            steps = int(round(abs(target - current) / scale.step_size))
            suggested = scale.format_value(target)
            if trace is not None:
                trace.add_step("quantize", planned_steps=planned, raw=raw, target=target, steps=steps)

        rec = GrindAdjustmentRecommendation(
            current_grind_setting=shot.grinder_setting,
            suggested_grind_setting=suggested,
            adjustment_direction=verdict.direction,
            adjustment_steps=steps,
            extraction_time_deviation=deviation,
            taste_issue=taste,
            confidence=confidence,
            explanation=verdict.reason,
            notice=notice,
        )
        if trace is not None:
            trace.set_outputs(suggested=suggested, direction=verdict.direction.value,
                              steps=steps, confidence=confidence.value,
                              notice=notice.value if notice else None)
        log.debug(f"[grind] bean={shot.bean_id} {shot.grinder_setting} -> {suggested} "
                  f"({verdict.direction.value}, {steps} steps, {confidence.value})")
        return rec


__all__ = ["GrindAdjustmentCalculator"]
