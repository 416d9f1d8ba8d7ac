import pytest

from dialin_backend.app.coaching.models import TastePrimary
from dialin_backend.app.coaching.policy import CoachingPolicy
from dialin_backend.app.coaching.quality import QualityTier, ShotQualityScorer, TrendDirection

scorer = ShotQualityScorer(CoachingPolicy())


def test_ideal_perfect_shot_scores_100(make_shot):
    s = make_shot(taste_primary=TastePrimary.PERFECT)
    b = scorer.breakdown(s)
    assert (b.time_points, b.ratio_points, b.taste_points) == (40.0, 30.0, 30)
    assert b.total == 100

def test_untasted_ideal_shot_uses_neutral_taste(make_shot):
    assert scorer.score(make_shot()) == 85

def test_sour_fast_shot_partial_time_credit(make_shot):
    # 5s under the window: 40 * (1 - 5/15) = 26.67
    s = make_shot(extraction_time_seconds=20, taste_primary=TastePrimary.SOUR)
    assert scorer.score(s) == 67

@pytest.mark.parametrize("t", [0, 5, 15, 28, 60, 120])
@pytest.mark.parametrize("out", [0.1, 20.0, 36.0, 90.0])
def test_score_is_bounded(make_shot, t, out):
    for taste in (None, TastePrimary.SOUR, TastePrimary.PERFECT, TastePrimary.BITTER):
        sc = scorer.score(make_shot(extraction_time_seconds=t, coffee_weight_out=out, taste_primary=taste))
        assert 0 <= sc <= 100

def test_score_does_not_increase_as_time_moves_away(make_shot):
    above = [scorer.score(make_shot(extraction_time_seconds=t)) for t in range(28, 61)]
    below = [scorer.score(make_shot(extraction_time_seconds=t)) for t in range(27, 4, -1)]
    assert all(a >= b for a, b in zip(above, above[1:]))
    assert all(a >= b for a, b in zip(below, below[1:]))

def test_score_does_not_increase_as_ratio_moves_away(make_shot):
    outs = [40.5, 45.0, 54.0, 60.0, 70.0, 90.0]   # ratio 2.25 upward
    scores = [scorer.score(make_shot(coffee_weight_out=o)) for o in outs]
    assert all(a >= b for a, b in zip(scores, scores[1:]))

def test_consistency_bonus_is_off_by_default(make_shot):
    history = [make_shot(minutes=i) for i in range(5)]
    assert scorer.breakdown(history[-1], history).consistency_bonus == 0

def test_consistency_bonus_when_enabled(make_shot):
    bonus_scorer = ShotQualityScorer(CoachingPolicy(consistency_bonus=10))
    history = [make_shot(minutes=i) for i in range(3)]
    b = bonus_scorer.breakdown(history[-1], history)
    assert b.consistency_bonus == 10
    assert b.total == 95
    # still capped
    tasted = make_shot(minutes=9, taste_primary=TastePrimary.PERFECT)
    assert bonus_scorer.score(tasted, history + [tasted]) == 100

def test_analyze_empty():
    a = scorer.analyze([])
    assert a.total_shots == 0
    assert a.trend is TrendDirection.STABLE

def test_analyze_detects_improvement(make_shot):
    # six bad shots then five good ones
    bad = [make_shot(minutes=i, extraction_time_seconds=10, taste_primary=TastePrimary.SOUR) for i in range(6)]
    good = [make_shot(minutes=10 + i, taste_primary=TastePrimary.PERFECT) for i in range(5)]
    a = scorer.analyze(bad + good)
    assert a.total_shots == 11
    assert a.recent_average == 100
    assert a.trend is TrendDirection.IMPROVING
    assert a.quality_tier is QualityTier.EXCELLENT
    assert a.excellent_count == 5
    assert a.improvement_rate > 0
