from dialin_backend.app.coaching.bean_status import BeanStatusClassifier, status_to_color_token
from dialin_backend.app.coaching.models import BeanStatus, TastePrimary


class FixedScorer:
    """Returns a preset score per shot id."""
    def __init__(self, scores):
        self.scores = scores

    def score(self, shot, bean_history=()):
        return self.scores[shot.id]


def _shots_with_scores(make_shot, scores):
    shots = [make_shot(minutes=i, id=f"s{i}") for i in range(len(scores))]
    return shots, FixedScorer({s.id: sc for s, sc in zip(shots, scores)})


def test_no_shots_is_fresh_start():
    assert BeanStatusClassifier().classify([]) is BeanStatus.FRESH_START

def test_one_or_two_shots_are_experimenting(make_shot):
    clf = BeanStatusClassifier()
    perfect = [make_shot(minutes=i, taste_primary=TastePrimary.PERFECT) for i in range(2)]
    assert clf.classify(perfect[:1]) is BeanStatus.EXPERIMENTING
    assert clf.classify(perfect) is BeanStatus.EXPERIMENTING

def test_recent_scores_82_75_68_is_dialed_in(make_shot):
    shots, scorer = _shots_with_scores(make_shot, [82, 75, 68])
    assert BeanStatusClassifier(scorer).classify(shots) is BeanStatus.DIALED_IN

def test_average_80_with_one_weak_shot_is_not_dialed_in(make_shot):
    shots, scorer = _shots_with_scores(make_shot, [100, 90, 50])
    assert BeanStatusClassifier(scorer).classify(shots) is BeanStatus.EXPERIMENTING

def test_low_average_needs_work(make_shot):
    shots, scorer = _shots_with_scores(make_shot, [30, 25, 35])
    assert BeanStatusClassifier(scorer).classify(shots) is BeanStatus.NEEDS_WORK

def test_only_last_three_shots_count(make_shot):
    # old terrible shots are outside the window
    shots, scorer = _shots_with_scores(make_shot, [5, 5, 5, 80, 80, 80])
    assert BeanStatusClassifier(scorer).classify(shots) is BeanStatus.DIALED_IN

def test_window_uses_timestamps_not_list_order(make_shot):
    shots, scorer = _shots_with_scores(make_shot, [80, 80, 80, 10])
    # newest shot (s3, score 10) is first in the list
    reordered = [shots[3]] + shots[:3]
    clf = BeanStatusClassifier(scorer)
    assert clf.recent_scores(reordered) == [80, 80, 10]
    assert clf.classify(reordered) is BeanStatus.EXPERIMENTING

def test_equal_timestamps_break_ties_by_id(make_shot):
    # same minute for every shot; "a" sorts first so it falls out of the window
    shots = [make_shot(id=i) for i in ("a", "b", "c", "d")]
    scorer = FixedScorer({"a": 10, "b": 80, "c": 75, "d": 70})
    clf = BeanStatusClassifier(scorer)
    for ordering in (shots, shots[::-1], [shots[2], shots[0], shots[3], shots[1]]):
        assert clf.recent_scores(ordering) == [80, 75, 70]
        assert clf.classify(ordering) is BeanStatus.DIALED_IN

def test_scorer_override_per_call(make_shot):
    shots, scorer = _shots_with_scores(make_shot, [30, 30, 30])
    clf = BeanStatusClassifier()
    assert clf.classify(shots, scorer=scorer) is BeanStatus.NEEDS_WORK

def test_real_scorer_on_clean_shots(make_shot):
    shots = [make_shot(minutes=i, taste_primary=TastePrimary.PERFECT) for i in range(3)]
    assert BeanStatusClassifier().classify(shots) is BeanStatus.DIALED_IN

def test_color_tokens():
    assert status_to_color_token(BeanStatus.DIALED_IN) == "extraction_optimal"
    assert status_to_color_token(BeanStatus.EXPERIMENTING) == "extraction_too_fast"
    assert status_to_color_token(BeanStatus.NEEDS_WORK) == "extraction_too_slow"
    assert status_to_color_token(BeanStatus.FRESH_START) == "extraction_idle"
