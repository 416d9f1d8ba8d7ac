import pytest

from dialin_backend.app.coaching.policy import DEFAULT_POLICY, get_policy, load_policy


def test_bundled_rules_match_defaults():
    p = get_policy()
    assert p.optimal_window == (25, 30)
    assert p.seconds_per_step == 3
    assert p.recent_days == 7
    assert p.min_shots_for_status == 3

def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_policy(tmp_path / "absent.yaml") == DEFAULT_POLICY

def test_partial_file_overrides_only_what_it_sets(tmp_path):
    f = tmp_path / "policy.yaml"
    f.write_text("optimal_time_min: 24\ntaste_fit:\n  perfect: 25\n", encoding="utf-8")
    p = load_policy(f)
    assert p.optimal_window == (24, 30)
    assert p.taste_fit.perfect == 25
    assert p.taste_fit.neutral == 15

def test_bad_yaml_raises(tmp_path):
    f = tmp_path / "policy.yaml"
    f.write_text("optimal_time_min: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_policy(f)

def test_inverted_window_rejected(tmp_path):
    f = tmp_path / "policy.yaml"
    f.write_text("optimal_time_min: 35\noptimal_time_max: 30\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_policy(f)
