from datetime import datetime, timedelta, timezone

import pytest

from dialin_backend.app.coaching.models import TastePrimary, TasteSecondary
from dialin_backend.app.services.data_stores import (
    DuplicateShotError,
    GrinderScaleStore,
    ScaleValidationError,
    ShotStore,
)


def test_shots_round_trip_and_order(session, make_shot):
    store = ShotStore(session)
    late = store.add_shot(make_shot(minutes=10, grinder_setting="4.5", taste_primary=TastePrimary.SOUR))
    early = store.add_shot(make_shot(minutes=0))
    store.add_shot(make_shot(bean_id="bean-b"))

    shots = store.get_shots_for_bean("bean-a")
    assert [s.id for s in shots] == [early.id, late.id]
    assert shots[1].taste_primary is TastePrimary.SOUR
    assert store.latest_shot("bean-a").id == late.id
    assert store.latest_shot("bean-x") is None
    assert store.list_bean_ids() == ["bean-a", "bean-b"]

def test_duplicate_shot_id_rejected(session, make_shot):
    store = ShotStore(session)
    shot = store.add_shot(make_shot())
    with pytest.raises(DuplicateShotError):
        store.add_shot(shot)

def test_unknown_shot_is_key_error(session):
    with pytest.raises(KeyError):
        ShotStore(session).get_shot("missing")

def test_taste_update_drops_orphan_secondary(session, make_shot):
    store = ShotStore(session)
    shot = store.add_shot(make_shot())
    tagged = store.update_taste(shot.id, TastePrimary.BITTER, TasteSecondary.STRONG)
    assert (tagged.taste_primary, tagged.taste_secondary) == (TastePrimary.BITTER, TasteSecondary.STRONG)
    cleared = store.update_taste(shot.id, None, TasteSecondary.WEAK)
    assert cleared.taste_primary is None and cleared.taste_secondary is None
    assert cleared.timestamp == shot.timestamp

def test_no_scale_until_configured(session):
    assert GrinderScaleStore(session).get_current_grinder_scale() is None

def test_invalid_scale_lists_every_error(session):
    with pytest.raises(ScaleValidationError) as exc:
        GrinderScaleStore(session).create_scale(5, 6, 5.0)
    assert "Scale range must have at least 3 steps (current range: 1)" in exc.value.errors
    assert "Step size cannot be larger than the scale range" in exc.value.errors
    assert GrinderScaleStore(session).list_scales() == []

def test_single_current_scale(session):
    store = GrinderScaleStore(session)
    first = store.create_scale(1, 10, 0.5)
    second = store.create_scale(30, 80, 1.0)
    assert store.get_current_grinder_scale().id == second.id
    assert len(store.list_scales()) == 2

    store.activate(first.id)
    current = store.get_current_grinder_scale()
    assert (current.id, current.scale_min, current.scale_max) == (first.id, 1, 10)

def test_recreating_a_scale_reuses_it(session):
    store = GrinderScaleStore(session)
    a = store.create_scale(1, 10, 0.5)
    store.create_scale(30, 80, 1.0)
    again = store.create_scale(1, 10, 0.5)
    assert again.id == a.id
    assert store.get_current_grinder_scale().id == a.id
    assert len(store.list_scales()) == 2

def test_activate_unknown_scale(session):
    with pytest.raises(KeyError):
        GrinderScaleStore(session).activate("nope")

def test_stored_datetimes_come_back_as_aware_utc(session, make_shot):
    shots = ShotStore(session)
    local = datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    saved = shots.add_shot(make_shot(timestamp=local))
    loaded = shots.get_shot(saved.id)
    assert loaded.timestamp == datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
    assert loaded.timestamp.tzinfo is timezone.utc

    scales = GrinderScaleStore(session)
    scale = scales.create_scale(1, 10, 0.5)
    assert scales.get_scale(scale.id).created_at.tzinfo is timezone.utc
