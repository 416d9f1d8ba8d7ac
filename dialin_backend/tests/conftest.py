from __future__ import annotations
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Point the data dir somewhere disposable before the app modules read it
os.environ.setdefault("DIALIN_DATA_DIR", tempfile.mkdtemp(prefix="dialin_test_"))

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from dialin_backend.app.coaching.models import Shot
from dialin_backend.app.db.session import get_session, init_db, make_engine
from dialin_backend.app.main import app


# --- In-memory database per test --------------------------------------------
@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()

@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s

# --- API client bound to the same in-memory database -------------------------
@pytest.fixture
def client(engine):
    def _override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_session, None)

# --- Shot factory --------------------------------------------------------------
@pytest.fixture
def make_shot():
    """
    Builds shots with sensible defaults (18g -> 36g, 28s, setting "5.0").
    `minutes` offsets the timestamp from a fixed base so ordering is explicit.
    """
    base = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)

    def _make(minutes: int = 0, **overrides) -> Shot:
        fields = dict(
            bean_id="bean-a",
            coffee_weight_in=18.0,
            coffee_weight_out=36.0,
            extraction_time_seconds=28,
            grinder_setting="5.0",
            timestamp=base + timedelta(minutes=minutes),
        )
        fields.update(overrides)
        return Shot(**fields)

    return _make
