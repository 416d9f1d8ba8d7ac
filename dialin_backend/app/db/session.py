# dialin_backend/app/db/session.py

# Engine factory, table creation and the per-request session dependency
from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from dialin_backend.app.config import DB_URL  # absolute import (exported by app/config/__init__.py)
from dialin_backend.app.config.paths import ensure_data_dir_exists


def make_engine(url: str = DB_URL) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False)
    # SQLite needs check_same_thread=False for typical FastAPI usage
    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        return create_engine(url, echo=False, connect_args=connect_args, poolclass=StaticPool)
    ensure_data_dir_exists()
    return create_engine(url, echo=False, connect_args=connect_args)


# process-wide engine for the configured DB_URL
engine = make_engine()


def init_db(bind: Engine | None = None) -> None:
    # tables register on the metadata at import
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """FastAPI dependency: one Session per request."""
    with Session(engine) as s:
        yield s
