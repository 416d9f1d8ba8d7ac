# dialin_backend/app/utils/logs.py
from __future__ import annotations

import logging

from dialin_backend.app.config import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def get_logger(name: str) -> logging.Logger:
    """
    Named logger under the "dialin" namespace. A stream handler is attached
    once to the namespace root so module loggers share it.
    """
    root = logging.getLogger("dialin")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    return logging.getLogger(f"dialin.{name}") if name != "dialin" else root
