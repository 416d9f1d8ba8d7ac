# dialin_backend/app/utils/req_id.py
from __future__ import annotations
import os, time, uuid

def new_request_id(prefix: str = "req") -> str:
    # ms + pid alone collide when two traces start in the same millisecond
    return f"{prefix}-{int(time.time()*1000)}-{os.getpid()}-{uuid.uuid4().hex[:6]}"
