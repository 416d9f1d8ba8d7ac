# main.py — backend entrypoint
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dialin_backend.app.config import APP_ENV, validate_manifest
from dialin_backend.app.db.session import init_db
from dialin_backend.app.routers import beans, coach, grinder, shots
from dialin_backend.app.utils.logs import get_logger

log = get_logger("main")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    log.info(f"[main] dial-in API up (env={APP_ENV})")
    yield


app = FastAPI(title="Dial-In Coach API", lifespan=lifespan)

# --- CORS for Vite dev -------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers under /api ------------------------------------------------------
for _router in (shots.router, grinder.router, beans.router, coach.router):
    app.include_router(_router, prefix="/api")


@app.get("/health")
async def health():
    return {"ok": True, "manifest": validate_manifest()}
