import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  registers tables on Base.metadata
from .database import Base, SessionLocal, engine
from .errors import OrbitError
from .routes import include_modular_routers

logger = logging.getLogger(__name__)

app = FastAPI(title="Orbit API")
include_modular_routers(app)

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrbitError)
async def handle_orbit_error(request: Request, exc: OrbitError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.reason)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "reason": exc.reason})


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            logger.warning("[DB] not ready, retrying in %.1fs", delay_seconds)
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def create_schema() -> None:
    Base.metadata.create_all(bind=engine)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    create_schema()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
