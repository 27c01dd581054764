# feedback_service/main.py
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.database import Base, make_session_factory

from .middleware import auth_middleware
from .routes import build_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("feedback-service")


def _parse_origins(raw: str) -> list[str]:
    raw = (raw or "").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(session_factory=None) -> FastAPI:
    SessionLocal = session_factory or make_session_factory()
    Base.metadata.create_all(bind=SessionLocal.kw["bind"])

    app = FastAPI(title="Feedback Service", version="1.0.0")

    # registered before CORS so auth errors still carry CORS headers
    app.middleware("http")(auth_middleware)

    origins = _parse_origins(os.getenv("CORS_ORIGINS", "*"))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject "*" with credentials
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(build_router(SessionLocal))

    @app.get("/health", operation_id="health_check", tags=["Health"])
    async def health_check():
        return {"status": "ok"}

    logger.info("Feedback service ready (CORS origins: %s)", ", ".join(origins))
    return app
