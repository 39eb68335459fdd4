import random
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.db import init_sqlite
from app.services.quiz_session import QuizSessionStore
from app.services.scheduler import utc_now


@asynccontextmanager
async def lifespan(app: FastAPI):
    s: Settings = app.state.settings
    app.state.db_path = await init_sqlite(s.data_dir, s.sqlite_filename)
    yield


def create_app(
    settings: Settings | None = None,
    clock: Callable[[], datetime] | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    application = FastAPI(
        title="Viajero Backend", version="0.1.0", lifespan=lifespan
    )
    application.state.settings = s = settings or default_settings
    application.state.clock = clock or utc_now
    application.state.rng = rng or random.Random()
    application.state.quiz_sessions = QuizSessionStore(
        clock=application.state.clock,
        max_idle=timedelta(minutes=s.quiz_session_idle_minutes),
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from app.routers import flashcards, health, quiz

    application.include_router(health.router)
    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )
    application.include_router(
        quiz.router, prefix="/quiz", tags=["quiz"]
    )

    return application


app = create_app()
