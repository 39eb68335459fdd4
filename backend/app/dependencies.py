"""Request-scoped access to the per-app clock, RNG, settings and quiz sessions."""
import random
from datetime import datetime

from fastapi import Request

from app.config import Settings
from app.services.quiz_session import QuizSessionStore


def get_now(request: Request) -> datetime:
    return request.app.state.clock()


def get_rng(request: Request) -> random.Random:
    return request.app.state.rng


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_quiz_store(request: Request) -> QuizSessionStore:
    return request.app.state.quiz_sessions
