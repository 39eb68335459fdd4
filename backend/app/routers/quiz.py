"""
Multiple-choice quiz router.

Endpoints:
  POST   /quiz                         - start a session from the saved deck
  GET    /quiz/{session_id}            - current state
  POST   /quiz/{session_id}/answer     - answer the current question
  POST   /quiz/{session_id}/fifty-fifty    - hide two wrong options (once)
  POST   /quiz/{session_id}/double-points  - double the next correct answer (once)
  POST   /quiz/{session_id}/save       - retry saving reviews that failed to write
  DELETE /quiz/{session_id}            - abandon without saving anything

The answer that finishes a quiz also writes every outcome back to the Leitner boxes.
A fully saved quiz is dropped from the store; its final state is in that answer's result.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from app.config import Settings
from app.db.sqlite import get_db, load_flashcards
from app.dependencies import get_now, get_quiz_store, get_rng, get_settings
from app.errors import InsufficientDeckError, OutcomesNotSavedError, QuizStateError
from app.models.quiz import (
    AnswerRequest,
    AnswerResult,
    QuizStartRequest,
    QuizState,
    QuizStatus,
    SaveResult,
)
from app.services.quiz_session import QuizSession, QuizSessionStore
from app.services.review_service import apply_quiz_outcomes
from app.services.sampler import build_quiz

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_session(store: QuizSessionStore, session_id: str) -> QuizSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return session


@router.post("/", response_model=QuizState, status_code=201)
async def start_quiz(
    body: QuizStartRequest,
    db: aiosqlite.Connection = Depends(get_db),
    store: QuizSessionStore = Depends(get_quiz_store),
    rng: random.Random = Depends(get_rng),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> QuizState:
    num_questions = min(
        body.num_questions or settings.quiz_default_questions,
        settings.quiz_max_questions,
    )
    cards = await load_flashcards(db, category=body.category, now=now)
    try:
        questions = build_quiz(cards, num_questions, rng, min_deck=settings.quiz_min_deck)
    except InsufficientDeckError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    session = store.create(questions)
    logger.info("Quiz %s started with %d questions", session.id, len(questions))
    return session.state()


@router.get("/{session_id}", response_model=QuizState)
async def get_quiz(
    session_id: str,
    store: QuizSessionStore = Depends(get_quiz_store),
) -> QuizState:
    return _get_session(store, session_id).state()


async def _save_outcomes(
    db: aiosqlite.Connection,
    store: QuizSessionStore,
    session: QuizSession,
    now: datetime,
) -> tuple[int, list[str]]:
    """Write back a finished quiz. The session is dropped once every outcome is saved."""
    try:
        reviewed = len(await apply_quiz_outcomes(db, session, now))
        unsaved: list[str] = []
    except OutcomesNotSavedError as e:
        logger.error("%s; keeping the session for a retry", e)
        reviewed, unsaved = e.saved, e.card_ids
    if session.fully_saved:
        store.discard(session.id)
    return reviewed, unsaved


@router.post("/{session_id}/answer", response_model=AnswerResult)
async def answer_question(
    session_id: str,
    body: AnswerRequest,
    db: aiosqlite.Connection = Depends(get_db),
    store: QuizSessionStore = Depends(get_quiz_store),
    now: datetime = Depends(get_now),
) -> AnswerResult:
    session = _get_session(store, session_id)
    question = session.current_question
    try:
        outcome, points = session.answer(body.answer)
    except QuizStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    reviewed, unsaved = 0, []
    if session.status is QuizStatus.FINISHED:
        reviewed, unsaved = await _save_outcomes(db, store, session, now)

    return AnswerResult(
        correct=outcome.correct,
        correct_answer=question.correct_answer,  # type: ignore[union-attr]
        points=points,
        reviewed_cards=reviewed,
        unsaved_cards=unsaved,
        quiz=session.state(),
    )


@router.post("/{session_id}/save", response_model=SaveResult)
async def save_quiz(
    session_id: str,
    db: aiosqlite.Connection = Depends(get_db),
    store: QuizSessionStore = Depends(get_quiz_store),
    now: datetime = Depends(get_now),
) -> SaveResult:
    """Retry the write-back of a finished quiz whose reviews were not all saved."""
    session = _get_session(store, session_id)
    try:
        reviewed, unsaved = await _save_outcomes(db, store, session, now)
    except QuizStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return SaveResult(reviewed_cards=reviewed, unsaved_cards=unsaved, quiz=session.state())


@router.post("/{session_id}/fifty-fifty", response_model=QuizState)
async def fifty_fifty(
    session_id: str,
    store: QuizSessionStore = Depends(get_quiz_store),
    rng: random.Random = Depends(get_rng),
) -> QuizState:
    session = _get_session(store, session_id)
    try:
        session.use_fifty_fifty(rng)
    except QuizStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return session.state()


@router.post("/{session_id}/double-points", response_model=QuizState)
async def double_points(
    session_id: str,
    store: QuizSessionStore = Depends(get_quiz_store),
) -> QuizState:
    session = _get_session(store, session_id)
    try:
        session.activate_double_points()
    except QuizStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return session.state()


@router.delete("/{session_id}", status_code=204)
async def abandon_quiz(
    session_id: str,
    store: QuizSessionStore = Depends(get_quiz_store),
) -> None:
    if not store.discard(session_id):
        raise HTTPException(status_code=404, detail="Quiz not found")
