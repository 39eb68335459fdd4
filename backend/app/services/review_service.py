"""
Review write-back: runs the Leitner transition for a card and persists it.

Used by the single-card review endpoint and when a quiz finishes. Each card is
loaded, transitioned and written on its own; there is no multi-card transaction.
"""
from __future__ import annotations

import logging
from datetime import datetime

import aiosqlite

from app.db.sqlite import get_flashcard, update_flashcard
from app.errors import InvalidBoxError, OutcomesNotSavedError
from app.models.flashcard import Flashcard
from app.services.quiz_session import QuizSession
from app.services.scheduler import apply_review

logger = logging.getLogger(__name__)


async def review_card(
    db: aiosqlite.Connection,
    card_id: str,
    correct: bool,
    now: datetime,
) -> Flashcard | None:
    """Apply one review outcome to a stored card. None if the card does not exist."""
    card = await get_flashcard(db, card_id, now)
    if card is None:
        return None

    try:
        updated = apply_review(card, correct, now)
    except InvalidBoxError:
        logger.error("Flashcard %s has corrupt box %r", card_id, card.box)
        raise

    if not await update_flashcard(db, updated):
        # deleted between read and write
        return None
    logger.debug(
        "Reviewed %s (%s): box %d -> %d, next %s",
        card_id,
        "correct" if correct else "wrong",
        card.box,
        updated.box,
        updated.next_review.isoformat(),
    )
    return updated


async def apply_quiz_outcomes(
    db: aiosqlite.Connection,
    session: QuizSession,
    now: datetime,
) -> list[Flashcard]:
    """
    Persist the outcomes of a finished quiz that are not saved yet.

    A card that cannot be written is logged and left pending while the rest of
    the quiz is saved; OutcomesNotSavedError is raised at the end so the caller
    can retry. Outcomes already saved are never applied again.
    """
    reviewed: list[Flashcard] = []
    failed: list[str] = []
    for index, outcome in session.pending_outcomes():
        try:
            updated = await review_card(db, outcome.card_id, outcome.correct, now)
        except (InvalidBoxError, aiosqlite.Error) as e:
            logger.warning(
                "Quiz %s: review of card %s not saved: %s", session.id, outcome.card_id, e
            )
            failed.append(outcome.card_id)
            continue
        session.mark_saved(index)
        if updated is None:
            logger.warning(
                "Quiz %s: card %s was deleted before its review could be saved",
                session.id,
                outcome.card_id,
            )
            continue
        reviewed.append(updated)
    logger.info("Quiz %s: updated %d cards", session.id, len(reviewed))
    if failed:
        raise OutcomesNotSavedError(session.id, failed, saved=len(reviewed))
    return reviewed
