"""
Leitner review scheduler.

Cards move between five boxes. A correct answer promotes a card one box (max 5),
a wrong answer sends it straight back to box 1. The box alone decides how long
until the card is due again:

  box:   1  2  3   4   5
  days:  1  2  5  10  30

Every function takes an optional `now` so callers (and tests) control the clock.
Nothing here touches storage; callers persist the returned cards.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from app.errors import InvalidBoxError
from app.models.flashcard import DeckStats, Flashcard


REVIEW_INTERVAL_DAYS = (1, 2, 5, 10, 30)
MIN_BOX = 1
MAX_BOX = len(REVIEW_INTERVAL_DAYS)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_box(box: object) -> int:
    # bool is an int subclass; True must not pass as box 1
    if isinstance(box, bool) or not isinstance(box, int) or not MIN_BOX <= box <= MAX_BOX:
        raise InvalidBoxError(box)
    return box


def compute_next_review(box: int, now: datetime | None = None) -> datetime:
    """Return the due time for a card that has just landed in `box`."""
    box = _check_box(box)
    now = now or utc_now()
    return now + timedelta(days=REVIEW_INTERVAL_DAYS[box - 1])


def new_card_schedule(now: datetime | None = None) -> tuple[int, datetime]:
    """Initial (box, next_review) for a freshly saved card."""
    return MIN_BOX, compute_next_review(MIN_BOX, now)


def apply_review(card: Flashcard, correct: bool, now: datetime | None = None) -> Flashcard:
    """
    Apply one review outcome and return the card's new state.

    The input card is left untouched. An out-of-range box raises InvalidBoxError
    instead of being clamped.
    """
    _check_box(card.box)
    now = now or utc_now()

    if correct:
        new_box = min(card.box + 1, MAX_BOX)
        review_count = card.review_count + 1
    else:
        new_box = MIN_BOX
        review_count = card.review_count

    return card.model_copy(
        update={
            "box": new_box,
            "last_reviewed": now,
            "next_review": compute_next_review(new_box, now),
            "review_count": review_count,
        }
    )


def is_due(card: Flashcard, now: datetime | None = None) -> bool:
    return card.next_review <= (now or utc_now())


def due_cards(cards: Iterable[Flashcard], now: datetime | None = None) -> list[Flashcard]:
    """Cards due at `now`, most overdue first."""
    now = now or utc_now()
    due = [c for c in cards if is_due(c, now)]
    due.sort(key=lambda c: c.next_review)
    return due


def get_stats(cards: Iterable[Flashcard], now: datetime | None = None) -> DeckStats:
    now = now or utc_now()
    per_box = {box: 0 for box in range(MIN_BOX, MAX_BOX + 1)}
    total = 0
    due = 0
    for card in cards:
        per_box[_check_box(card.box)] += 1
        total += 1
        if is_due(card, now):
            due += 1
    return DeckStats(total=total, per_box=per_box, due_count=due)
