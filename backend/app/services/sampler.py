"""
Quiz deck sampling and multiple-choice question building.

Selection is weighted toward weak cards:
  box 1-2  -> ceil(60%) of the quiz
  box 3    -> ceil(30%)
  box 4-5  -> whatever is left
Strata that run dry are backfilled at random from the rest of the deck, so a
quiz always has min(requested, deck size) distinct cards.

Randomness comes from an optional random.Random so sessions can be reproduced.
"""
from __future__ import annotations

import math
import random
from collections.abc import Sequence

from app.errors import InsufficientDeckError
from app.models.flashcard import Flashcard
from app.models.quiz import QuizQuestion
from app.services.cards import unique_by_id

LOW_SHARE = 0.6
MID_SHARE = 0.3
DISTRACTORS = 3
MIN_QUIZ_DECK = DISTRACTORS + 1


def _stratify(cards: Sequence[Flashcard]) -> tuple[list[Flashcard], list[Flashcard], list[Flashcard]]:
    low = [c for c in cards if c.box <= 2]
    mid = [c for c in cards if c.box == 3]
    high = [c for c in cards if c.box >= 4]
    return low, mid, high


def _allocate(target: int, low: int, mid: int, high: int) -> tuple[int, int, int]:
    """
    Per-stratum counts for a quiz of `target` cards.

    Both ceilings can add up to more than `target` (e.g. target 4 -> 3 + 2), so
    each stratum draws from what the previous ones left; high gets the rest.
    """
    n_low = min(math.ceil(target * LOW_SHARE), low, target)
    n_mid = min(math.ceil(target * MID_SHARE), mid, target - n_low)
    n_high = min(target - n_low - n_mid, high)
    return n_low, n_mid, n_high


def select_quiz_deck(
    all_cards: Sequence[Flashcard],
    target_count: int,
    rng: random.Random | None = None,
) -> list[Flashcard]:
    """Pick min(target_count, len(all_cards)) distinct cards, weak boxes first, shuffled."""
    if target_count < 0:
        raise ValueError(f"target_count must be >= 0, got {target_count}")
    rng = rng or random.Random()

    cards = unique_by_id(all_cards)
    target = min(target_count, len(cards))
    low, mid, high = _stratify(cards)
    n_low, n_mid, n_high = _allocate(target, len(low), len(mid), len(high))

    selected = rng.sample(low, n_low) + rng.sample(mid, n_mid) + rng.sample(high, n_high)

    if len(selected) < target:
        chosen = {c.id for c in selected}
        remaining = [c for c in cards if c.id not in chosen]
        selected += rng.sample(remaining, target - len(selected))

    rng.shuffle(selected)
    return selected


def build_question(
    card: Flashcard,
    pool: Sequence[Flashcard],
    rng: random.Random | None = None,
) -> QuizQuestion:
    """
    Turn a card into a multiple-choice question.

    Distractors are other cards' answers. Texts equal to the correct answer are
    skipped so it never shows up twice. With a pool of fewer than four distinct
    answers the question simply has fewer options.
    """
    rng = rng or random.Random()

    candidates: list[str] = []
    for other in pool:
        if other.id == card.id or other.back == card.back or other.back in candidates:
            continue
        candidates.append(other.back)

    distractors = rng.sample(candidates, min(DISTRACTORS, len(candidates)))
    options = [card.back, *distractors]
    rng.shuffle(options)

    source = card.source
    return QuizQuestion(
        card_id=card.id,
        prompt=card.front,
        correct_answer=card.back,
        options=options,
        location=source.location if source else None,
        image_url=source.image_url if source else None,
    )


def build_quiz(
    all_cards: Sequence[Flashcard],
    num_questions: int,
    rng: random.Random | None = None,
    min_deck: int = MIN_QUIZ_DECK,
) -> list[QuizQuestion]:
    """Sample a deck and build one question per card. Needs at least `min_deck` cards."""
    if len(all_cards) < min_deck:
        raise InsufficientDeckError(available=len(all_cards), required=min_deck)
    rng = rng or random.Random()
    deck = select_quiz_deck(all_cards, num_questions, rng)
    return [build_question(card, all_cards, rng) for card in deck]


def hide_wrong_options(
    question: QuizQuestion,
    count: int = 2,
    rng: random.Random | None = None,
) -> list[str]:
    """Pick `count` wrong options to hide (the 50:50 joker)."""
    rng = rng or random.Random()
    wrong = [o for o in question.options if o != question.correct_answer]
    return rng.sample(wrong, min(count, len(wrong)))
