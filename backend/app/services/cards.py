"""Card identity helpers shared by the repository and the sampler."""
from __future__ import annotations

from collections.abc import Iterable

from app.models.flashcard import Flashcard


def identity_key(front: str) -> str:
    """Content key of a card. Two cards with the same key are the same card."""
    return front.strip()


def unique_by_id(cards: Iterable[Flashcard]) -> list[Flashcard]:
    """Drop repeated ids, keeping the first occurrence and the input order."""
    seen: set[str] = set()
    result: list[Flashcard] = []
    for card in cards:
        if card.id in seen:
            continue
        seen.add(card.id)
        result.append(card)
    return result
