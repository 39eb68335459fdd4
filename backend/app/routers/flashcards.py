"""
Flashcard & Leitner review router.

Endpoints:
  POST   /flashcards                 - save a card (200 with the stored card if the front text exists)
  POST   /flashcards/import          - save a vocabulary list under one category
  GET    /flashcards                 - list cards (optionally by category)
  GET    /flashcards/due             - cards due for review now
  GET    /flashcards/stats           - total, per-box counts, due count
  GET    /flashcards/categories      - distinct categories
  GET    /flashcards/lookup?front=   - is this text already saved
  DELETE /flashcards?front=          - delete by front text
  GET    /flashcards/{id}            - single card
  DELETE /flashcards/{id}            - delete card
  POST   /flashcards/{id}/review     - record a correct/incorrect review
"""
from __future__ import annotations

from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.db.sqlite import (
    delete_flashcard,
    delete_flashcards_by_front,
    find_flashcard_by_front,
    get_db,
    get_flashcard,
    import_flashcards,
    list_categories,
    load_flashcards,
    save_flashcard,
)
from app.dependencies import get_now
from app.models.flashcard import (
    DeckStats,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    ImportRequest,
    ImportResult,
    ReviewRequest,
)
from app.services.review_service import review_card
from app.services.scheduler import due_cards, get_stats

router = APIRouter()


@router.post("/", response_model=Flashcard, status_code=201)
async def create_card(
    body: FlashcardCreate,
    response: Response,
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> Flashcard:
    card, created = await save_flashcard(db, body, now)
    if not created:
        response.status_code = 200
    return card


@router.post("/import", response_model=ImportResult)
async def import_cards(
    body: ImportRequest,
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ImportResult:
    return await import_flashcards(db, body.items, body.category, now)


@router.get("/", response_model=FlashcardList)
async def list_cards(
    category: str | None = Query(default=None),
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> FlashcardList:
    items = await load_flashcards(db, category=category, now=now)
    return FlashcardList(items=items, total=len(items))


@router.get("/due", response_model=FlashcardList)
async def get_due(
    category: str | None = Query(default=None),
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> FlashcardList:
    """Cards due for review, most overdue first."""
    items = due_cards(await load_flashcards(db, category=category, now=now), now)
    return FlashcardList(items=items, total=len(items))


@router.get("/stats", response_model=DeckStats)
async def deck_stats(
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> DeckStats:
    return get_stats(await load_flashcards(db, now=now), now)


@router.get("/categories", response_model=list[str])
async def categories(db: aiosqlite.Connection = Depends(get_db)) -> list[str]:
    return await list_categories(db)


@router.get("/lookup")
async def lookup_card(
    front: str = Query(min_length=1),
    db: aiosqlite.Connection = Depends(get_db),
) -> dict:
    card = await find_flashcard_by_front(db, front)
    return {"saved": card is not None, "id": card.id if card else None}


@router.delete("/", status_code=204)
async def remove_cards_by_front(
    front: str = Query(min_length=1),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcards_by_front(db, front)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> Flashcard:
    card = await get_flashcard(db, card_id, now)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcard(db, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")


@router.post("/{card_id}/review", response_model=Flashcard)
async def review(
    card_id: str,
    body: ReviewRequest,
    db: aiosqlite.Connection = Depends(get_db),
    now: datetime = Depends(get_now),
) -> Flashcard:
    """Move the card between Leitner boxes and reschedule it."""
    updated = await review_card(db, card_id, body.correct, now)
    if updated is None:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return updated
