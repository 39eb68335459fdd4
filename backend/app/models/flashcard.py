from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SourceContext(BaseModel):
    """Where a card came from. Informational only; never used for scheduling."""

    entry_id: str | None = None
    image_url: str | None = None
    location: str | None = None


class Flashcard(BaseModel):
    id: str
    front: str                          # source-language term (Spanish)
    back: str                           # translation
    box: int                            # Leitner box, 1 (new/weak) .. 5 (known)
    last_reviewed: datetime | None      # None until the first review
    next_review: datetime
    review_count: int                   # correct reviews only
    category: str | None = None
    source: SourceContext | None = None
    created_at: datetime


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    category: str | None = None
    source: SourceContext | None = None

    @field_validator("front", "back")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int


class ReviewRequest(BaseModel):
    correct: bool


class DeckStats(BaseModel):
    total: int
    per_box: dict[int, int]  # always keys 1..5
    due_count: int


class VocabItem(BaseModel):
    front: str
    back: str


class ImportRequest(BaseModel):
    category: str
    items: list[VocabItem]


class ImportResult(BaseModel):
    created: int
    duplicates: int
    skipped: int = 0  # blank front or back
