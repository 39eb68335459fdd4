import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite
from fastapi import Request

from app.config import settings
from app.models.flashcard import (
    Flashcard,
    FlashcardCreate,
    ImportResult,
    SourceContext,
    VocabItem,
)
from app.services.cards import identity_key
from app.services.scheduler import MIN_BOX, compute_next_review, new_card_schedule, utc_now

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS flashcards (
    id            TEXT PRIMARY KEY,
    front         TEXT NOT NULL,
    back          TEXT NOT NULL,
    box           INTEGER NOT NULL DEFAULT 1,
    last_reviewed TEXT,
    next_review   TEXT,
    review_count  INTEGER NOT NULL DEFAULT 0,
    category      TEXT,
    entry_id      TEXT,
    image_url     TEXT,
    location      TEXT,
    created_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_flashcards_front ON flashcards(front);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(next_review);
CREATE INDEX IF NOT EXISTS idx_flashcards_category ON flashcards(category);
"""


async def init_sqlite(data_dir: Path, filename: str = settings.sqlite_filename) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / filename
    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    return db_path


async def connect(db_path: Path) -> AsyncIterator[aiosqlite.Connection]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        yield db


async def get_db(request: Request) -> AsyncIterator[aiosqlite.Connection]:
    db_path = getattr(request.app.state, "db_path", None)
    assert db_path is not None, "SQLite not initialized"
    async for db in connect(db_path):
        yield db


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # rows written by sqlite's datetime('now') carry no offset
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_flashcard(row: aiosqlite.Row, now: datetime | None = None) -> Flashcard:
    d = dict(row)
    source = None
    if d["entry_id"] or d["image_url"] or d["location"]:
        source = SourceContext(
            entry_id=d["entry_id"], image_url=d["image_url"], location=d["location"]
        )
    # Older rows may lack scheduling state; read them as new box-1 cards.
    # Out-of-range boxes are left as-is for the scheduler to reject.
    box = d["box"] or MIN_BOX
    next_review = _parse_ts(d["next_review"]) or compute_next_review(MIN_BOX, now)
    return Flashcard(
        id=d["id"],
        front=d["front"],
        back=d["back"],
        box=box,
        last_reviewed=_parse_ts(d["last_reviewed"]),
        next_review=next_review,
        review_count=d["review_count"] or 0,
        category=d["category"],
        source=source,
        created_at=_parse_ts(d["created_at"]),
    )


# --- Flashcard repository ---


async def load_flashcards(
    db: aiosqlite.Connection,
    category: str | None = None,
    now: datetime | None = None,
) -> list[Flashcard]:
    """
    All cards, newest first, optionally restricted to one category.

    `now` anchors the default due time of rows that were stored without one.
    """
    if category is not None:
        cursor = await db.execute(
            "SELECT * FROM flashcards WHERE category = ? ORDER BY created_at DESC",
            (category,),
        )
    else:
        cursor = await db.execute("SELECT * FROM flashcards ORDER BY created_at DESC")
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r, now) for r in rows]


async def get_flashcard(
    db: aiosqlite.Connection, card_id: str, now: datetime | None = None
) -> Flashcard | None:
    cursor = await db.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,))
    row = await cursor.fetchone()
    return _row_to_flashcard(row, now) if row else None


async def find_flashcard_by_front(
    db: aiosqlite.Connection, front: str, now: datetime | None = None
) -> Flashcard | None:
    cursor = await db.execute(
        "SELECT * FROM flashcards WHERE front = ? ORDER BY created_at ASC LIMIT 1",
        (identity_key(front),),
    )
    row = await cursor.fetchone()
    return _row_to_flashcard(row, now) if row else None


async def save_flashcard(
    db: aiosqlite.Connection,
    card: FlashcardCreate,
    now: datetime | None = None,
) -> tuple[Flashcard, bool]:
    """
    Save a new card unless one with the same front text exists.

    Returns (card, created). On a duplicate the stored card is returned untouched.
    """
    # TODO: two concurrent saves of the same new front can both pass this check;
    # a UNIQUE index on front would close it but rejects existing duplicate rows.
    now = now or utc_now()
    existing = await find_flashcard_by_front(db, card.front, now)
    if existing is not None:
        logger.debug("Flashcard %r already saved as %s", card.front, existing.id)
        return existing, False

    box, next_review = new_card_schedule(now)
    source = card.source or SourceContext()
    card_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO flashcards
           (id, front, back, box, last_reviewed, next_review, review_count,
            category, entry_id, image_url, location, created_at)
           VALUES (?, ?, ?, ?, NULL, ?, 0, ?, ?, ?, ?, ?)""",
        (
            card_id,
            identity_key(card.front),
            card.back,
            box,
            _ts(next_review),
            card.category,
            source.entry_id,
            source.image_url,
            source.location,
            _ts(now),
        ),
    )
    await db.commit()
    return await get_flashcard(db, card_id, now), True  # type: ignore[return-value]


async def update_flashcard(db: aiosqlite.Connection, card: Flashcard) -> bool:
    """Write back a card's scheduling state. False if the card no longer exists."""
    cursor = await db.execute(
        """UPDATE flashcards
           SET box = ?, last_reviewed = ?, next_review = ?, review_count = ?
           WHERE id = ?""",
        (
            card.box,
            _ts(card.last_reviewed),
            _ts(card.next_review),
            card.review_count,
            card.id,
        ),
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


async def delete_flashcard(db: aiosqlite.Connection, card_id: str) -> bool:
    cursor = await db.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))
    await db.commit()
    return (cursor.rowcount or 0) > 0


async def delete_flashcards_by_front(db: aiosqlite.Connection, front: str) -> int:
    cursor = await db.execute(
        "DELETE FROM flashcards WHERE front = ?", (identity_key(front),)
    )
    await db.commit()
    return cursor.rowcount or 0


async def count_flashcards(db: aiosqlite.Connection) -> int:
    cursor = await db.execute("SELECT COUNT(*) FROM flashcards")
    row = await cursor.fetchone()
    return row[0] if row else 0


async def list_categories(db: aiosqlite.Connection) -> list[str]:
    cursor = await db.execute(
        "SELECT DISTINCT category FROM flashcards "
        "WHERE category IS NOT NULL AND category != '' ORDER BY category ASC"
    )
    rows = await cursor.fetchall()
    return [row[0] for row in rows]


async def import_flashcards(
    db: aiosqlite.Connection,
    items: list[VocabItem],
    category: str,
    now: datetime | None = None,
) -> ImportResult:
    """Save a vocabulary list as cards of one category, skipping known fronts."""
    created = duplicates = skipped = 0
    for item in items:
        front, back = item.front.strip(), item.back.strip()
        if not front or not back:
            skipped += 1
            continue
        _, was_created = await save_flashcard(
            db, FlashcardCreate(front=front, back=back, category=category), now
        )
        if was_created:
            created += 1
        else:
            duplicates += 1
    logger.info(
        "Imported category %r: %d new, %d duplicates, %d skipped",
        category,
        created,
        duplicates,
        skipped,
    )
    return ImportResult(created=created, duplicates=duplicates, skipped=skipped)
