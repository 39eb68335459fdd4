"""Shared test fixtures."""

import random
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app import create_app
from app.config import Settings
from app.models.flashcard import Flashcard, SourceContext

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_card():
    """Factory for in-memory cards. Ids and texts default to card-<n>."""
    counter = iter(range(1, 10_000))

    def _make(box=1, **overrides):
        n = next(counter)
        fields = {
            "id": f"card-{n}",
            "front": f"palabra {n}",
            "back": f"word {n}",
            "box": box,
            "last_reviewed": None,
            "next_review": NOW + timedelta(days=1),
            "review_count": 0,
            "category": None,
            "source": None,
            "created_at": NOW,
        }
        fields.update(overrides)
        return Flashcard(**fields)

    return _make


@pytest.fixture
def deck(make_card):
    """Ten cards: six in boxes 1-2, three in box 3, one in box 5."""
    boxes = [1, 1, 1, 2, 2, 2, 3, 3, 3, 5]
    return [make_card(box=b) for b in boxes]


@pytest.fixture
def clock():
    """Mutable clock: tests advance it with clock.now = ..."""

    class _Clock:
        def __init__(self):
            self.now = NOW

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def app(tmp_path, clock, rng):
    settings = Settings(data_dir=tmp_path / "data")
    return create_app(settings=settings, clock=clock, rng=rng)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def source():
    return SourceContext(entry_id="entry-7", image_url="https://img/7.jpg", location="Sevilla")
