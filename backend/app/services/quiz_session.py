"""
Multiple-choice quiz sessions.

A session walks NOT_STARTED -> IN_PROGRESS -> FINISHED. Each answer records one
outcome and advances to the next question; the last answer finishes the quiz.
Once finished, each outcome is written back to its card at most once: the
session remembers which outcomes were saved, so a failed write-back can be
retried without touching the cards that already moved.

Sessions live in memory only. Dropping one persists nothing.
"""
from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.errors import QuizStateError
from app.models.quiz import (
    AnswerOutcome,
    QuizQuestion,
    QuizQuestionView,
    QuizState,
    QuizStatus,
)
from app.services.sampler import hide_wrong_options
from app.services.scheduler import utc_now

logger = logging.getLogger(__name__)

DOUBLE_POINTS_MULTIPLIER = 2
DEFAULT_MAX_IDLE = timedelta(hours=2)


@dataclass
class QuizSession:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    questions: list[QuizQuestion] = field(default_factory=list)
    status: QuizStatus = QuizStatus.NOT_STARTED
    current_index: int = 0
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    outcomes: list[AnswerOutcome] = field(default_factory=list)
    hidden_options: list[str] = field(default_factory=list)
    fifty_fifty_used: bool = False
    double_points_active: bool = False
    double_points_used: bool = False
    saved_outcomes: set[int] = field(default_factory=set)
    last_active: datetime | None = None

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.status is not QuizStatus.IN_PROGRESS:
            return None
        return self.questions[self.current_index]

    def _require(self, status: QuizStatus) -> None:
        if self.status is not status:
            raise QuizStateError(
                f"Quiz {self.id} is {self.status.value}, expected {status.value}"
            )

    def start(self, questions: list[QuizQuestion]) -> None:
        self._require(QuizStatus.NOT_STARTED)
        if not questions:
            raise QuizStateError("Cannot start a quiz without questions")
        self.questions = list(questions)
        self.status = QuizStatus.IN_PROGRESS

    def answer(self, option: str) -> tuple[AnswerOutcome, int]:
        """Record an answer for the current question. Returns the outcome and points earned."""
        self._require(QuizStatus.IN_PROGRESS)
        question = self.questions[self.current_index]
        correct = option == question.correct_answer

        points = 0
        if correct:
            points = 1
            if self.double_points_active:
                points *= DOUBLE_POINTS_MULTIPLIER
                self.double_points_active = False
                self.double_points_used = True
            self.streak += 1
            self.best_streak = max(self.best_streak, self.streak)
        else:
            self.streak = 0
        self.score += points

        outcome = AnswerOutcome(card_id=question.card_id, correct=correct)
        self.outcomes.append(outcome)
        self.current_index += 1
        self.hidden_options = []
        if self.current_index == len(self.questions):
            self.status = QuizStatus.FINISHED
            logger.info(
                "Quiz %s finished: %d/%d points", self.id, self.score, len(self.questions)
            )
        return outcome, points

    def use_fifty_fifty(self, rng: random.Random | None = None) -> list[str]:
        self._require(QuizStatus.IN_PROGRESS)
        if self.fifty_fifty_used:
            raise QuizStateError("50:50 joker already used in this quiz")
        self.hidden_options = hide_wrong_options(self.questions[self.current_index], rng=rng)
        self.fifty_fifty_used = True
        return self.hidden_options

    def activate_double_points(self) -> None:
        self._require(QuizStatus.IN_PROGRESS)
        if self.double_points_used or self.double_points_active:
            raise QuizStateError("Double points already used in this quiz")
        self.double_points_active = True

    def pending_outcomes(self) -> list[tuple[int, AnswerOutcome]]:
        """Outcomes of the finished quiz not yet saved, with their positions."""
        self._require(QuizStatus.FINISHED)
        pending = [
            (i, outcome)
            for i, outcome in enumerate(self.outcomes)
            if i not in self.saved_outcomes
        ]
        if not pending:
            raise QuizStateError(f"Outcomes of quiz {self.id} were already applied")
        return pending

    def mark_saved(self, index: int) -> None:
        self.saved_outcomes.add(index)

    @property
    def fully_saved(self) -> bool:
        return self.status is QuizStatus.FINISHED and len(self.saved_outcomes) == len(
            self.outcomes
        )

    def state(self) -> QuizState:
        question = self.current_question
        view = None
        if question is not None:
            view = QuizQuestionView(
                card_id=question.card_id,
                prompt=question.prompt,
                options=question.options,
                hidden_options=self.hidden_options,
                location=question.location,
                image_url=question.image_url,
            )
        return QuizState(
            id=self.id,
            status=self.status,
            current_index=self.current_index,
            total_questions=len(self.questions),
            score=self.score,
            streak=self.streak,
            best_streak=self.best_streak,
            current_question=view,
            fifty_fifty_used=self.fifty_fifty_used,
            double_points_active=self.double_points_active,
            double_points_used=self.double_points_used,
            outcomes=list(self.outcomes),
        )


class QuizSessionStore:
    """
    In-memory sessions keyed by id. One store per app, kept on app.state.

    Sessions untouched for longer than `max_idle` are dropped whenever a new
    quiz starts, so abandoned quizzes do not pile up.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        max_idle: timedelta = DEFAULT_MAX_IDLE,
    ) -> None:
        self._sessions: dict[str, QuizSession] = {}
        self._clock = clock
        self._max_idle = max_idle

    def create(self, questions: list[QuizQuestion]) -> QuizSession:
        now = self._clock()
        self.evict_idle(now)
        session = QuizSession(last_active=now)
        session.start(questions)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> QuizSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_active = self._clock()
        return session

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def evict_idle(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        expired = [
            sid
            for sid, session in self._sessions.items()
            if session.last_active is None or now - session.last_active > self._max_idle
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Dropped %d idle quiz sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
