from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class QuizStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class QuizQuestion(BaseModel):
    card_id: str
    prompt: str
    correct_answer: str
    options: list[str]
    location: str | None = None
    image_url: str | None = None


class QuizQuestionView(BaseModel):
    """A question as shown to the player: no correct answer, minus hidden options."""

    card_id: str
    prompt: str
    options: list[str]
    hidden_options: list[str] = []
    location: str | None = None
    image_url: str | None = None


class AnswerOutcome(BaseModel):
    card_id: str
    correct: bool


class QuizState(BaseModel):
    id: str
    status: QuizStatus
    current_index: int
    total_questions: int
    score: int
    streak: int
    best_streak: int
    current_question: QuizQuestionView | None
    fifty_fifty_used: bool
    double_points_active: bool
    double_points_used: bool
    outcomes: list[AnswerOutcome]


class QuizStartRequest(BaseModel):
    num_questions: int | None = Field(default=None, ge=1)
    category: str | None = None


class AnswerRequest(BaseModel):
    answer: str


class AnswerResult(BaseModel):
    correct: bool
    correct_answer: str
    points: int
    reviewed_cards: int = 0  # cards written back when this answer finished the quiz
    unsaved_cards: list[str] = []  # still pending; retry with POST /quiz/{id}/save
    quiz: QuizState


class SaveResult(BaseModel):
    reviewed_cards: int
    unsaved_cards: list[str] = []
    quiz: QuizState
