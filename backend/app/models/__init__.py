from app.models.flashcard import (
    DeckStats,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    ImportRequest,
    ImportResult,
    ReviewRequest,
    SourceContext,
    VocabItem,
)
from app.models.quiz import (
    AnswerOutcome,
    AnswerRequest,
    AnswerResult,
    QuizQuestion,
    QuizQuestionView,
    QuizStartRequest,
    QuizState,
    QuizStatus,
    SaveResult,
)

__all__ = [
    "AnswerOutcome",
    "AnswerRequest",
    "AnswerResult",
    "DeckStats",
    "Flashcard",
    "FlashcardCreate",
    "FlashcardList",
    "ImportRequest",
    "ImportResult",
    "QuizQuestion",
    "QuizQuestionView",
    "QuizStartRequest",
    "QuizState",
    "QuizStatus",
    "ReviewRequest",
    "SaveResult",
    "SourceContext",
    "VocabItem",
]
