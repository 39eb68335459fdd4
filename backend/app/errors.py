"""
Exceptions raised by the flashcard core.

Routers translate InsufficientDeckError and QuizStateError into client errors
and report OutcomesNotSavedError as unsaved reviews;
InvalidBoxError is data corruption and is left to propagate.
"""


class FlashcardError(Exception):
    """Base class for flashcard scheduling and quiz errors."""


class InvalidBoxError(FlashcardError):
    """Raised when a card's Leitner box is outside 1..5."""

    def __init__(self, box: object) -> None:
        self.box = box
        super().__init__(f"Leitner box must be an integer in 1..5, got {box!r}")


class InsufficientDeckError(FlashcardError):
    """Raised when a quiz is requested from too few cards."""

    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"You need at least {required} flashcards to start a quiz "
            f"(you have {available})."
        )


class QuizStateError(FlashcardError):
    """Raised on an illegal quiz session transition."""


class OutcomesNotSavedError(FlashcardError):
    """Raised when some outcomes of a finished quiz could not be written back.

    The rest of the quiz is saved; `card_ids` stay pending for a retry.
    """

    def __init__(self, quiz_id: str, card_ids: list[str], saved: int) -> None:
        self.quiz_id = quiz_id
        self.card_ids = card_ids
        self.saved = saved
        super().__init__(
            f"Quiz {quiz_id}: {len(card_ids)} review(s) could not be saved"
        )
