"""
Quiz session state for the quiz session bot.
Holds the question sequence, the answer ledger, skipped questions and score.
"""
import logging
from typing import Dict, List, Optional, Sequence

from .models import ANSWER_OPTIONS, QuestionRecord, ScoreReport, SessionSnapshot


logger = logging.getLogger(__name__)


class QuizSessionError(Exception):
    """Base exception for recoverable quiz session errors."""
    pass


class EmptySelectionError(QuizSessionError):
    """Raised when a selection would start a session with zero questions."""
    pass


class InvalidInputError(QuizSessionError):
    """Raised when user input cannot be parsed into a question number."""
    pass


class OutOfRangeError(QuizSessionError):
    """Raised when a question number or position lies outside the session."""
    pass


class InvalidSessionStateError(QuizSessionError):
    """Raised when the session is in an invalid state for the requested operation."""
    pass


class QuizSession:
    """
    Mutable state of one quiz run, from start to results.

    ``position`` ranges over ``[0, total]``; ``position == total`` is the
    terminal results state. Answers are add-only and the first answer for a
    position sticks, so ``correct_count + wrong_count == len(answers)``
    always holds. The skipped list is computed on read from the positions the
    user explicitly skipped minus the positions answered since.

    Only ``record_answer`` and the NavigationEngine change this object.
    """

    def __init__(self, questions: Sequence[QuestionRecord]):
        if not questions:
            raise EmptySelectionError("Cannot start a session with zero questions")
        self._questions: List[QuestionRecord] = list(questions)
        self._position = 0
        self._answers: Dict[int, str] = {}
        self._skip_log: List[int] = []
        self._correct_count = 0
        self._wrong_count = 0

    @classmethod
    def start(cls, questions: Sequence[QuestionRecord]) -> "QuizSession":
        """Create a fresh session positioned on the first question."""
        session = cls(questions)
        logger.info(f"Quiz session started with {session.total} questions")
        return session

    @property
    def questions(self) -> List[QuestionRecord]:
        return list(self._questions)

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def position(self) -> int:
        return self._position

    @property
    def answers(self) -> Dict[int, str]:
        return dict(self._answers)

    @property
    def correct_count(self) -> int:
        return self._correct_count

    @property
    def wrong_count(self) -> int:
        return self._wrong_count

    @property
    def is_complete(self) -> bool:
        return self._position >= self.total

    @property
    def current_question(self) -> Optional[QuestionRecord]:
        if 0 <= self._position < self.total:
            return self._questions[self._position]
        return None

    @property
    def answered_current(self) -> bool:
        return self.is_answered(self._position)

    @property
    def skipped(self) -> List[int]:
        """Skipped positions, in the order they were skipped, that are still unanswered."""
        return [i for i in self._skip_log if i not in self._answers]

    def is_answered(self, position: int) -> bool:
        return position in self._answers

    def answer_at(self, position: int) -> Optional[str]:
        return self._answers.get(position)

    def record_answer(self, label: str) -> bool:
        """
        Record the answer for the current position.

        The first answer for a position sticks: later submissions are ignored
        and leave the ledger and score untouched.

        Args:
            label: Option label, one of A-D

        Returns:
            True if the answer stored for this position is correct

        Raises:
            ValueError: If label is not one of A-D
            InvalidSessionStateError: If the session is at the results state
        """
        if label not in ANSWER_OPTIONS:
            raise ValueError(f"Answer label must be one of {', '.join(ANSWER_OPTIONS)}, got {label!r}")

        question = self.current_question
        if question is None:
            raise InvalidSessionStateError("No question to answer at the results state")

        if self.is_answered(self._position):
            logger.debug(f"Ignoring repeated answer {label} for position {self._position}")
            return self._answers[self._position] == question.correct

        self._answers[self._position] = label
        is_correct = label == question.correct
        if is_correct:
            self._correct_count += 1
        else:
            self._wrong_count += 1

        logger.debug(
            f"Answered position {self._position} with {label} "
            f"({'correct' if is_correct else 'wrong'})"
        )
        return is_correct

    def score(self) -> ScoreReport:
        return ScoreReport(
            correct=self._correct_count,
            wrong=self._wrong_count,
            answered=len(self._answers),
            total=self.total,
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            position=self._position,
            total=self.total,
            question=self.current_question,
            answered=self.answered_current,
            chosen=self.answer_at(self._position),
            correct_count=self._correct_count,
            wrong_count=self._wrong_count,
            skipped=self.skipped,
        )

    def _move_to(self, position: int) -> None:
        # Bounds are checked by the NavigationEngine before calling
        self._position = position

    def _mark_skipped(self, position: int) -> None:
        if position not in self._skip_log:
            self._skip_log.append(position)
