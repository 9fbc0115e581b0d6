"""
Question selection for the quiz session bot.
Derives the ordered questions asked in a session from the bank.
"""
import logging
import random
from typing import List, Optional, Sequence

from .models import QuestionRecord, SelectionMode
from .quiz_session import EmptySelectionError


logger = logging.getLogger(__name__)


class SessionBuilder:
    """Builds the question sequence for a session from a selection mode."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the builder.

        Args:
            rng: Random source used for sampling; defaults to a new unseeded generator
        """
        self._rng = rng or random.Random()

    def build(
        self,
        mode: SelectionMode,
        questions: Sequence[QuestionRecord],
        count: Optional[int] = None,
        term: Optional[str] = None,
    ) -> List[QuestionRecord]:
        """
        Select and order questions for a new session.

        Args:
            mode: Selection mode
            questions: Full question bank, in bank order
            count: Sample size for random mode, already clamped by the caller
            term: Search term for search mode

        Returns:
            New list of the questions to ask

        Raises:
            EmptySelectionError: If the selection would be empty
            ValueError: If random mode is given a missing or negative count
        """
        mode = SelectionMode(mode)

        if mode is SelectionMode.ALL:
            selected = list(questions)
        elif mode is SelectionMode.RANDOM:
            if count is None or count < 0:
                raise ValueError(f"Random selection needs a non-negative count, got {count!r}")
            selected = self.limit_question_count(self.shuffle_questions(questions), count)
        else:
            selected = self.search_questions(questions, term or "")

        if not selected:
            raise EmptySelectionError(f"No questions available for mode '{mode.value}'")

        logger.info(f"Built {mode.value} selection with {len(selected)} of {len(questions)} questions")
        return selected

    def shuffle_questions(self, questions: Sequence[QuestionRecord]) -> List[QuestionRecord]:
        """
        Return a uniformly shuffled copy of the questions.

        Fisher-Yates from the last index down, swapping each slot with a
        uniformly chosen slot at or before it.
        """
        shuffled = list(questions)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self._rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled

    def limit_question_count(self, questions: List[QuestionRecord], count: int) -> List[QuestionRecord]:
        return questions[:count]

    def search_questions(self, questions: Sequence[QuestionRecord], term: str) -> List[QuestionRecord]:
        """
        Find questions whose text or options contain the term.

        Raises:
            EmptySelectionError: If the term is blank or nothing matches
        """
        term = term.strip()
        if not term:
            raise EmptySelectionError("Please enter a search term")

        matches = [q for q in questions if q.matches(term)]
        if not matches:
            raise EmptySelectionError(f"No questions found matching: {term}")
        return matches
