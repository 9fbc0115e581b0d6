"""
Navigation over a quiz session: answering, moving between questions,
skipping and jumping.
"""
import logging
from typing import Union

from .quiz_session import (
    InvalidInputError,
    InvalidSessionStateError,
    OutOfRangeError,
    QuizSession,
)


logger = logging.getLogger(__name__)


class NavigationEngine:
    """
    Applies user actions to a QuizSession.

    Every rejected action raises before touching the session, so a failed
    transition leaves the state exactly as it was.
    """

    def __init__(self, session: QuizSession):
        self.session = session

    def _require_in_progress(self, action: str) -> None:
        if self.session.is_complete:
            logger.warning(f"Rejected {action}: session is at the results state")
            raise InvalidSessionStateError(f"Cannot {action} at the results state")

    def answer(self, label: str) -> bool:
        """Answer the current question. Returns whether the stored answer is correct."""
        self._require_in_progress("answer")
        return self.session.record_answer(label)

    def would_skip(self) -> bool:
        """True when next() would leave the current question unanswered."""
        return not self.session.is_complete and not self.session.answered_current

    def next(self) -> bool:
        """
        Advance past an answered question.

        Returns:
            True if the session advanced. False when the current question is
            unanswered: the caller should confirm with the user and call
            skip() on confirmation.
        """
        self._require_in_progress("move to the next question")
        if not self.session.answered_current:
            logger.debug(f"Next requested on unanswered position {self.session.position}")
            return False
        self.session._move_to(self.session.position + 1)
        logger.debug(f"Moved to position {self.session.position}")
        return True

    def skip(self) -> None:
        """Advance, remembering the current question as skipped if it is unanswered."""
        self._require_in_progress("skip")
        position = self.session.position
        if not self.session.answered_current:
            self.session._mark_skipped(position)
        self.session._move_to(position + 1)
        logger.debug(f"Skipped position {position}")

    def previous(self) -> bool:
        """Step back one question. Returns False (no-op) on the first question."""
        if self.session.position <= 0:
            return False
        self.session._move_to(self.session.position - 1)
        logger.debug(f"Moved back to position {self.session.position}")
        return True

    def go_to(self, position: int) -> None:
        """Move to a 0-based position, e.g. from the skipped list."""
        if not 0 <= position < self.session.total:
            raise OutOfRangeError(
                f"Position {position} is outside 0..{self.session.total - 1}"
            )
        self.session._move_to(position)
        logger.debug(f"Went to position {position}")

    def jump_to(self, value: Union[str, int]) -> None:
        """
        Jump to a 1-based question number typed by the user.

        Raises:
            InvalidInputError: If value is empty or not an integer
            OutOfRangeError: If the number is outside 1..total
            InvalidSessionStateError: If the session is at the results state
        """
        self._require_in_progress("jump")
        try:
            number = int(str(value).strip())
        except ValueError:
            logger.warning(f"Rejected jump to {value!r}: not a number")
            raise InvalidInputError("Please enter a valid question number") from None

        total = self.session.total
        if not 1 <= number <= total:
            logger.warning(f"Rejected jump to {number}: outside 1..{total}")
            raise OutOfRangeError(f"Please enter a number between 1 and {total}")

        self.session._move_to(number - 1)
        logger.debug(f"Jumped to question {number}")
