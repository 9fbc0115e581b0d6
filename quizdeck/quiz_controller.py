"""
Quiz session controller for the quiz session bot.
Owns the live session of each Discord channel and turns session errors into
results the front-end can show.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .config_manager import ConfigManager
from .data_manager import DataManager
from .models import AttachmentRecord, QuestionRecord, SelectionMode
from .navigation import NavigationEngine
from .question_bank import QuestionBank
from .quiz_engine import SessionBuilder
from .quiz_session import (
    EmptySelectionError,
    InvalidSessionStateError,
    QuizSession,
    QuizSessionError,
)


class SessionState(Enum):
    """Enumeration of possible quiz session states."""
    INACTIVE = "inactive"
    ACTIVE = "active"
    COMPLETED = "completed"


class QuizControllerError(Exception):
    """Base exception for quiz controller errors."""
    pass


class SessionNotFoundError(QuizControllerError):
    """Raised when attempting to operate on a non-existent session."""
    pass


class QuizController:
    """
    Orchestrates quiz sessions for the Discord front-end.

    Each channel has at most one session. Starting a quiz replaces the
    channel's session wholesale; a failed start leaves the previous session
    untouched. All session changes go through a NavigationEngine.
    """

    def __init__(
        self,
        data_manager: DataManager,
        config_manager: ConfigManager,
        builder: Optional[SessionBuilder] = None,
    ):
        """
        Initialize the quiz controller.

        Args:
            data_manager: Instance holding the loaded question bank
            config_manager: Instance for managing configuration
            builder: Session builder, mainly injectable for tests
        """
        self.logger = logging.getLogger(__name__)
        self.data_manager = data_manager
        self.config_manager = config_manager
        self.builder = builder or SessionBuilder()

        self._sessions: Dict[int, QuizSession] = {}
        self._navigators: Dict[int, NavigationEngine] = {}
        self._started_at: Dict[int, datetime] = {}
        self._modes: Dict[int, SelectionMode] = {}

        self.logger.info("QuizController initialized")

    @property
    def bank(self) -> QuestionBank:
        return self.data_manager.bank

    def start_quiz(
        self,
        channel_id: int,
        mode: SelectionMode,
        count: Optional[int] = None,
        term: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Start a new session for a channel, replacing any existing one.

        Args:
            channel_id: Discord channel identifier
            mode: Selection mode
            count: Requested sample size for random mode (clamped to the bank size)
            term: Search term for search mode

        Returns:
            Dictionary with success status, the new snapshot or an error message
        """
        mode = SelectionMode(mode)
        all_questions = self.bank.questions

        if mode is SelectionMode.RANDOM:
            count = self.config_manager.clamp_question_count(count, len(all_questions))

        try:
            questions = self.builder.build(mode, all_questions, count=count, term=term)
            session = QuizSession.start(questions)
        except EmptySelectionError as e:
            self.logger.warning(f"Could not start {mode.value} quiz in channel {channel_id}: {e}")
            return {
                'success': False,
                'error': str(e),
                'user_message': f"❌ {e}"
            }

        if channel_id in self._sessions:
            self.logger.info(f"Replacing existing session in channel {channel_id}")

        self._sessions[channel_id] = session
        self._navigators[channel_id] = NavigationEngine(session)
        self._started_at[channel_id] = datetime.now()
        self._modes[channel_id] = mode

        self.logger.info(
            f"Started {mode.value} quiz in channel {channel_id} with {session.total} questions"
        )
        return {
            'success': True,
            'message': f"Started {mode.value} quiz with {session.total} questions",
            'snapshot': session.snapshot()
        }

    def get_session(self, channel_id: int) -> Optional[QuizSession]:
        return self._sessions.get(channel_id)

    def has_active_session(self, channel_id: int) -> bool:
        return channel_id in self._sessions

    def get_session_state(self, channel_id: int) -> SessionState:
        session = self._sessions.get(channel_id)
        if session is None:
            return SessionState.INACTIVE
        if session.is_complete:
            return SessionState.COMPLETED
        return SessionState.ACTIVE

    def _get_navigator(self, channel_id: int) -> NavigationEngine:
        navigator = self._navigators.get(channel_id)
        if navigator is None:
            raise SessionNotFoundError(f"No quiz session in channel {channel_id}")
        return navigator

    def _run_action(
        self,
        channel_id: int,
        operation: str,
        action: Callable[[NavigationEngine], Any],
    ) -> Dict[str, Any]:
        """
        Apply a navigation action and wrap the outcome in a result dictionary.

        The result always carries the snapshot after the attempt, so a
        rejected action still gives the front-end something to render.
        """
        try:
            navigator = self._get_navigator(channel_id)
        except SessionNotFoundError as e:
            self.logger.warning(f"{operation} requested in channel {channel_id} without a session")
            return {
                'success': False,
                'error': str(e),
                'user_message': "❌ No quiz is running here. Start one with /quiz_all, /quiz_random or /quiz_search."
            }

        try:
            value = action(navigator)
        except QuizSessionError as e:
            self.logger.warning(f"{operation} rejected in channel {channel_id}: {e}")
            return {
                'success': False,
                'error': str(e),
                'user_message': self._get_user_friendly_error_message(e),
                'snapshot': navigator.session.snapshot()
            }

        return {
            'success': True,
            'value': value,
            'snapshot': navigator.session.snapshot()
        }

    def _get_user_friendly_error_message(self, error: QuizSessionError) -> str:
        if isinstance(error, InvalidSessionStateError):
            return "❌ The quiz is finished. Go back to review or start a new quiz."
        return f"❌ {error}"

    def answer(self, channel_id: int, label: str) -> Dict[str, Any]:
        """Answer the current question; 'value' is whether the stored answer is correct."""
        return self._run_action(channel_id, "answer", lambda nav: nav.answer(label))

    def next_question(self, channel_id: int) -> Dict[str, Any]:
        """
        Advance past the current question.

        'value' is False (and 'needs_confirmation' True) when the question is
        unanswered; the front-end must confirm and then call skip_question.
        """
        result = self._run_action(channel_id, "next", lambda nav: nav.next())
        if result['success']:
            result['needs_confirmation'] = not result['value']
        return result

    def skip_question(self, channel_id: int) -> Dict[str, Any]:
        return self._run_action(channel_id, "skip", lambda nav: nav.skip())

    def previous_question(self, channel_id: int) -> Dict[str, Any]:
        return self._run_action(channel_id, "previous", lambda nav: nav.previous())

    def go_to_question(self, channel_id: int, position: int) -> Dict[str, Any]:
        return self._run_action(channel_id, "go_to", lambda nav: nav.go_to(position))

    def jump_to_question(self, channel_id: int, value: str) -> Dict[str, Any]:
        return self._run_action(channel_id, "jump_to", lambda nav: nav.jump_to(value))

    def would_skip(self, channel_id: int) -> bool:
        navigator = self._navigators.get(channel_id)
        return navigator is not None and navigator.would_skip()

    def end_quiz(self, channel_id: int) -> Dict[str, Any]:
        """
        Produce the final report for a channel's session.

        The session is kept so the user can still go back and review it.
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return {
                'success': False,
                'error': f"No quiz session in channel {channel_id}",
                'user_message': "❌ No quiz is running here."
            }

        report = session.score()
        self.logger.info(
            f"Quiz ended in channel {channel_id}: {report.correct}/{report.total} correct "
            f"({report.percentage}%)"
        )
        return {
            'success': True,
            'report': report,
            'snapshot': session.snapshot()
        }

    def discard_session(self, channel_id: int) -> bool:
        """Drop the channel's session, returning to mode selection."""
        session = self._sessions.pop(channel_id, None)
        self._navigators.pop(channel_id, None)
        self._started_at.pop(channel_id, None)
        self._modes.pop(channel_id, None)
        if session is not None:
            self.logger.info(f"Discarded quiz session in channel {channel_id}")
        return session is not None

    def get_current_attachment(self, channel_id: int) -> Optional[AttachmentRecord]:
        session = self._sessions.get(channel_id)
        if session is None or session.current_question is None:
            return None
        return self.bank.get_attachment(session.current_question.index)

    def has_attachment(self, question: Optional[QuestionRecord]) -> bool:
        return question is not None and self.bank.has_attachment(question.index)

    def get_session_progress(self, channel_id: int) -> Optional[Dict[str, Any]]:
        """
        Get progress information for a channel's session.

        Returns:
            Dictionary with progress details, or None if there is no session
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return None

        report = session.score()
        return {
            'mode': self._modes[channel_id].value,
            'state': self.get_session_state(channel_id).value,
            'current_question': min(session.position + 1, session.total),
            'total_questions': session.total,
            'answered': report.answered,
            'correct': report.correct,
            'wrong': report.wrong,
            'skipped': len(session.skipped),
            'percentage': report.percentage,
            'start_time': self._started_at[channel_id],
        }
