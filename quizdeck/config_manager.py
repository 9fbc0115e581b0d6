"""
Configuration manager for quiz bot settings and session parameters.
"""
import logging
from typing import Optional, Dict, Any, List
from pathlib import Path

from .models import QuizSettings


class ConfigManager:
    """Manages bot configuration settings and quiz parameters."""

    # Default configuration values
    DEFAULT_QUESTION_FILE = "./data/qna.json"
    DEFAULT_ATTACHMENT_FILE = "./data/attachments.json"
    DEFAULT_RANDOM_COUNT = 10
    DEFAULT_VIEW_TIMEOUT = 900  # 15 minutes

    # Validation limits
    MIN_QUESTION_COUNT = 1
    MIN_VIEW_TIMEOUT = 60
    MAX_VIEW_TIMEOUT = 3600

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = QuizSettings(
            question_file=self.DEFAULT_QUESTION_FILE,
            attachment_file=self.DEFAULT_ATTACHMENT_FILE,
            default_random_count=self.DEFAULT_RANDOM_COUNT,
            view_timeout=self.DEFAULT_VIEW_TIMEOUT,
        )

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            Copy of the current QuizSettings
        """
        return QuizSettings(
            question_file=self._settings.question_file,
            attachment_file=self._settings.attachment_file,
            default_random_count=self._settings.default_random_count,
            view_timeout=self._settings.view_timeout,
        )

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the 'quiz' section of a loaded config.json.

        Invalid values are skipped and keep their defaults.

        Returns:
            List of user-facing messages for the values that were rejected
        """
        quiz_config = config.get('quiz', {}) or {}
        rejected = []

        if 'question_file' in quiz_config:
            result = self.set_data_files(question_file=quiz_config['question_file'])
            if not result['success']:
                rejected.append(result['user_message'])

        if 'attachment_file' in quiz_config:
            result = self.set_data_files(attachment_file=quiz_config['attachment_file'])
            if not result['success']:
                rejected.append(result['user_message'])

        if 'default_random_count' in quiz_config:
            result = self.set_default_random_count(quiz_config['default_random_count'])
            if not result['success']:
                rejected.append(result['user_message'])

        if 'view_timeout' in quiz_config:
            result = self.set_view_timeout(quiz_config['view_timeout'])
            if not result['success']:
                rejected.append(result['user_message'])

        if rejected:
            self.logger.warning(f"Rejected {len(rejected)} configuration values")
        else:
            self.logger.info("Configuration applied successfully")
        return rejected

    def set_default_random_count(self, count: int) -> Dict[str, Any]:
        """
        Set the sample size used by random mode when none is given.

        Args:
            count: Number of questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(count, int) or isinstance(count, bool):
            error_msg = f"Random question count must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }

        if count < self.MIN_QUESTION_COUNT:
            error_msg = f"Random question count must be at least {self.MIN_QUESTION_COUNT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too few questions: Minimum is {self.MIN_QUESTION_COUNT}"
            }

        self._settings.default_random_count = count
        self.logger.info(f"Default random question count set to {count}")
        return {
            'success': True,
            'message': f"Default random question count set to {count}",
            'user_message': f"✅ Random quizzes will use {count} questions by default"
        }

    def get_default_random_count(self) -> int:
        return self._settings.default_random_count

    def set_view_timeout(self, seconds: int) -> Dict[str, Any]:
        """
        Set how long question buttons stay interactive.

        Args:
            seconds: Timeout in seconds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(seconds, int) or isinstance(seconds, bool):
            error_msg = f"View timeout must be an integer, got {type(seconds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            }

        if seconds < self.MIN_VIEW_TIMEOUT or seconds > self.MAX_VIEW_TIMEOUT:
            error_msg = f"View timeout must be between {self.MIN_VIEW_TIMEOUT} and {self.MAX_VIEW_TIMEOUT} seconds"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Timeout out of range: Use {self.MIN_VIEW_TIMEOUT}-{self.MAX_VIEW_TIMEOUT} seconds"
            }

        self._settings.view_timeout = seconds
        self.logger.info(f"View timeout set to {seconds} seconds")
        return {
            'success': True,
            'message': f"View timeout set to {seconds} seconds",
            'user_message': f"✅ Buttons stay active for {seconds} seconds"
        }

    def get_view_timeout(self) -> int:
        return self._settings.view_timeout

    def set_data_files(self, question_file: Optional[str] = None, attachment_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Set the question bank and/or attachment file paths.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        for label, value in (("Question file", question_file), ("Attachment file", attachment_file)):
            if value is not None and (not isinstance(value, str) or not value.strip()):
                error_msg = f"{label} path cannot be empty"
                self.logger.error(error_msg)
                return {
                    'success': False,
                    'error': error_msg,
                    'user_message': f"❌ Invalid path: {label} path cannot be empty"
                }

        if question_file is not None:
            self._settings.question_file = question_file.strip()
        if attachment_file is not None:
            self._settings.attachment_file = attachment_file.strip()

        self.logger.info(
            f"Data files set to {self._settings.question_file} and {self._settings.attachment_file}"
        )
        return {
            'success': True,
            'message': "Data file paths updated",
            'user_message': "✅ Data file paths updated"
        }

    def clamp_question_count(self, count: Optional[int], bank_size: int) -> int:
        """
        Clamp a requested random sample size into [1, bank_size].

        Args:
            count: Requested count, or None to use the configured default
            bank_size: Number of questions in the bank

        Returns:
            Count safe to hand to the session builder
        """
        if count is None:
            count = self._settings.default_random_count
        if bank_size < 1:
            return 0
        return max(self.MIN_QUESTION_COUNT, min(count, bank_size))

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        count = self._settings.default_random_count
        if not isinstance(count, int) or count < self.MIN_QUESTION_COUNT:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid random question count: {count}")

        timeout = self._settings.view_timeout
        if (not isinstance(timeout, int) or
            timeout < self.MIN_VIEW_TIMEOUT or
            timeout > self.MAX_VIEW_TIMEOUT):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid view timeout: {timeout}")

        if Path(self._settings.question_file).suffix != ".json":
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Question file should be a .json file: {self._settings.question_file}"
            )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        return (
            f"Quiz Settings:\n"
            f"• Random quiz size: {self._settings.default_random_count}\n"
            f"• Button timeout: {self._settings.view_timeout} seconds\n"
            f"• Question file: {self._settings.question_file}\n"
            f"• Attachment file: {self._settings.attachment_file}"
        )
