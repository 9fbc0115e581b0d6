"""
Data manager for JSON file operations and question bank validation.
"""
import json
import os
import logging
from typing import Any, Dict, List, Optional
from pathlib import Path

from .models import ANSWER_OPTIONS, AttachmentRecord, QuestionRecord
from .question_bank import QuestionBank


class DataManager:
    """Loads and validates the question bank and attachment JSON files."""

    QUESTION_FIELDS = ("quesIndex", "quesText", "a", "b", "c", "d", "trueAns")
    ATTACHMENT_FIELDS = ("quesIndex", "img")
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB limit

    def __init__(self, question_file: str = "./data/qna.json", attachment_file: str = "./data/attachments.json"):
        """
        Initialize DataManager with data file paths.

        Args:
            question_file: Path to the JSON question bank
            attachment_file: Path to the JSON attachment list (optional file)
        """
        self.question_file = Path(question_file)
        self.attachment_file = Path(attachment_file)
        self.bank = QuestionBank([])
        self.logger = logging.getLogger(__name__)
        self.load_errors: List[str] = []  # Track loading errors for user feedback
        self.sample_bank_active = False

    def load_bank(self) -> QuestionBank:
        """
        Load questions and attachments with comprehensive error handling.

        A missing or unusable question file yields the built-in sample bank;
        a missing attachment file just leaves the attachment list empty.

        Returns:
            The loaded QuestionBank
        """
        self.load_errors.clear()
        self.sample_bank_active = False

        questions = self._load_questions()
        if not questions:
            questions = self._create_sample_questions()
            self.sample_bank_active = True

        attachments = self._load_attachments()

        self.bank = QuestionBank(questions, attachments)
        self.logger.info(f"Loaded {len(questions)} questions")
        self.logger.info(f"Loaded {len(attachments)} attachments")
        if self.load_errors:
            self.logger.warning(f"Encountered {len(self.load_errors)} loading errors")
        return self.bank

    def _load_questions(self) -> List[QuestionRecord]:
        data = self._load_json_array(self.question_file, required=True)
        if data is None:
            return []

        if not self.validate_question_structure(data):
            self.load_errors.append(f"{self.question_file.name}: Invalid question structure")
            return []

        return [QuestionRecord.from_dict(item) for item in data]

    def _load_attachments(self) -> List[AttachmentRecord]:
        data = self._load_json_array(self.attachment_file, required=False)
        if data is None:
            return []

        if not self.validate_attachment_structure(data):
            self.load_errors.append(f"{self.attachment_file.name}: Invalid attachment structure")
            return []

        return [AttachmentRecord.from_dict(item) for item in data]

    def _load_json_array(self, file_path: Path, required: bool) -> Optional[List[Any]]:
        """
        Load a JSON file expected to contain an array.

        Args:
            file_path: Path to the JSON file
            required: Whether a missing file counts as a loading error

        Returns:
            Parsed array, or None if the file is missing or unusable
        """
        try:
            if not file_path.exists():
                if required:
                    self.logger.error(f"Question file not found: {file_path}")
                    self.load_errors.append(f"{file_path.name}: File not found")
                else:
                    self.logger.info(f"No attachment file found at {file_path}")
                return None

            if not os.access(file_path, os.R_OK):
                self.load_errors.append(f"{file_path.name}: Permission denied: Cannot read file")
                return None

            file_size = file_path.stat().st_size
            if file_size > self.MAX_FILE_SIZE:
                self.load_errors.append(
                    f"{file_path.name}: File too large ({file_size / 1024 / 1024:.1f}MB). "
                    f"Maximum size is {self.MAX_FILE_SIZE / 1024 / 1024}MB"
                )
                return None

            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in {file_path}: {e}")
            self.load_errors.append(f"{file_path.name}: Invalid JSON: {e}")
            return None
        except UnicodeDecodeError as e:
            self.logger.error(f"{file_path} is not valid UTF-8: {e}")
            self.load_errors.append(f"{file_path.name}: File is not valid UTF-8 text")
            return None
        except OSError as e:
            self.logger.error(f"Failed to read {file_path}: {e}")
            self.load_errors.append(f"{file_path.name}: System error: {e}")
            return None

        if not isinstance(data, list):
            self.logger.error(f"{file_path} must contain a JSON array")
            self.load_errors.append(f"{file_path.name}: Expected a JSON array")
            return None

        return data

    def validate_question_structure(self, data: List[Any]) -> bool:
        """
        Validate that parsed JSON has the question bank structure.

        Expected structure:
        [
            {
                "quesIndex": str,
                "quesText": str,
                "a": str, "b": str, "c": str, "d": str,
                "trueAns": "A" | "B" | "C" | "D"
            }
        ]

        Args:
            data: Parsed JSON array

        Returns:
            True if structure is valid, False otherwise
        """
        if not data:
            self.logger.error("Question array cannot be empty")
            return False

        for i, item in enumerate(data):
            if not isinstance(item, dict):
                self.logger.error(f"Question {i} must be an object")
                return False

            for key in self.QUESTION_FIELDS:
                if key not in item:
                    self.logger.error(f"Question {i} missing '{key}' field")
                    return False

            for key in ("quesText", "a", "b", "c", "d"):
                if not isinstance(item[key], str):
                    self.logger.error(f"Question {i} '{key}' field must be a string")
                    return False

            if str(item["trueAns"]).strip().upper() not in ANSWER_OPTIONS:
                self.logger.error(f"Question {i} 'trueAns' must be one of {', '.join(ANSWER_OPTIONS)}")
                return False

        return True

    def validate_attachment_structure(self, data: List[Any]) -> bool:
        """Validate that every attachment entry has a question index and an image reference."""
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                self.logger.error(f"Attachment {i} must be an object")
                return False
            for key in self.ATTACHMENT_FIELDS:
                if key not in item:
                    self.logger.error(f"Attachment {i} missing '{key}' field")
                    return False
        return True

    def _create_sample_questions(self) -> List[QuestionRecord]:
        """
        Build a small in-memory bank when the question file can't be used.

        Returns:
            List of sample questions
        """
        sample_data = [
            {
                "quesIndex": "S1",
                "quesText": "What is the capital of France?",
                "a": "Berlin", "b": "Paris", "c": "Madrid", "d": "Rome",
                "trueAns": "B"
            },
            {
                "quesIndex": "S2",
                "quesText": "What is 2 + 2?",
                "a": "3", "b": "5", "c": "4", "d": "22",
                "trueAns": "C"
            },
            {
                "quesIndex": "S3",
                "quesText": "What programming language is this bot written in?",
                "a": "Python", "b": "JavaScript", "c": "Go", "d": "Rust",
                "trueAns": "A"
            }
        ]
        self.logger.warning("Using sample question bank due to file loading failures")
        return [QuestionRecord.from_dict(item) for item in sample_data]

    def get_load_errors(self) -> List[str]:
        return self.load_errors.copy()

    def has_load_errors(self) -> bool:
        return len(self.load_errors) > 0

    def is_sample_bank_active(self) -> bool:
        return self.sample_bank_active

    def get_loading_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the last loading operation.

        Returns:
            Dictionary with loading statistics and status
        """
        return {
            'total_questions': len(self.bank),
            'total_attachments': len(self.bank.attachments),
            'has_errors': self.has_load_errors(),
            'error_count': len(self.load_errors),
            'errors': self.get_load_errors(),
            'sample_active': self.is_sample_bank_active(),
            'question_file': str(self.question_file),
            'attachment_file': str(self.attachment_file),
        }
