"""
Immutable question bank with its attachment list.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from .models import AttachmentRecord, QuestionRecord


class QuestionBank:
    """All loaded questions and attachments, in file order."""

    def __init__(
        self,
        questions: Sequence[QuestionRecord],
        attachments: Sequence[AttachmentRecord] = (),
    ):
        self._questions: Tuple[QuestionRecord, ...] = tuple(questions)
        self._attachments: Tuple[AttachmentRecord, ...] = tuple(attachments)
        # First attachment wins when a display index appears twice
        self._by_index: Dict[str, AttachmentRecord] = {}
        for attachment in self._attachments:
            self._by_index.setdefault(attachment.index, attachment)

    @property
    def questions(self) -> Tuple[QuestionRecord, ...]:
        return self._questions

    @property
    def attachments(self) -> Tuple[AttachmentRecord, ...]:
        return self._attachments

    def __len__(self) -> int:
        return len(self._questions)

    def is_empty(self) -> bool:
        return not self._questions

    def has_attachment(self, question_index: str) -> bool:
        return question_index in self._by_index

    def get_attachment(self, question_index: str) -> Optional[AttachmentRecord]:
        return self._by_index.get(question_index)

    def search_attachments(self, term: str = "") -> List[AttachmentRecord]:
        """
        Filter attachments by a case-insensitive substring of their question index.

        An empty or blank term returns every attachment.
        """
        needle = term.strip().lower()
        if not needle:
            return list(self._attachments)
        return [att for att in self._attachments if needle in att.index.lower()]
