"""
Core data models for the quiz session bot.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


ANSWER_OPTIONS: Tuple[str, ...] = ('A', 'B', 'C', 'D')


class SelectionMode(Enum):
    """Strategies for deriving the questions asked in a session."""
    ALL = "all"
    RANDOM = "random"
    SEARCH = "search"


@dataclass(frozen=True)
class QuestionRecord:
    """Represents a single multiple-choice question from the bank."""
    index: str
    text: str
    options: Mapping[str, str] = field(hash=False)
    correct: str

    @staticmethod
    def from_dict(d: Dict) -> "QuestionRecord":
        """
        Build a question from its on-disk shape.

        Expected keys: quesIndex, quesText, a, b, c, d, trueAns.

        Raises:
            KeyError: If a required key is missing
            ValueError: If trueAns is not one of A-D
        """
        correct = str(d["trueAns"]).strip().upper()
        if correct not in ANSWER_OPTIONS:
            raise ValueError(f"Invalid correct answer label: {d['trueAns']!r}")
        return QuestionRecord(
            index=str(d["quesIndex"]),
            text=str(d["quesText"]),
            options={label: str(d[label.lower()]) for label in ANSWER_OPTIONS},
            correct=correct,
        )

    def option(self, label: str) -> str:
        return self.options[label]

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over the text and all four options."""
        needle = term.lower()
        fields = [self.text] + [self.options[label] for label in ANSWER_OPTIONS]
        return any(needle in value.lower() for value in fields)


@dataclass(frozen=True)
class AttachmentRecord:
    """Associates a question display index with an image reference."""
    index: str
    image_ref: str

    @staticmethod
    def from_dict(d: Dict) -> "AttachmentRecord":
        return AttachmentRecord(index=str(d["quesIndex"]), image_ref=str(d["img"]))


@dataclass
class QuizSettings:
    """Configuration settings for loading the bank and running sessions."""
    question_file: str = "./data/qna.json"
    attachment_file: str = "./data/attachments.json"
    default_random_count: int = 10
    view_timeout: int = 900


@dataclass(frozen=True)
class ScoreReport:
    """Read-only projection of a session's score."""
    correct: int
    wrong: int
    answered: int
    total: int

    @property
    def percentage(self) -> int:
        # Half-up rounding of correct / total * 100, kept in integers
        if self.total <= 0:
            return 0
        return (self.correct * 200 + self.total) // (2 * self.total)

    @property
    def unanswered(self) -> int:
        return self.total - self.answered


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything the front-end needs to render the session after a transition."""
    position: int
    total: int
    question: Optional[QuestionRecord]
    answered: bool
    chosen: Optional[str]
    correct_count: int
    wrong_count: int
    skipped: List[int] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.position >= self.total

    @property
    def question_number(self) -> int:
        """1-based number of the current question as shown to the user."""
        return self.position + 1

    @property
    def progress(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(100.0, (self.position + 1) / self.total * 100)
