"""
Parser for flat-file question banks.
Segments a subject's text into easy/medium/hard question lists by heading.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Any, List, Optional
import re


class Difficulty(str, Enum):
    """Difficulty buckets of a question bank."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str) -> Optional["Difficulty"]:
        """Case-insensitive lookup; None for unknown values."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# A heading names a difficulty and either says "questions" anywhere on the
# line ("Easy Questions", "Questions: Easy") or opens a bracket ("Hard (").
_DIFFICULTY_RE = re.compile(r"\b(easy|medium|hard)\b(\s*\()?", re.IGNORECASE)
_QUESTIONS_WORD_RE = re.compile(r"\bquestions\b", re.IGNORECASE)
_QUESTION_RE = re.compile(r"^\d+\.\s*")


@dataclass(frozen=True)
class Question:
    """A single parsed question. Identity encodes subject, bucket and position."""
    id: str
    text: str
    subject: str
    difficulty: str
    number: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class QuestionBank:
    """The three difficulty buckets for one subject."""
    easy: List[Question] = field(default_factory=list)
    medium: List[Question] = field(default_factory=list)
    hard: List[Question] = field(default_factory=list)

    def bucket(self, difficulty: Difficulty) -> List[Question]:
        return getattr(self, difficulty.value)

    def counts(self) -> Dict[str, int]:
        return {d.value: len(self.bucket(d)) for d in Difficulty}

    def total(self) -> int:
        return sum(self.counts().values())


def match_heading(line: str) -> Optional[Difficulty]:
    """Return the difficulty a heading line selects, or None if it is not a heading."""
    says_questions = _QUESTIONS_WORD_RE.search(line) is not None
    for match in _DIFFICULTY_RE.finditer(line):
        if says_questions or match.group(2):
            return Difficulty(match.group(1).lower())
    return None


def parse_question_bank(content: str, subject: str) -> QuestionBank:
    """
    Parse raw subject text into a QuestionBank.

    Lines before the first heading are ignored. Question numbers in the
    source are discarded; each question is numbered by its position in
    its bucket, starting at 1.
    """
    bank = QuestionBank()
    current: Optional[Difficulty] = None

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        # A numbered line is a question even if its wording mentions a difficulty
        is_numbered = _QUESTION_RE.match(line) is not None
        if not is_numbered:
            heading = match_heading(line)
            if heading is not None:
                current = heading
            continue

        if current is None:
            continue

        bucket = bank.bucket(current)
        number = len(bucket) + 1
        bucket.append(Question(
            id=f"{subject}_{current.value}_{number}",
            text=_QUESTION_RE.sub("", line, count=1),
            subject=subject,
            difficulty=current.label,
            number=number,
        ))

    return bank
