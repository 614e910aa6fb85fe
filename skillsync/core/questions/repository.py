"""
Read-only question repository built once at startup from the corpus directories.
"""

from pathlib import Path
from typing import Dict, Mapping, Optional
import re

from skillsync.core.questions.parser import Difficulty, Question, QuestionBank, parse_question_bank
from skillsync.shared.config import MajorSource, settings
from skillsync.shared.exceptions import QuestionNotFoundError
from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

MAJORS = ("finance", "law", "biomed")


def normalize_subject_name(stem: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Map a corpus filename stem to its subject key."""
    name = stem.strip().lower()
    if aliases and name in aliases:
        return aliases[name]
    name = re.sub(r"\s+", "_", name)
    return re.sub(r"[^a-z0-9_]", "", name)


class QuestionRepository:
    """Process-wide question banks, keyed by major and subject."""

    def __init__(self, banks: Optional[Dict[str, Dict[str, QuestionBank]]] = None):
        self._banks: Dict[str, Dict[str, QuestionBank]] = banks or {}

    @classmethod
    def load(
        cls,
        root: Optional[Path] = None,
        majors: Optional[Mapping[str, MajorSource]] = None,
    ) -> "QuestionRepository":
        """Parse every configured major directory under root."""
        root = Path(root or settings.question_bank.root)
        majors = majors if majors is not None else settings.question_bank.majors

        banks: Dict[str, Dict[str, QuestionBank]] = {}
        for major, source in majors.items():
            banks[major] = cls._load_major(root / source.directory, major, source.aliases)
            logger.info(
                f"Loaded {len(banks[major])} {major} subjects",
                extra={"major": major, "directory": str(root / source.directory)},
            )
        return cls(banks)

    @staticmethod
    def _load_major(directory: Path, major: str, aliases: Mapping[str, str]) -> Dict[str, QuestionBank]:
        subjects: Dict[str, QuestionBank] = {}
        if not directory.is_dir():
            logger.warning(f"Question directory not found: {directory}")
            return subjects

        for path in sorted(directory.glob("*.txt")):
            subject = normalize_subject_name(path.stem, aliases)
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error loading {path.name}: {e}")
                continue

            bank = parse_question_bank(content, subject)
            subjects[subject] = bank
            logger.debug(f"Loaded {bank.total()} questions for {subject}", extra={"major": major})

        return subjects

    def subjects(self, major: str) -> Dict[str, QuestionBank]:
        return self._banks.get(major, {})

    def get_bank(self, major: str, subject: str) -> QuestionBank:
        bank = self._banks.get(major, {}).get(subject)
        if bank is None:
            raise QuestionNotFoundError("Subject or difficulty not found")
        return bank

    def get(self, major: str, subject: str, difficulty: str, index: int) -> Question:
        """
        Look up one question by 0-based index.

        Raises:
            QuestionNotFoundError for an unknown major, subject, difficulty or index
        """
        level = Difficulty.parse(difficulty)
        if level is None:
            raise QuestionNotFoundError("Subject or difficulty not found")

        questions = self.get_bank(major, subject).bucket(level)
        if index < 0 or index >= len(questions):
            raise QuestionNotFoundError("Question not found")
        return questions[index]

    def subject_count(self) -> int:
        return sum(len(subjects) for subjects in self._banks.values())

    def summary(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        """Per-major, per-subject bucket sizes."""
        return {
            major: {subject: bank.counts() for subject, bank in sorted(subjects.items())}
            for major, subjects in self._banks.items()
        }
