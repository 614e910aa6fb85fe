"""
Pytest fixtures for SkillSync tests.
"""

from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from skillsync.api.app import create_app
from skillsync.core.questions.repository import QuestionRepository
from skillsync.core.quota import DailyHintQuota
from skillsync.core.services import PracticeServices
from skillsync.core.tutor import TutorService
from skillsync.progress.aggregator import ProgressAggregator
from skillsync.progress.store import InMemoryProgressStore
from skillsync.shared.config import _default_majors

TODAY = date(2024, 3, 13)  # a Wednesday


def _numbered(questions):
    return "\n".join(f"{i}. {q}" for i, q in enumerate(questions, start=1))


@pytest.fixture
def corpus_dir(tmp_path) -> Path:
    """Question corpus laid out like data/questions."""
    root = tmp_path / "questions"
    for major in ("finance", "law", "biomed"):
        (root / major).mkdir(parents=True)

    easy_law = ["What is double-entry bookkeeping?"] + [
        f"Easy accounting question {n}?" for n in range(2, 31)
    ]
    (root / "law" / "Accounting for Commercial Lawyers.txt").write_text(
        "Accounting for Commercial Lawyers\n\n"
        "Easy Questions\n" + _numbered(easy_law) + "\n\n"
        "Medium Questions\n"
        "1. Explain accrual accounting.\n"
        "2. How is goodwill recognised?\n\n"
        "Hard Questions\n"
        "1. Advise on a business sale with falling operating cash flow.\n",
        encoding="utf-8",
    )
    (root / "finance" / "POF Questions.txt").write_text(
        "Easy (Foundations)\n"
        "1. What is the time value of money?\n"
        "7. Define simple interest.\n\n"
        "Medium (Applying concepts)\n"
        "1. Calculate the future value of $1,000 at 6% for 5 years.\n\n"
        "Hard (Analysis)\n"
        "1. Derive the present value of a growing perpetuity.\n",
        encoding="utf-8",
    )
    (root / "biomed" / "Biomed Test.txt").write_text(
        "Easy Questions\n"
        "1. What is the function of red blood cells?\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def repository(corpus_dir) -> QuestionRepository:
    return QuestionRepository.load(corpus_dir, _default_majors())


@pytest.fixture
def mock_llm():
    """Mock oracle client returning plain text."""
    mock = AsyncMock()
    mock.get_completion.return_value = "Think about the accounting equation."
    return mock


@pytest.fixture
def quota() -> DailyHintQuota:
    return DailyHintQuota(limit=5, today=lambda: TODAY)


@pytest.fixture
def tutor(quota, mock_llm) -> TutorService:
    return TutorService(quota, llm=mock_llm, timeout_seconds=5)


@pytest.fixture
def progress_store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def aggregator(progress_store) -> ProgressAggregator:
    return ProgressAggregator(progress_store, today=lambda: TODAY)


@pytest.fixture
def services(repository, quota, tutor, aggregator) -> PracticeServices:
    return PracticeServices(
        repository=repository,
        quota=quota,
        tutor=tutor,
        progress=aggregator,
    )


@pytest.fixture
def client(services):
    """Test client over an app wired to the fixture services (runs lifespan)."""
    with TestClient(create_app(services)) as tc:
        yield tc
