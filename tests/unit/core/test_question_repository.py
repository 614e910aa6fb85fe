"""
Tests for the question repository.
"""

import pytest

from skillsync.core.questions.repository import QuestionRepository, normalize_subject_name
from skillsync.shared.config import MajorSource
from skillsync.shared.exceptions import QuestionNotFoundError


@pytest.mark.parametrize("stem,expected", [
    ("Accounting for Commercial Lawyers", "accounting_for_commercial_lawyers"),
    ("POF Questions", "principles_of_finance"),
    ("Corporate Governance & Directors' Duties", "corporate_governance_directors_duties"),
    ("Biomed Test", "biomedical_fundamentals"),
    ("Health  Economics (2024)", "health_economics_2024"),
])
def test_normalize_subject_name(stem, expected):
    aliases = {
        "pof questions": "principles_of_finance",
        "biomed test": "biomedical_fundamentals",
        "corporate governance & directors' duties": "corporate_governance_directors_duties",
    }
    assert normalize_subject_name(stem, aliases) == expected


def test_load_uses_aliases_per_major(repository):
    assert set(repository.subjects("law")) == {"accounting_for_commercial_lawyers"}
    assert set(repository.subjects("finance")) == {"principles_of_finance"}
    assert set(repository.subjects("biomed")) == {"biomedical_fundamentals"}
    assert repository.subject_count() == 3


def test_get_by_zero_based_index(repository):
    question = repository.get("law", "accounting_for_commercial_lawyers", "easy", 0)

    assert question.id == "accounting_for_commercial_lawyers_easy_1"
    assert question.text == "What is double-entry bookkeeping?"
    assert question.number == 1


def test_get_difficulty_is_case_insensitive(repository):
    question = repository.get("finance", "principles_of_finance", "Easy", 1)
    assert question.text == "Define simple interest."
    assert question.number == 2


def test_get_unknown_index_raises(repository):
    with pytest.raises(QuestionNotFoundError, match="Question not found"):
        repository.get("law", "accounting_for_commercial_lawyers", "easy", 999)
    with pytest.raises(QuestionNotFoundError):
        repository.get("law", "accounting_for_commercial_lawyers", "easy", -1)


def test_get_unknown_subject_or_difficulty_raises(repository):
    with pytest.raises(QuestionNotFoundError, match="Subject or difficulty not found"):
        repository.get("law", "maritime_law", "easy", 0)
    with pytest.raises(QuestionNotFoundError, match="Subject or difficulty not found"):
        repository.get("law", "accounting_for_commercial_lawyers", "expert", 0)
    with pytest.raises(QuestionNotFoundError):
        repository.get("finance", "accounting_for_commercial_lawyers", "easy", 0)


def test_missing_major_directory_loads_empty(tmp_path):
    repository = QuestionRepository.load(
        tmp_path, {"law": MajorSource(directory="does-not-exist")}
    )
    assert repository.subjects("law") == {}
    assert repository.subject_count() == 0


def test_unreadable_file_is_skipped(tmp_path):
    (tmp_path / "law").mkdir()
    (tmp_path / "law" / "Broken.txt").write_bytes(b"\xff\xfe\xfa not utf-8")
    (tmp_path / "law" / "Company Takeovers.txt").write_text("Easy Questions\n1. Q\n", encoding="utf-8")

    repository = QuestionRepository.load(tmp_path, {"law": MajorSource(directory="law")})

    assert list(repository.subjects("law")) == ["company_takeovers"]


def test_summary_counts_buckets(repository):
    summary = repository.summary()
    assert summary["law"]["accounting_for_commercial_lawyers"] == {"easy": 30, "medium": 2, "hard": 1}
    assert summary["finance"]["principles_of_finance"] == {"easy": 2, "medium": 1, "hard": 1}
