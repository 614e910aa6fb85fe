"""
Tests for question bank parsing.
"""

import pytest

from skillsync.core.questions.parser import (
    Difficulty,
    match_heading,
    parse_question_bank,
)


@pytest.mark.parametrize("line,expected", [
    ("Easy Questions", Difficulty.EASY),
    ("MEDIUM QUESTIONS", Difficulty.MEDIUM),
    ("Hard (Analysis)", Difficulty.HARD),
    ("Easy(Foundations)", Difficulty.EASY),
    ("Section 2 - hard questions for revision", Difficulty.HARD),
    ("Questions: Easy", Difficulty.EASY),
    ("Practice Questions - Easy", Difficulty.EASY),
    ("Questions (Hard)", Difficulty.HARD),
    ("Principles of Finance - Practice Questions", None),
    ("Easy", None),
    ("Uneasy questions", None),
])
def test_match_heading(line, expected):
    assert match_heading(line) == expected


def test_numbers_are_positional_not_literal():
    """Source numbering is discarded; questions are numbered 1..N per bucket."""
    content = (
        "Easy Questions\n"
        "7. First\n"
        "3. Second\n"
        "42. Third\n"
    )
    bank = parse_question_bank(content, "principles_of_finance")

    assert [q.number for q in bank.easy] == [1, 2, 3]
    assert [q.text for q in bank.easy] == ["First", "Second", "Third"]
    assert [q.id for q in bank.easy] == [
        "principles_of_finance_easy_1",
        "principles_of_finance_easy_2",
        "principles_of_finance_easy_3",
    ]


def test_questions_before_first_heading_are_ignored():
    content = (
        "1. Orphan question\n"
        "Medium Questions\n"
        "1. Kept question\n"
    )
    bank = parse_question_bank(content, "subject")

    assert bank.counts() == {"easy": 0, "medium": 1, "hard": 0}
    assert bank.medium[0].text == "Kept question"
    assert bank.medium[0].difficulty == "Medium"


def test_non_numbered_lines_are_ignored():
    content = (
        "Easy Questions\n"
        "Read the chapter first.\n"
        "\n"
        "   \n"
        "1.   Padded question   \n"
        "- bullet that is not a question\n"
    )
    bank = parse_question_bank(content, "subject")

    assert len(bank.easy) == 1
    assert bank.easy[0].text == "Padded question"


def test_numbered_line_mentioning_difficulty_is_a_question():
    content = (
        "Easy Questions\n"
        "1. Why are hard questions worth more points?\n"
        "2. Is this an easy (introductory) topic?\n"
    )
    bank = parse_question_bank(content, "subject")

    assert len(bank.easy) == 2
    assert bank.hard == []


def test_repeated_heading_continues_bucket_numbering():
    content = (
        "Easy Questions\n"
        "1. A\n"
        "Hard Questions\n"
        "1. B\n"
        "Easy Questions (continued)\n"
        "1. C\n"
    )
    bank = parse_question_bank(content, "subject")

    assert [q.number for q in bank.easy] == [1, 2]
    assert bank.easy[1].id == "subject_easy_2"
    assert bank.total() == 3


def test_empty_content_yields_empty_bank():
    bank = parse_question_bank("", "subject")
    assert bank.total() == 0


def test_difficulty_parse():
    assert Difficulty.parse("EASY") is Difficulty.EASY
    assert Difficulty.parse(" hard ") is Difficulty.HARD
    assert Difficulty.parse("expert") is None
    assert Difficulty.MEDIUM.label == "Medium"


def test_headings_with_questions_word_first():
    content = (
        "Practice Questions - Easy\n"
        "1. What is a balance sheet?\n"
        "Questions: Medium\n"
        "1. Explain deferred revenue.\n"
    )
    bank = parse_question_bank(content, "accounting")

    assert [q.text for q in bank.easy] == ["What is a balance sheet?"]
    assert [q.text for q in bank.medium] == ["Explain deferred revenue."]
