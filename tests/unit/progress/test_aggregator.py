"""
Tests for the progress aggregator.
"""

from datetime import date, timedelta

import pytest

from skillsync.progress.aggregator import ProgressAggregator, advance_streak, points_for
from skillsync.progress.models import MarkedQuestion
from skillsync.progress.store import (
    CircuitBreaker,
    FallbackProgressStore,
    InMemoryProgressStore,
    SQLiteProgressStore,
)
from skillsync.shared.exceptions import ProgressStoreError

TODAY = date(2024, 3, 13)  # a Wednesday


def _record(aggregator, is_correct=True, difficulty="easy", user_id="alice", **kwargs):
    defaults = dict(
        question_id="accounting_easy_1",
        subject="accounting",
        user_answer="answer",
        time_spent=30,
        hints_used=0,
    )
    defaults.update(kwargs)
    return aggregator.record_attempt(
        user_id=user_id, difficulty=difficulty, is_correct=is_correct, **defaults
    )


@pytest.mark.parametrize("difficulty,is_correct,expected", [
    ("easy", True, 10),
    ("Medium", True, 20),
    ("hard", True, 30),
    ("hard", False, 0),
    ("expert", True, 0),
])
def test_points_for(difficulty, is_correct, expected):
    assert points_for(difficulty, is_correct) == expected


def test_advance_streak():
    assert advance_streak(2, 2, True) == (3, 3)
    assert advance_streak(3, 5, False) == (0, 5)
    assert advance_streak(0, 5, True) == (1, 5)


def test_streak_and_score_sequence(aggregator, progress_store):
    """correct, correct, wrong, correct on easy -> streak 1, longest 2, score 30."""
    for is_correct in (True, True, False, True):
        _record(aggregator, is_correct=is_correct)

    score = progress_store.get_leaderboard_score("alice")
    assert score.current_streak == 1
    assert score.longest_streak == 2
    assert score.total_score == 30
    assert score.total_questions == 4
    assert score.correct_answers == 3

    stats = aggregator.get_user_statistics("alice")
    assert stats.current_streak == 1
    assert stats.longest_streak == 2
    assert stats.xp_total == 30


def test_repeated_attempts_all_count(aggregator, progress_store):
    for _ in range(3):
        _record(aggregator, question_id="same_question")

    assert len(progress_store.list_attempts("alice")) == 3
    assert aggregator.get_user_statistics("alice").total_questions_answered == 3


def test_daily_stat_updates(aggregator, progress_store):
    _record(aggregator, difficulty="easy", is_correct=True, time_spent=10, hints_used=1)
    _record(aggregator, difficulty="hard", is_correct=False, time_spent=50, hints_used=2)

    stat = progress_store.get_daily_stat("alice", TODAY)
    assert stat.questions_answered == 2
    assert stat.correct_answers == 1
    assert stat.time_spent == 60
    assert stat.hints_used == 3
    assert (stat.easy_questions, stat.medium_questions, stat.hard_questions) == (1, 0, 1)


def test_subject_and_major_counters(aggregator):
    _record(aggregator, subject="accounting", major="law")
    _record(aggregator, subject="accounting", major="law")
    _record(aggregator, subject="principles_of_finance", major="finance")

    stats = aggregator.get_user_statistics("alice")
    assert stats.subject_counts == {"accounting": 2, "principles_of_finance": 1}
    assert stats.major_counts == {"law": 2, "finance": 1}


def test_first_attempt_awards_first_question_once(aggregator):
    assert _record(aggregator, is_correct=False) == ["first_question"]
    assert _record(aggregator, is_correct=False) == []


def test_unknown_user_statistics_are_zeroed(aggregator):
    stats = aggregator.get_user_statistics("nobody")
    assert stats.user_id == "nobody"
    assert stats.total_questions_answered == 0
    assert stats.badges == []


def test_hint_and_solution_counters_award_badges(aggregator):
    assert aggregator.record_hint_used("alice") == ["first_hint"]
    assert aggregator.record_hint_used("alice") == []
    assert aggregator.record_solution_viewed("alice") == ["solution_master"]

    stats = aggregator.get_user_statistics("alice")
    assert stats.hints_used == 2
    assert stats.solutions_viewed == 1


def test_marking_questions(aggregator):
    new_badges = aggregator.mark_question("alice", MarkedQuestion(question_id="q1", text="Q1"))
    aggregator.mark_question("alice", MarkedQuestion(question_id="q2", text="Q2"))

    assert new_badges == ["marked_questions"]
    assert aggregator.get_user_statistics("alice").marked_questions == 2

    assert aggregator.unmark_question("alice", "q1") is True
    assert aggregator.unmark_question("alice", "q1") is False
    assert [m.question_id for m in aggregator.list_marked_questions("alice")] == ["q2"]
    assert aggregator.get_user_statistics("alice").marked_questions == 1
    assert "marked_questions" in aggregator.get_user_statistics("alice").badges


def test_activity_chart_covers_last_seven_days():
    current = {"day": TODAY - timedelta(days=2)}
    store = InMemoryProgressStore()
    aggregator = ProgressAggregator(store, today=lambda: current["day"])

    _record(aggregator, difficulty="easy")
    _record(aggregator, difficulty="medium")
    current["day"] = TODAY
    _record(aggregator, difficulty="hard")
    _record(aggregator, difficulty="hard")

    activity = aggregator.get_activity("alice")

    assert activity.total_questions == 4
    assert (activity.easy_questions, activity.medium_questions, activity.hard_questions) == (1, 1, 2)
    assert len(activity.daily_stats) == 7
    assert activity.daily_stats[0].date == TODAY - timedelta(days=6)
    assert activity.daily_stats[-1].date == TODAY
    assert activity.daily_stats[-1].day == "Wed"
    assert activity.daily_stats[-1].hard == 2
    monday = activity.daily_stats[-3]
    assert monday.day == "Mon"
    assert (monday.easy, monday.medium, monday.hard) == (1, 1, 0)
    assert activity.daily_stats[0].easy == 0


def test_leaderboard_and_badges(aggregator):
    _record(aggregator, user_id="alice", difficulty="easy")
    _record(aggregator, user_id="bob", difficulty="hard")
    _record(aggregator, user_id="carol", is_correct=False)

    leaderboard = aggregator.get_leaderboard(10)
    assert [s.user_id for s in leaderboard] == ["bob", "alice"]

    badges = aggregator.get_badges("alice")
    assert [b.id for b in badges] == ["first_question"]
    assert badges[0].title == "First Question!"


def test_progress_is_isolated_per_user(aggregator):
    _record(aggregator, user_id="alice")
    assert aggregator.get_user_statistics("bob").total_questions_answered == 0
    assert aggregator.get_activity("bob").total_questions == 0


def test_today_is_injected():
    aggregator = ProgressAggregator(InMemoryProgressStore(), today=lambda: date(2024, 1, 1))
    _record(aggregator)
    assert aggregator.store.get_daily_stat("alice", date(2024, 1, 1)) is not None


def test_failed_primary_read_never_overwrites_durable_record(tmp_path, monkeypatch):
    """A primary read failure mid-attempt sends the rest of that attempt to the secondary."""
    primary = SQLiteProgressStore(tmp_path / "progress.sqlite")
    secondary = InMemoryProgressStore()
    store = FallbackProgressStore(primary, secondary, CircuitBreaker(failure_threshold=3))
    aggregator = ProgressAggregator(store, today=lambda: TODAY)

    for _ in range(5):
        _record(aggregator, difficulty="hard")
    assert primary.get_leaderboard_score("alice").total_score == 150

    real_read = primary.get_leaderboard_score
    calls = {"n": 0}

    def flaky_read(user_id):
        calls["n"] += 1
        if calls["n"] == 1:
            raise ProgressStoreError("database is locked")
        return real_read(user_id)

    monkeypatch.setattr(primary, "get_leaderboard_score", flaky_read)
    _record(aggregator, difficulty="hard")

    score = primary.get_leaderboard_score("alice")
    assert score.total_score == 150
    assert score.total_questions == 5

    stats = primary.get_user_statistics("alice")
    assert stats.total_questions_answered == 5
    assert stats.xp_total == 150
    assert stats.badges == ["first_question", "streak_5"]

    assert secondary.get_leaderboard_score("alice").total_score == 30

    _record(aggregator, difficulty="hard")
    assert primary.get_leaderboard_score("alice").total_score == 180


def test_profile_defaults_for_new_user(aggregator):
    profile = aggregator.get_profile("alice")
    assert profile.user_id == "alice"
    assert profile.avatar.animal == "🐱"
    assert profile.updated_at is None


def test_update_profile_merges_fields(aggregator):
    aggregator.update_profile("alice", username="alice", major="law", avatar={"animal": "🐶", "hat": "🎓"})
    updated = aggregator.update_profile("alice", avatar={"glasses": "🕶️"})

    assert updated.username == "alice"
    assert updated.major == "law"
    assert (updated.avatar.animal, updated.avatar.hat, updated.avatar.glasses) == ("🐶", "🎓", "🕶️")
    assert updated.updated_at is not None
    assert aggregator.get_profile("alice") == updated


def test_update_profile_can_take_accessories_off(aggregator):
    aggregator.update_profile("alice", avatar={"animal": "🐸", "hat": "🧢", "glasses": "👓"})
    updated = aggregator.update_profile("alice", avatar={"animal": None, "hat": None})

    assert updated.avatar.animal == "🐸"
    assert updated.avatar.hat is None
    assert updated.avatar.glasses == "👓"
