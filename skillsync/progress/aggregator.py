"""
Progress aggregator: folds attempt events into daily stats, leaderboard
scores, XP/streak statistics and badges.
"""

from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from skillsync.progress.badges import BADGE_RULES, award_badges, describe
from skillsync.progress.models import (
    ActivitySummary,
    Avatar,
    Badge,
    DailyStat,
    DayActivity,
    LeaderboardScore,
    MarkedQuestion,
    QuestionAttempt,
    UserProfile,
    UserStatistics,
)
from skillsync.progress.store import ProgressStore
from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

DIFFICULTY_POINTS = {"easy": 10, "medium": 20, "hard": 30}
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def points_for(difficulty: str, is_correct: bool) -> int:
    """Leaderboard points / XP for one attempt."""
    if not is_correct:
        return 0
    return DIFFICULTY_POINTS.get(difficulty.lower(), 0)


def advance_streak(current: int, longest: int, is_correct: bool) -> Tuple[int, int]:
    """Next (current_streak, longest_streak) after one attempt."""
    current = current + 1 if is_correct else 0
    return current, max(longest, current)


class ProgressAggregator:
    """Per-user progress bookkeeping over a ProgressStore."""

    def __init__(
        self,
        store: ProgressStore,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self._today = today
        self._now = now

    def record_attempt(
        self,
        user_id: str,
        question_id: str,
        subject: str,
        difficulty: str,
        user_answer: str,
        is_correct: bool,
        time_spent: int = 0,
        hints_used: int = 0,
        major: Optional[str] = None,
    ) -> List[str]:
        """
        Record one graded attempt and update every derived aggregate.

        Each call is a separate event; repeated attempts at the same question
        all count. Returns the ids of badges awarded by this attempt.
        """
        difficulty = difficulty.lower()
        attempt = QuestionAttempt(
            user_id=user_id,
            question_id=question_id,
            subject=subject,
            major=major,
            difficulty=difficulty,
            user_answer=user_answer,
            is_correct=is_correct,
            time_spent=time_spent,
            hints_used=hints_used,
            attempted_at=self._now(),
        )
        store = self.store.operation()
        store.append_attempt(attempt)

        self._update_daily_stats(store, attempt)
        self._update_leaderboard_score(store, attempt)
        new_badges = self._update_user_statistics(store, attempt)

        logger.info(
            "Question attempt recorded",
            extra={
                "user_id": user_id,
                "action": "record_attempt",
                "major": major,
                "question_id": question_id,
                "is_correct": is_correct,
                "new_badges": new_badges,
            },
        )
        return new_badges

    def _update_daily_stats(self, store: ProgressStore, attempt: QuestionAttempt):
        today = self._today()
        stat = store.get_daily_stat(attempt.user_id, today) or DailyStat(user_id=attempt.user_id, date=today)

        stat.questions_answered += 1
        stat.correct_answers += int(attempt.is_correct)
        stat.time_spent += attempt.time_spent
        stat.hints_used += attempt.hints_used
        if attempt.difficulty == "easy":
            stat.easy_questions += 1
        elif attempt.difficulty == "medium":
            stat.medium_questions += 1
        elif attempt.difficulty == "hard":
            stat.hard_questions += 1

        store.save_daily_stat(stat)

    def _update_leaderboard_score(self, store: ProgressStore, attempt: QuestionAttempt):
        score = store.get_leaderboard_score(attempt.user_id) or LeaderboardScore(user_id=attempt.user_id)

        score.total_score += points_for(attempt.difficulty, attempt.is_correct)
        score.total_questions += 1
        score.correct_answers += int(attempt.is_correct)
        score.current_streak, score.longest_streak = advance_streak(
            score.current_streak, score.longest_streak, attempt.is_correct
        )
        score.last_activity = attempt.attempted_at

        store.save_leaderboard_score(score)

    def _update_user_statistics(self, store: ProgressStore, attempt: QuestionAttempt) -> List[str]:
        stats = self._load_statistics(store, attempt.user_id)

        stats.total_questions_answered += 1
        stats.total_correct_answers += int(attempt.is_correct)
        stats.current_streak, stats.longest_streak = advance_streak(
            stats.current_streak, stats.longest_streak, attempt.is_correct
        )
        stats.xp_total += points_for(attempt.difficulty, attempt.is_correct)
        stats.subject_counts[attempt.subject] = stats.subject_counts.get(attempt.subject, 0) + 1
        if attempt.major:
            stats.major_counts[attempt.major] = stats.major_counts.get(attempt.major, 0) + 1

        return self._save_statistics(store, stats)

    @staticmethod
    def _load_statistics(store: ProgressStore, user_id: str) -> UserStatistics:
        return store.get_user_statistics(user_id) or UserStatistics(user_id=user_id)

    def _save_statistics(self, store: ProgressStore, stats: UserStatistics) -> List[str]:
        new_badges = award_badges(stats)
        stats.last_updated = self._now()
        store.save_user_statistics(stats)
        return new_badges

    def record_hint_used(self, user_id: str) -> List[str]:
        store = self.store.operation()
        stats = self._load_statistics(store, user_id)
        stats.hints_used += 1
        return self._save_statistics(store, stats)

    def record_solution_viewed(self, user_id: str) -> List[str]:
        store = self.store.operation()
        stats = self._load_statistics(store, user_id)
        stats.solutions_viewed += 1
        return self._save_statistics(store, stats)

    def mark_question(self, user_id: str, question: MarkedQuestion) -> List[str]:
        store = self.store.operation()
        store.save_marked_question(user_id, question)
        stats = self._load_statistics(store, user_id)
        stats.marked_questions = len(store.list_marked_questions(user_id))
        return self._save_statistics(store, stats)

    def unmark_question(self, user_id: str, question_id: str) -> bool:
        store = self.store.operation()
        removed = store.delete_marked_question(user_id, question_id)
        if removed:
            stats = self._load_statistics(store, user_id)
            stats.marked_questions = len(store.list_marked_questions(user_id))
            self._save_statistics(store, stats)
        return removed

    def list_marked_questions(self, user_id: str) -> List[MarkedQuestion]:
        return self.store.list_marked_questions(user_id)

    def get_user_statistics(self, user_id: str) -> UserStatistics:
        return self._load_statistics(self.store, user_id)

    def get_badges(self, user_id: str) -> List[Badge]:
        stats = self._load_statistics(self.store, user_id)
        return [describe(badge_id) for badge_id in stats.badges if badge_id in BADGE_RULES]

    def get_profile(self, user_id: str) -> UserProfile:
        return self.store.get_profile(user_id) or UserProfile(user_id=user_id)

    def update_profile(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        major: Optional[str] = None,
        avatar: Optional[Dict[str, Any]] = None,
    ) -> UserProfile:
        """
        Merge the given fields into the stored profile.

        Fields left as None keep their stored value. Avatar keys are merged
        one by one, so changing the hat keeps the animal; an explicit None
        hat or glasses takes the accessory off. A None animal is ignored.
        """
        store = self.store.operation()
        profile = store.get_profile(user_id) or UserProfile(user_id=user_id)

        changes = {"username": username, "email": email, "major": major}
        for field, value in changes.items():
            if value is not None:
                setattr(profile, field, value)
        if avatar:
            accessories = {k: v for k, v in avatar.items() if k != "animal" or v}
            profile.avatar = Avatar.model_validate({**profile.avatar.model_dump(), **accessories})
        profile.updated_at = self._now()

        store.save_profile(profile)
        logger.info("Profile updated", extra={"user_id": user_id, "action": "update_profile"})
        return profile

    def get_leaderboard(self, limit: int = 10) -> List[LeaderboardScore]:
        return self.store.top_scores(limit)

    def get_activity(self, user_id: str, days: int = 7) -> ActivitySummary:
        """Difficulty totals from the attempt log and a per-day chart, oldest day first."""
        attempts = self.store.list_attempts(user_id)
        today = self._today()
        since = today - timedelta(days=days - 1)
        daily = {stat.date: stat for stat in self.store.list_daily_stats(user_id, since)}

        chart = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            stat = daily.get(day)
            chart.append(DayActivity(
                date=day,
                day=DAY_NAMES[day.weekday()],
                easy=stat.easy_questions if stat else 0,
                medium=stat.medium_questions if stat else 0,
                hard=stat.hard_questions if stat else 0,
            ))

        return ActivitySummary(
            total_questions=len(attempts),
            easy_questions=sum(1 for a in attempts if a.difficulty == "easy"),
            medium_questions=sum(1 for a in attempts if a.difficulty == "medium"),
            hard_questions=sum(1 for a in attempts if a.difficulty == "hard"),
            daily_stats=chart,
        )
