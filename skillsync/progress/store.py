"""
Progress stores: durable SQLite, ephemeral in-memory, and a fallback chain.
"""

import sqlite3
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional, TypeVar

from skillsync.progress.models import (
    DailyStat,
    LeaderboardScore,
    MarkedQuestion,
    QuestionAttempt,
    UserProfile,
    UserStatistics,
)
from skillsync.shared.config import settings
from skillsync.shared.exceptions import CircuitBreakerOpenError, ProgressStoreError
from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ProgressStore(ABC):
    """
    Storage interface for progress aggregates.

    Reads of records that do not exist yet return None (or an empty list);
    that is the normal case for first-time users, not an error.
    """

    name: str = "abstract"

    @abstractmethod
    def append_attempt(self, attempt: QuestionAttempt) -> QuestionAttempt:
        pass

    @abstractmethod
    def list_attempts(self, user_id: str) -> List[QuestionAttempt]:
        pass

    @abstractmethod
    def get_daily_stat(self, user_id: str, day: date) -> Optional[DailyStat]:
        pass

    @abstractmethod
    def save_daily_stat(self, stat: DailyStat):
        pass

    @abstractmethod
    def list_daily_stats(self, user_id: str, since: date) -> List[DailyStat]:
        pass

    @abstractmethod
    def get_leaderboard_score(self, user_id: str) -> Optional[LeaderboardScore]:
        pass

    @abstractmethod
    def save_leaderboard_score(self, score: LeaderboardScore):
        pass

    @abstractmethod
    def top_scores(self, limit: int = 10) -> List[LeaderboardScore]:
        pass

    @abstractmethod
    def get_user_statistics(self, user_id: str) -> Optional[UserStatistics]:
        pass

    @abstractmethod
    def save_user_statistics(self, stats: UserStatistics):
        pass

    @abstractmethod
    def list_marked_questions(self, user_id: str) -> List[MarkedQuestion]:
        pass

    @abstractmethod
    def save_marked_question(self, user_id: str, question: MarkedQuestion):
        pass

    @abstractmethod
    def delete_marked_question(self, user_id: str, question_id: str) -> bool:
        pass

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def save_profile(self, profile: UserProfile):
        pass

    def health_check(self) -> bool:
        return True

    def operation(self) -> "ProgressStore":
        """Store to use for one logical read-modify-write."""
        return self


class InMemoryProgressStore(ProgressStore):
    """Non-durable local store with the same shape as the durable one."""

    name = "memory"

    def __init__(self):
        self._attempts: Dict[str, List[QuestionAttempt]] = defaultdict(list)
        self._daily: Dict[str, Dict[date, DailyStat]] = defaultdict(dict)
        self._scores: Dict[str, LeaderboardScore] = {}
        self._statistics: Dict[str, UserStatistics] = {}
        self._marked: Dict[str, Dict[str, MarkedQuestion]] = defaultdict(dict)
        self._profiles: Dict[str, UserProfile] = {}
        self._next_attempt_id = 1

    def append_attempt(self, attempt: QuestionAttempt) -> QuestionAttempt:
        stored = attempt.model_copy(update={"id": self._next_attempt_id})
        self._next_attempt_id += 1
        self._attempts[attempt.user_id].append(stored)
        return stored

    def list_attempts(self, user_id: str) -> List[QuestionAttempt]:
        return list(self._attempts.get(user_id, []))

    def get_daily_stat(self, user_id: str, day: date) -> Optional[DailyStat]:
        stat = self._daily.get(user_id, {}).get(day)
        return stat.model_copy() if stat else None

    def save_daily_stat(self, stat: DailyStat):
        self._daily[stat.user_id][stat.date] = stat.model_copy()

    def list_daily_stats(self, user_id: str, since: date) -> List[DailyStat]:
        days = self._daily.get(user_id, {})
        return [days[d].model_copy() for d in sorted(days) if d >= since]

    def get_leaderboard_score(self, user_id: str) -> Optional[LeaderboardScore]:
        score = self._scores.get(user_id)
        return score.model_copy() if score else None

    def save_leaderboard_score(self, score: LeaderboardScore):
        self._scores[score.user_id] = score.model_copy()

    def top_scores(self, limit: int = 10) -> List[LeaderboardScore]:
        ranked = sorted(
            (s for s in self._scores.values() if s.total_score > 0),
            key=lambda s: s.total_score,
            reverse=True,
        )
        return [s.model_copy() for s in ranked[:limit]]

    def get_user_statistics(self, user_id: str) -> Optional[UserStatistics]:
        stats = self._statistics.get(user_id)
        return stats.model_copy(deep=True) if stats else None

    def save_user_statistics(self, stats: UserStatistics):
        self._statistics[stats.user_id] = stats.model_copy(deep=True)

    def list_marked_questions(self, user_id: str) -> List[MarkedQuestion]:
        return list(self._marked.get(user_id, {}).values())

    def save_marked_question(self, user_id: str, question: MarkedQuestion):
        self._marked[user_id][question.question_id] = question

    def delete_marked_question(self, user_id: str, question_id: str) -> bool:
        return self._marked.get(user_id, {}).pop(question_id, None) is not None

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    def save_profile(self, profile: UserProfile):
        self._profiles[profile.user_id] = profile.model_copy(deep=True)


class SQLiteProgressStore(ProgressStore):
    """Durable progress store on SQLite in WAL mode."""

    name = "sqlite"

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.progress.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS question_attempts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    question_id TEXT NOT NULL,
                    subject TEXT NOT NULL,
                    major TEXT,
                    difficulty TEXT NOT NULL,
                    user_answer TEXT,
                    is_correct BOOLEAN NOT NULL,
                    time_spent INTEGER DEFAULT 0,
                    hints_used INTEGER DEFAULT 0,
                    attempted_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS daily_stats (
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    questions_answered INTEGER DEFAULT 0,
                    correct_answers INTEGER DEFAULT 0,
                    time_spent INTEGER DEFAULT 0,
                    hints_used INTEGER DEFAULT 0,
                    easy_questions INTEGER DEFAULT 0,
                    medium_questions INTEGER DEFAULT 0,
                    hard_questions INTEGER DEFAULT 0,
                    PRIMARY KEY (user_id, date)
                );

                CREATE TABLE IF NOT EXISTS leaderboard_scores (
                    user_id TEXT PRIMARY KEY,
                    total_score INTEGER DEFAULT 0,
                    total_questions INTEGER DEFAULT 0,
                    correct_answers INTEGER DEFAULT 0,
                    current_streak INTEGER DEFAULT 0,
                    longest_streak INTEGER DEFAULT 0,
                    last_activity TEXT
                );

                CREATE TABLE IF NOT EXISTS user_statistics (
                    user_id TEXT PRIMARY KEY,
                    stats_json TEXT NOT NULL,
                    last_updated TEXT
                );

                CREATE TABLE IF NOT EXISTS marked_questions (
                    user_id TEXT NOT NULL,
                    question_id TEXT NOT NULL,
                    question_json TEXT NOT NULL,
                    marked_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, question_id)
                );

                CREATE TABLE IF NOT EXISTS user_profiles (
                    user_id TEXT PRIMARY KEY,
                    profile_json TEXT NOT NULL,
                    updated_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_attempts_user ON question_attempts(user_id);
                CREATE INDEX IF NOT EXISTS idx_scores_total ON leaderboard_scores(total_score);
            """)

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        except sqlite3.Error as e:
            raise ProgressStoreError(f"Cannot open progress database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise ProgressStoreError(f"SQLite progress store error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def append_attempt(self, attempt: QuestionAttempt) -> QuestionAttempt:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """INSERT INTO question_attempts
                   (user_id, question_id, subject, major, difficulty, user_answer,
                    is_correct, time_spent, hints_used, attempted_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    attempt.user_id,
                    attempt.question_id,
                    attempt.subject,
                    attempt.major,
                    attempt.difficulty,
                    attempt.user_answer,
                    int(attempt.is_correct),
                    attempt.time_spent,
                    attempt.hints_used,
                    attempt.attempted_at.isoformat(),
                )
            )
            return attempt.model_copy(update={"id": cursor.lastrowid})

    def list_attempts(self, user_id: str) -> List[QuestionAttempt]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM question_attempts WHERE user_id = ? ORDER BY id ASC",
                (user_id,)
            ).fetchall()
            return [
                QuestionAttempt(**{**dict(row), "is_correct": bool(row["is_correct"])})
                for row in rows
            ]

    def get_daily_stat(self, user_id: str, day: date) -> Optional[DailyStat]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM daily_stats WHERE user_id = ? AND date = ?",
                (user_id, day.isoformat())
            ).fetchone()
            return DailyStat(**dict(row)) if row else None

    def save_daily_stat(self, stat: DailyStat):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO daily_stats
                   (user_id, date, questions_answered, correct_answers, time_spent,
                    hints_used, easy_questions, medium_questions, hard_questions)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    stat.user_id,
                    stat.date.isoformat(),
                    stat.questions_answered,
                    stat.correct_answers,
                    stat.time_spent,
                    stat.hints_used,
                    stat.easy_questions,
                    stat.medium_questions,
                    stat.hard_questions,
                )
            )

    def list_daily_stats(self, user_id: str, since: date) -> List[DailyStat]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM daily_stats WHERE user_id = ? AND date >= ? ORDER BY date ASC",
                (user_id, since.isoformat())
            ).fetchall()
            return [DailyStat(**dict(row)) for row in rows]

    def get_leaderboard_score(self, user_id: str) -> Optional[LeaderboardScore]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM leaderboard_scores WHERE user_id = ?",
                (user_id,)
            ).fetchone()
            return LeaderboardScore(**dict(row)) if row else None

    def save_leaderboard_score(self, score: LeaderboardScore):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO leaderboard_scores
                   (user_id, total_score, total_questions, correct_answers,
                    current_streak, longest_streak, last_activity)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    score.user_id,
                    score.total_score,
                    score.total_questions,
                    score.correct_answers,
                    score.current_streak,
                    score.longest_streak,
                    score.last_activity.isoformat() if score.last_activity else None,
                )
            )

    def top_scores(self, limit: int = 10) -> List[LeaderboardScore]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """SELECT * FROM leaderboard_scores
                   WHERE total_score > 0
                   ORDER BY total_score DESC
                   LIMIT ?""",
                (limit,)
            ).fetchall()
            return [LeaderboardScore(**dict(row)) for row in rows]

    def get_user_statistics(self, user_id: str) -> Optional[UserStatistics]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT stats_json FROM user_statistics WHERE user_id = ?",
                (user_id,)
            ).fetchone()
            return UserStatistics.model_validate_json(row["stats_json"]) if row else None

    def save_user_statistics(self, stats: UserStatistics):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO user_statistics (user_id, stats_json, last_updated)
                   VALUES (?, ?, ?)""",
                (
                    stats.user_id,
                    stats.model_dump_json(),
                    stats.last_updated.isoformat() if stats.last_updated else None,
                )
            )

    def list_marked_questions(self, user_id: str) -> List[MarkedQuestion]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT question_json FROM marked_questions WHERE user_id = ? ORDER BY marked_at ASC",
                (user_id,)
            ).fetchall()
            return [MarkedQuestion.model_validate_json(row["question_json"]) for row in rows]

    def save_marked_question(self, user_id: str, question: MarkedQuestion):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO marked_questions (user_id, question_id, question_json, marked_at)
                   VALUES (?, ?, ?, ?)""",
                (user_id, question.question_id, question.model_dump_json(), question.marked_at.isoformat())
            )

    def delete_marked_question(self, user_id: str, question_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM marked_questions WHERE user_id = ? AND question_id = ?",
                (user_id, question_id)
            )
            return cursor.rowcount > 0

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT profile_json FROM user_profiles WHERE user_id = ?",
                (user_id,)
            ).fetchone()
            return UserProfile.model_validate_json(row["profile_json"]) if row else None

    def save_profile(self, profile: UserProfile):
        with self._get_connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO user_profiles (user_id, profile_json, updated_at)
                   VALUES (?, ?, ?)""",
                (
                    profile.user_id,
                    profile.model_dump_json(),
                    profile.updated_at.isoformat() if profile.updated_at else None,
                )
            )

    def health_check(self) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except ProgressStoreError as e:
            logger.error(f"Progress store health check failed: {e}")
            return False


class CircuitBreaker:
    """Circuit breaker guarding the primary progress store."""

    def __init__(self, failure_threshold: int = 3, reset_seconds: int = 60):
        self.failure_threshold = failure_threshold
        self.reset_seconds = reset_seconds
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    def record_success(self):
        self.failure_count = 0
        self.state = "CLOSED"

    def record_failure(self):
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning(f"Circuit breaker OPEN after {self.failure_count} failures")
            self.state = "OPEN"

    def can_proceed(self) -> bool:
        if self.state == "CLOSED":
            return True

        if self.state == "OPEN":
            if self.last_failure_time:
                elapsed = time.time() - self.last_failure_time
                if elapsed >= self.reset_seconds:
                    self.state = "HALF_OPEN"
                    return True
            return False

        return self.state == "HALF_OPEN"

    def raise_if_open(self):
        if not self.can_proceed():
            raise CircuitBreakerOpenError(
                f"Circuit breaker is OPEN. Wait {self.reset_seconds} seconds before retry."
            )


class _DelegatingStore(ProgressStore):
    """Routes every store method through _call."""

    @abstractmethod
    def _call(self, operation: str, fn: Callable[[ProgressStore], T]) -> T:
        pass

    def append_attempt(self, attempt: QuestionAttempt) -> QuestionAttempt:
        return self._call("append_attempt", lambda s: s.append_attempt(attempt))

    def list_attempts(self, user_id: str) -> List[QuestionAttempt]:
        return self._call("list_attempts", lambda s: s.list_attempts(user_id))

    def get_daily_stat(self, user_id: str, day: date) -> Optional[DailyStat]:
        return self._call("get_daily_stat", lambda s: s.get_daily_stat(user_id, day))

    def save_daily_stat(self, stat: DailyStat):
        return self._call("save_daily_stat", lambda s: s.save_daily_stat(stat))

    def list_daily_stats(self, user_id: str, since: date) -> List[DailyStat]:
        return self._call("list_daily_stats", lambda s: s.list_daily_stats(user_id, since))

    def get_leaderboard_score(self, user_id: str) -> Optional[LeaderboardScore]:
        return self._call("get_leaderboard_score", lambda s: s.get_leaderboard_score(user_id))

    def save_leaderboard_score(self, score: LeaderboardScore):
        return self._call("save_leaderboard_score", lambda s: s.save_leaderboard_score(score))

    def top_scores(self, limit: int = 10) -> List[LeaderboardScore]:
        return self._call("top_scores", lambda s: s.top_scores(limit))

    def get_user_statistics(self, user_id: str) -> Optional[UserStatistics]:
        return self._call("get_user_statistics", lambda s: s.get_user_statistics(user_id))

    def save_user_statistics(self, stats: UserStatistics):
        return self._call("save_user_statistics", lambda s: s.save_user_statistics(stats))

    def list_marked_questions(self, user_id: str) -> List[MarkedQuestion]:
        return self._call("list_marked_questions", lambda s: s.list_marked_questions(user_id))

    def save_marked_question(self, user_id: str, question: MarkedQuestion):
        return self._call("save_marked_question", lambda s: s.save_marked_question(user_id, question))

    def delete_marked_question(self, user_id: str, question_id: str) -> bool:
        return self._call("delete_marked_question", lambda s: s.delete_marked_question(user_id, question_id))

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._call("get_profile", lambda s: s.get_profile(user_id))

    def save_profile(self, profile: UserProfile):
        return self._call("save_profile", lambda s: s.save_profile(profile))


class FallbackProgressStore(_DelegatingStore):
    """
    Primary/secondary chain.

    A single call goes to the primary while its circuit breaker allows it;
    any error there is logged and the same call is repeated on the secondary.
    Multi-step updates should go through operation() so that they stay on
    one backend. The two stores are never reconciled.
    """

    name = "fallback"

    def __init__(
        self,
        primary: ProgressStore,
        secondary: ProgressStore,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.primary = primary
        self.secondary = secondary
        self.circuit_breaker = breaker or CircuitBreaker(
            failure_threshold=settings.progress.circuit_breaker_failure_threshold,
            reset_seconds=settings.progress.circuit_breaker_reset_seconds,
        )

    def _call_primary(self, operation: str, fn: Callable[[ProgressStore], T]) -> T:
        self.circuit_breaker.raise_if_open()
        try:
            result = fn(self.primary)
        except Exception:
            self.circuit_breaker.record_failure()
            raise
        self.circuit_breaker.record_success()
        return result

    def _fall_back(self, operation: str, error: Exception, fn: Callable[[ProgressStore], T]) -> T:
        logger.warning(
            f"{self.primary.name} store unavailable, using {self.secondary.name} fallback: {error}",
            extra={"action": operation},
        )
        return fn(self.secondary)

    def _call(self, operation: str, fn: Callable[[ProgressStore], T]) -> T:
        try:
            return self._call_primary(operation, fn)
        except Exception as e:
            return self._fall_back(operation, e, fn)

    def operation(self) -> "FallbackOperation":
        return FallbackOperation(self)

    def health_check(self) -> bool:
        return self.circuit_breaker.state != "OPEN" and self.primary.health_check()


class FallbackOperation(_DelegatingStore):
    """
    One logical operation against a FallbackProgressStore.

    After the first primary failure every remaining call goes to the
    secondary, so a record read from one backend is never written to the other.
    """

    def __init__(self, parent: FallbackProgressStore):
        self.parent = parent
        self.name = parent.name
        self.degraded = False

    def _call(self, operation: str, fn: Callable[[ProgressStore], T]) -> T:
        if self.degraded:
            return fn(self.parent.secondary)
        try:
            return self.parent._call_primary(operation, fn)
        except Exception as e:
            self.degraded = True
            return self.parent._fall_back(operation, e, fn)

    def health_check(self) -> bool:
        return not self.degraded and self.parent.health_check()


def build_progress_store(backend: Optional[str] = None, db_path: Optional[Path] = None) -> ProgressStore:
    """Create the store selected by configuration."""
    backend = (backend or settings.progress.backend).lower()
    if backend == "memory":
        return InMemoryProgressStore()
    if backend == "sqlite":
        return SQLiteProgressStore(db_path)
    if backend == "fallback":
        try:
            primary: ProgressStore = SQLiteProgressStore(db_path)
        except (ProgressStoreError, OSError) as e:
            logger.error(f"Durable progress store unavailable at startup: {e}")
            return InMemoryProgressStore()
        return FallbackProgressStore(primary, InMemoryProgressStore())
    raise ValueError(f"Unknown progress backend: {backend}")
