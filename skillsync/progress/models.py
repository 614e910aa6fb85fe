"""
Pydantic models for the progress system.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime


class QuestionAttempt(BaseModel):
    """One graded attempt; the attempt log is append-only."""
    id: Optional[int] = None
    user_id: str
    question_id: str
    subject: str
    major: Optional[str] = None
    difficulty: str
    user_answer: str = ""
    is_correct: bool
    time_spent: int = 0
    hints_used: int = 0
    attempted_at: datetime = Field(default_factory=datetime.now)


class DailyStat(BaseModel):
    """Per-user counters for one calendar day."""
    user_id: str
    date: date
    questions_answered: int = 0
    correct_answers: int = 0
    time_spent: int = 0
    hints_used: int = 0
    easy_questions: int = 0
    medium_questions: int = 0
    hard_questions: int = 0


class LeaderboardScore(BaseModel):
    """Leaderboard row for one user."""
    user_id: str
    total_score: int = 0
    total_questions: int = 0
    correct_answers: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity: Optional[datetime] = None


class UserStatistics(BaseModel):
    """XP, streak and badge-eligibility aggregate for one user."""
    user_id: str
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    xp_total: int = 0
    hints_used: int = 0
    solutions_viewed: int = 0
    marked_questions: int = 0
    subject_counts: Dict[str, int] = Field(default_factory=dict)
    major_counts: Dict[str, int] = Field(default_factory=dict)
    badges: List[str] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class MarkedQuestion(BaseModel):
    """A question a user bookmarked for later review."""
    question_id: str
    text: str = ""
    subject: str = ""
    major: Optional[str] = None
    difficulty: str = ""
    marked_at: datetime = Field(default_factory=datetime.now)


class DayActivity(BaseModel):
    """One bar of the 7-day activity chart."""
    date: date
    day: str
    easy: int = 0
    medium: int = 0
    hard: int = 0


class ActivitySummary(BaseModel):
    """Difficulty totals from the attempt log plus the recent daily chart."""
    total_questions: int = 0
    easy_questions: int = 0
    medium_questions: int = 0
    hard_questions: int = 0
    daily_stats: List[DayActivity] = Field(default_factory=list)


class Badge(BaseModel):
    """Badge descriptor."""
    id: str
    title: str
    description: str


class Avatar(BaseModel):
    """Avatar customisation: an animal with optional hat and glasses."""
    animal: str = "🐱"
    hat: Optional[str] = None
    glasses: Optional[str] = None


class UserProfile(BaseModel):
    """Account details shown in the client. Credentials are not stored here."""
    user_id: str
    username: str = ""
    email: str = ""
    major: Optional[str] = None
    avatar: Avatar = Field(default_factory=Avatar)
    updated_at: Optional[datetime] = None
