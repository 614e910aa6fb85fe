"""
Progress, statistics, badge, bookmark and leaderboard endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from skillsync.api.dependencies import get_progress
from skillsync.api.schemas import (
    AttemptRequest,
    AttemptResponse,
    MarkQuestionRequest,
    MarkQuestionResponse,
    ProfileUpdateRequest,
)
from skillsync.progress.aggregator import ProgressAggregator
from skillsync.progress.models import (
    ActivitySummary,
    Badge,
    LeaderboardScore,
    MarkedQuestion,
    UserProfile,
    UserStatistics,
)
from skillsync.shared.exceptions import QuestionNotFoundError

router = APIRouter(prefix="/api", tags=["progress"])


@router.post("/progress/attempts", response_model=AttemptResponse)
async def record_attempt(
    body: AttemptRequest,
    progress: ProgressAggregator = Depends(get_progress),
):
    new_badges = progress.record_attempt(
        user_id=body.user_id,
        question_id=body.question_id,
        subject=body.subject,
        difficulty=body.difficulty,
        user_answer=body.user_answer,
        is_correct=body.is_correct,
        time_spent=body.time_spent,
        hints_used=body.hints_used,
        major=body.major,
    )
    return AttemptResponse(recorded=True, new_badges=new_badges)


@router.get("/progress/{user_id}/statistics", response_model=UserStatistics)
async def get_statistics(user_id: str, progress: ProgressAggregator = Depends(get_progress)):
    return progress.get_user_statistics(user_id)


@router.get("/progress/{user_id}/activity", response_model=ActivitySummary)
async def get_activity(
    user_id: str,
    days: int = Query(default=7, ge=1, le=31),
    progress: ProgressAggregator = Depends(get_progress),
):
    """Difficulty totals plus the recent per-day chart."""
    return progress.get_activity(user_id, days=days)


@router.get("/progress/{user_id}/badges", response_model=List[Badge])
async def get_badges(user_id: str, progress: ProgressAggregator = Depends(get_progress)):
    return progress.get_badges(user_id)


@router.get("/progress/{user_id}/marked-questions", response_model=List[MarkedQuestion])
async def list_marked_questions(user_id: str, progress: ProgressAggregator = Depends(get_progress)):
    return progress.list_marked_questions(user_id)


@router.post("/progress/{user_id}/marked-questions", response_model=MarkQuestionResponse)
async def mark_question(
    user_id: str,
    body: MarkQuestionRequest,
    progress: ProgressAggregator = Depends(get_progress),
):
    new_badges = progress.mark_question(
        user_id,
        MarkedQuestion(
            question_id=body.question_id,
            text=body.text,
            subject=body.subject,
            major=body.major,
            difficulty=body.difficulty,
        ),
    )
    return MarkQuestionResponse(marked=True, new_badges=new_badges)


@router.delete("/progress/{user_id}/marked-questions/{question_id}")
async def unmark_question(
    user_id: str,
    question_id: str,
    progress: ProgressAggregator = Depends(get_progress),
):
    if not progress.unmark_question(user_id, question_id):
        raise QuestionNotFoundError("Marked question not found")
    return {"removed": True}


@router.get("/progress/{user_id}/profile", response_model=UserProfile)
async def get_profile(user_id: str, progress: ProgressAggregator = Depends(get_progress)):
    return progress.get_profile(user_id)


@router.put("/progress/{user_id}/profile", response_model=UserProfile)
async def update_profile(
    user_id: str,
    body: ProfileUpdateRequest,
    progress: ProgressAggregator = Depends(get_progress),
):
    """Partial update of the display profile and avatar."""
    return progress.update_profile(
        user_id,
        username=body.username,
        email=body.email,
        major=body.major,
        avatar=body.avatar.model_dump(exclude_unset=True) if body.avatar else None,
    )


@router.get("/leaderboard", response_model=List[LeaderboardScore])
async def get_leaderboard(
    limit: int = Query(default=10, ge=1, le=100),
    progress: ProgressAggregator = Depends(get_progress),
):
    return progress.get_leaderboard(limit)
