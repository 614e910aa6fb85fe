"""
FastAPI dependency injection for SkillSync services.
"""

from typing import Optional

from fastapi import Header, Request

from skillsync.core.questions.repository import QuestionRepository
from skillsync.core.quota import ANONYMOUS_USER
from skillsync.core.services import PracticeServices
from skillsync.core.tutor import TutorService
from skillsync.progress.aggregator import ProgressAggregator


def get_services(request: Request) -> PracticeServices:
    """Get PracticeServices from lifespan state."""
    return request.app.state.services


def get_repository(request: Request) -> QuestionRepository:
    return get_services(request).repository


def get_tutor(request: Request) -> TutorService:
    return get_services(request).tutor


def get_progress(request: Request) -> ProgressAggregator:
    return get_services(request).progress


def get_user_id(user_id: Optional[str] = Header(default=None, alias="user-id")) -> Optional[str]:
    """Caller identity from the user-id header, if any."""
    if user_id is None or not user_id.strip():
        return None
    return user_id.strip()


def resolve_hint_user_key(request: Request, user_id: Optional[str]) -> str:
    """
    Quota bucket for a hint request.

    Identified callers are counted by user id. Anonymous callers get one
    bucket per client address unless the shared bucket is configured.
    """
    if user_id:
        return user_id
    if get_services(request).share_anonymous_bucket or request.client is None:
        return ANONYMOUS_USER
    return f"{ANONYMOUS_USER}:{request.client.host}"
