"""
Question, solution, hint and answer-checking endpoints, one router per major.
"""

import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Request

from skillsync.api.dependencies import (
    get_progress,
    get_repository,
    get_tutor,
    get_user_id,
    resolve_hint_user_key,
)
from skillsync.api.schemas import (
    CheckAnswerRequest,
    HintRequest,
    HintResponse,
    QuestionResponse,
    SolutionRequest,
    SolutionResponse,
)
from skillsync.core.questions.repository import MAJORS, QuestionRepository
from skillsync.core.reconciler import AnswerEvaluation
from skillsync.core.tutor import TutorService
from skillsync.progress.aggregator import ProgressAggregator
from skillsync.shared.exceptions import ProgressStoreError
from skillsync.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)


def _record_usage(record: Callable[[str], List[str]], user_id: str, action: str, major: str):
    """Count a delivered hint or solution; a store failure must not fail the response."""
    try:
        record(user_id)
    except ProgressStoreError as e:
        log_with_context(
            logger, logging.WARNING, f"Could not record {action} usage: {e}",
            user_id=user_id, action=action, major=major,
        )


def build_router(major: str) -> APIRouter:
    """Create the /api/{major}-questions router."""
    router = APIRouter(prefix=f"/api/{major}-questions", tags=[f"{major}-questions"])

    @router.get("/{subject}/{difficulty}/{index}", response_model=QuestionResponse)
    async def get_question(
        subject: str,
        difficulty: str,
        index: int,
        repository: QuestionRepository = Depends(get_repository),
    ):
        question = repository.get(major, subject, difficulty, index)
        return QuestionResponse(
            id=question.id,
            text=question.text,
            subject=question.subject,
            difficulty=difficulty,
            number=index + 1,
        )

    @router.post("/solution", response_model=SolutionResponse)
    async def get_solution(
        body: SolutionRequest,
        tutor: TutorService = Depends(get_tutor),
        progress: ProgressAggregator = Depends(get_progress),
        user_id: Optional[str] = Depends(get_user_id),
    ):
        solution = await tutor.get_solution(body.question, body.subject, body.difficulty, major)
        if user_id:
            _record_usage(progress.record_solution_viewed, user_id, "solution", major)
        return SolutionResponse(solution=solution)

    @router.post("/hint", response_model=HintResponse)
    async def get_hint(
        body: HintRequest,
        request: Request,
        tutor: TutorService = Depends(get_tutor),
        progress: ProgressAggregator = Depends(get_progress),
        user_id: Optional[str] = Depends(get_user_id),
    ):
        user_key = resolve_hint_user_key(request, user_id)
        hint = await tutor.get_hint(
            body.question, body.subject, body.difficulty, body.hints_used, user_key, major
        )
        if user_id:
            _record_usage(progress.record_hint_used, user_id, "hint", major)
        return HintResponse(hint=hint, hints_remaining=tutor.quota.remaining(user_key))

    @router.post("/check-answer", response_model=AnswerEvaluation)
    async def check_answer(
        body: CheckAnswerRequest,
        tutor: TutorService = Depends(get_tutor),
    ):
        return await tutor.check_answer(
            body.question, body.user_answer, body.subject, body.difficulty, major
        )

    return router


routers = [build_router(major) for major in MAJORS]
