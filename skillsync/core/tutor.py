"""
Tutor service: prompt assembly, one oracle round trip, and reconciliation.
"""

import asyncio
import logging
from typing import Callable, Optional

from skillsync.core.prompt.builder import PromptBuilder
from skillsync.core.quota import DailyHintQuota
from skillsync.core.reconciler import (
    AnswerEvaluation,
    clean_ai_response,
    fallback_evaluation,
    reconcile_evaluation,
)
from skillsync.shared.config import settings
from skillsync.shared.exceptions import OracleError, OracleTimeoutError
from skillsync.shared.llm import LLMClient
from skillsync.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)


class TutorService:
    """Solution, hint and answer-checking operations against the oracle."""

    def __init__(
        self,
        quota: DailyHintQuota,
        prompt_builder: Optional[PromptBuilder] = None,
        llm: Optional[LLMClient] = None,
        llm_factory: Callable[[], LLMClient] = LLMClient,
        timeout_seconds: Optional[float] = None,
    ):
        self.quota = quota
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._llm = llm
        self._llm_factory = llm_factory
        self.timeout_seconds = timeout_seconds or settings.llm.timeout_seconds

    @property
    def llm(self) -> LLMClient:
        """Oracle client, created on first use so the app can start without an API key."""
        if self._llm is None:
            self._llm = self._llm_factory()
        return self._llm

    async def _complete(self, prompt: str, action: str) -> str:
        try:
            return await asyncio.wait_for(
                self.llm.get_completion(prompt=prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            log_with_context(
                logger, logging.WARNING, "Oracle call timed out",
                action=action, timeout_seconds=self.timeout_seconds,
            )
            raise OracleTimeoutError(
                f"The AI tutor did not respond within {self.timeout_seconds:g} seconds"
            ) from e
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Oracle call failed: {e}") from e

    async def get_solution(
        self,
        question: str,
        subject: str,
        difficulty: str,
        major: Optional[str] = None,
    ) -> str:
        prompt = self.prompt_builder.solution_prompt(question, subject, difficulty, major)
        try:
            text = await self._complete(prompt, "solution")
        except OracleTimeoutError:
            raise
        except OracleError as e:
            log_with_context(logger, logging.ERROR, f"Error generating solution: {e}", action="solution", major=major)
            raise OracleError("Failed to generate solution") from e
        return clean_ai_response(text)

    async def get_hint(
        self,
        question: str,
        subject: str,
        difficulty: str,
        hints_used: int,
        user_key: str,
        major: Optional[str] = None,
    ) -> str:
        """
        Generate the next hint for a question.

        A quota slot is reserved before the oracle is contacted and given
        back if no hint is delivered, so concurrent requests cannot exceed
        the daily limit.

        Raises:
            QuotaExceededError if today's hints are used up
            OracleError / OracleTimeoutError if the oracle fails
        """
        prompt = self.prompt_builder.hint_prompt(question, subject, difficulty, hints_used, major)
        day = self.quota.reserve(user_key)
        try:
            text = await self._complete(prompt, "hint")
        except OracleTimeoutError:
            self.quota.release(user_key, day)
            raise
        except OracleError as e:
            self.quota.release(user_key, day)
            log_with_context(
                logger, logging.ERROR, f"Error generating hint: {e}",
                user_id=user_key, action="hint", major=major,
            )
            raise OracleError("Failed to generate hint") from e
        except BaseException:
            self.quota.release(user_key, day)
            raise

        return clean_ai_response(text)

    async def check_answer(
        self,
        question: str,
        user_answer: str,
        subject: str,
        difficulty: str,
        major: Optional[str] = None,
    ) -> AnswerEvaluation:
        """Evaluate an answer. Oracle failures degrade to the fallback evaluation."""
        prompt = self.prompt_builder.check_answer_prompt(question, user_answer, subject, difficulty, major)
        try:
            text = await self._complete(prompt, "check_answer")
        except OracleError as e:
            log_with_context(logger, logging.ERROR, f"Error checking answer: {e}", action="check_answer", major=major)
            return fallback_evaluation()
        return reconcile_evaluation(text)

    async def aclose(self):
        if self._llm is not None:
            await self._llm.aclose()
            self._llm = None
