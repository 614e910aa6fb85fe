"""
Service container wiring the question bank, tutor, hint quota and progress store.
"""

from dataclasses import dataclass
from typing import Optional

from skillsync.core.prompt.builder import PromptBuilder
from skillsync.core.questions.repository import QuestionRepository
from skillsync.core.quota import DailyHintQuota
from skillsync.core.tutor import TutorService
from skillsync.progress.aggregator import ProgressAggregator
from skillsync.progress.store import ProgressStore, build_progress_store
from skillsync.shared.config import SkillSyncSettings, settings as default_settings
from skillsync.shared.llm import LLMClient


@dataclass
class PracticeServices:
    """Everything a request handler needs, held on app.state."""
    repository: QuestionRepository
    quota: DailyHintQuota
    tutor: TutorService
    progress: ProgressAggregator
    share_anonymous_bucket: bool = False

    @property
    def progress_store(self) -> ProgressStore:
        return self.progress.store

    @classmethod
    def from_settings(cls, config: Optional[SkillSyncSettings] = None) -> "PracticeServices":
        config = config or default_settings

        repository = QuestionRepository.load(config.question_bank.root, config.question_bank.majors)
        quota = DailyHintQuota(limit=config.hints.daily_limit)
        tutor = TutorService(
            quota,
            prompt_builder=PromptBuilder(max_input_chars=config.llm.max_input_chars),
            llm_factory=LLMClient,
            timeout_seconds=config.llm.timeout_seconds,
        )
        store = build_progress_store(config.progress.backend, config.progress.db_path)

        return cls(
            repository=repository,
            quota=quota,
            tutor=tutor,
            progress=ProgressAggregator(store),
            share_anonymous_bucket=config.hints.share_anonymous_bucket,
        )
