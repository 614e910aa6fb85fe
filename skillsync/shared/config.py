"""
Configuration management for SkillSync.
Loads from config/skillsync.yaml and environment variables.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiConfig(BaseSettings):
    """API server configuration."""
    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=5000, alias="API_PORT")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore", populate_by_name=True)


class LLMConfig(BaseSettings):
    """Generative-AI oracle configuration."""
    provider: str = Field(default="gemini", alias="LLM_PROVIDER")  # gemini, openai, anthropic
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    default_model: str = Field(default="gemini-2.5-flash", alias="LLM_DEFAULT_MODEL")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta/models")
    temperature: float = Field(default=0.2)
    max_tokens: int = Field(default=2000)
    timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")
    max_input_chars: int = Field(default=4000)

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore", populate_by_name=True)


class MajorSource(BaseModel):
    """Where one major's question files live and how their names map to subject keys."""
    directory: str
    aliases: Dict[str, str] = Field(default_factory=dict)


def _default_majors() -> Dict[str, MajorSource]:
    return {
        "finance": MajorSource(
            directory="finance",
            aliases={
                "introductory personal finance": "introductory_personal_finance",
                "pof questions": "principles_of_finance",
                "priniciples of management": "principles_of_management",
                "quantitative methods 2": "quantitative_methods_2",
            },
        ),
        "law": MajorSource(
            directory="law",
            aliases={
                "accounting for commercial lawyers": "accounting_for_commercial_lawyers",
                "company takeovers": "company_takeovers",
                "corporate governance & directors' duties": "corporate_governance_directors_duties",
                "principles of corporate law": "principles_of_corporate_law",
            },
        ),
        "biomed": MajorSource(
            directory="biomed",
            aliases={"biomed test": "biomedical_fundamentals"},
        ),
    }


class QuestionBankConfig(BaseSettings):
    """Question corpus location."""
    root: Path = Field(default=Path("data/questions"), alias="QUESTION_BANK_ROOT")
    majors: Dict[str, MajorSource] = Field(default_factory=_default_majors)

    model_config = SettingsConfigDict(env_prefix="QUESTION_BANK_", extra="ignore", populate_by_name=True)


class HintConfig(BaseSettings):
    """Hint quota configuration."""
    daily_limit: int = Field(default=5, alias="HINT_DAILY_LIMIT")
    share_anonymous_bucket: bool = Field(default=False, alias="HINT_SHARE_ANONYMOUS_BUCKET")

    model_config = SettingsConfigDict(env_prefix="HINT_", extra="ignore", populate_by_name=True)


class ProgressConfig(BaseSettings):
    """Progress store configuration."""
    backend: str = Field(default="fallback", alias="PROGRESS_BACKEND")  # sqlite, memory, fallback
    db_path: Path = Field(default=Path("data/progress.sqlite"), alias="PROGRESS_DB_PATH")
    circuit_breaker_failure_threshold: int = Field(default=3)
    circuit_breaker_reset_seconds: int = Field(default=60)

    model_config = SettingsConfigDict(env_prefix="PROGRESS_", extra="ignore", populate_by_name=True)


class SkillSyncSettings(BaseSettings):
    """Main SkillSync configuration."""
    env: str = Field(default="dev", alias="SKILLSYNC_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=Path("logs/skillsync.log"), alias="LOG_FILE")

    # Sub-configurations
    api: ApiConfig = Field(default_factory=ApiConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    question_bank: QuestionBankConfig = Field(default_factory=QuestionBankConfig)
    hints: HintConfig = Field(default_factory=HintConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    @classmethod
    def load_from_yaml(cls, config_path: Optional[Path] = None) -> "SkillSyncSettings":
        """Load settings from YAML file and merge with environment variables."""
        if config_path is None:
            config_path = Path(os.environ.get("SKILLSYNC_CONFIG", "config/skillsync.yaml"))

        config_dict: Dict[str, Any] = {}

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
                config_dict = yaml_data.get("skillsync", {}) or {}

        # Sub-sections are merged over their env-derived defaults so that
        # secrets such as API keys can stay out of the YAML file.
        sections = {
            "api": ApiConfig,
            "llm": LLMConfig,
            "question_bank": QuestionBankConfig,
            "hints": HintConfig,
            "progress": ProgressConfig,
        }
        for name, section_cls in sections.items():
            overrides = config_dict.get(name)
            if isinstance(overrides, dict):
                base = section_cls().model_dump()
                base.update(overrides)
                config_dict[name] = section_cls.model_validate(base)

        return cls(**config_dict)


# Global settings instance
_settings: Optional[SkillSyncSettings] = None


def get_settings() -> SkillSyncSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = SkillSyncSettings.load_from_yaml()
    return _settings


# Alias for convenience
settings = get_settings()
