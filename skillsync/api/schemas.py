"""
Request and response models for the HTTP API.

Field names on the wire are camelCase to match the web client.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuestionResponse(CamelModel):
    id: str
    text: str
    subject: str
    difficulty: str
    number: int


class SolutionRequest(CamelModel):
    question: str = Field(..., min_length=1)
    subject: str = ""
    difficulty: str = ""


class SolutionResponse(CamelModel):
    solution: str


class HintRequest(CamelModel):
    question: str = Field(..., min_length=1)
    subject: str = ""
    difficulty: str = ""
    hints_used: int = Field(default=0, ge=0, alias="hintsUsed")


class HintResponse(CamelModel):
    hint: str
    hints_remaining: int = Field(..., alias="hintsRemaining")


class CheckAnswerRequest(CamelModel):
    question: str = Field(..., min_length=1)
    user_answer: str = Field(..., min_length=1, alias="userAnswer")
    subject: str = ""
    difficulty: str = ""


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    subjects_processed: int = Field(..., alias="subjectsProcessed")
    uptime_seconds: float = Field(..., alias="uptimeSeconds")
    progress_backend: str = Field(..., alias="progressBackend")


class AttemptRequest(CamelModel):
    user_id: str = Field(..., min_length=1, alias="userId")
    question_id: str = Field(..., min_length=1, alias="questionId")
    subject: str
    difficulty: str
    user_answer: str = Field(default="", alias="userAnswer")
    is_correct: bool = Field(..., alias="isCorrect")
    time_spent: int = Field(default=0, ge=0, alias="timeSpent")
    hints_used: int = Field(default=0, ge=0, alias="hintsUsed")
    major: Optional[str] = None


class AttemptResponse(CamelModel):
    recorded: bool = True
    new_badges: List[str] = Field(default_factory=list, alias="newBadges")


class MarkQuestionRequest(CamelModel):
    question_id: str = Field(..., min_length=1, alias="questionId")
    text: str = ""
    subject: str = ""
    major: Optional[str] = None
    difficulty: str = ""


class MarkQuestionResponse(CamelModel):
    marked: bool = True
    new_badges: List[str] = Field(default_factory=list, alias="newBadges")


class AvatarUpdate(CamelModel):
    animal: Optional[str] = Field(default=None, min_length=1)
    hat: Optional[str] = None
    glasses: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    """Fields left out keep their stored value."""
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, max_length=254)
    major: Optional[str] = None
    avatar: Optional[AvatarUpdate] = None
