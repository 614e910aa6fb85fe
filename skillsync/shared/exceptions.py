"""
Exception hierarchy for SkillSync.
"""


class SkillSyncError(Exception):
    """Base exception for all SkillSync errors."""
    pass


class QuestionNotFoundError(SkillSyncError):
    """Raised when a subject, difficulty or question index does not exist."""
    pass


class QuotaExceededError(SkillSyncError):
    """Raised when a user has used up today's hint quota."""

    def __init__(self, message: str = "Daily hint limit exceeded", user_key: str = ""):
        super().__init__(message)
        self.user_key = user_key


class OracleError(SkillSyncError):
    """Raised when the generative-AI oracle cannot produce a response."""
    pass


class OracleTimeoutError(OracleError):
    """Raised when the oracle does not answer within the configured bound."""
    pass


class ProgressStoreError(SkillSyncError):
    """Raised when a progress store operation fails."""
    pass


class CircuitBreakerOpenError(SkillSyncError):
    """Raised when circuit breaker is open and operation is blocked."""
    pass
