"""
Error taxonomy for the evaluation engine.

Transient failures (rate limit, overload, quota) are retried inside the
generation client; if they survive every model they surface as
RateLimitError and must reach the caller. Configuration failures abort
the whole generation call. Malformed AI output and malformed resume data
never raise.
"""
from typing import List, Optional, Tuple


class CVEngineError(Exception):
    """Base class for all engine errors."""
    pass


class GenerationError(CVEngineError):
    """A call to the text-generation service failed."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model


class ModelConfigurationError(GenerationError):
    """Credentials or configuration are invalid; no model can succeed."""
    pass


class AllModelsFailedError(GenerationError):
    """Every configured model was tried and none produced a response."""

    def __init__(self, message: str, failures: Optional[List[Tuple[str, Exception]]] = None):
        super().__init__(message)
        self.failures = failures or []


class RateLimitError(AllModelsFailedError):
    """
    The service kept signalling rate limit / quota exhaustion.

    Raised instead of a degraded result so that no placeholder score is
    ever persisted for a request that was never evaluated.
    """

    def __init__(self, message: str = "Rate Limited (429): Too many requests. Please slow down.",
                 failures: Optional[List[Tuple[str, Exception]]] = None):
        if "Rate Limited (429)" not in message:
            message = f"Rate Limited (429): {message}"
        super().__init__(message, failures)


class EvaluationTimeoutError(CVEngineError):
    """The overall evaluation deadline expired before both tasks finished."""
    pass
