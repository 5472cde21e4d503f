from .usage import AiUsageLog

__all__ = [
    "AiUsageLog",
]
