"""
AI Usage Log Model - one row per billed evaluation.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime
from ..database import Base


class AiUsageLog(Base):
    """Token accounting for a generation call, with estimated cost in USD."""
    __tablename__ = "ai_usage_logs"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(String(128), nullable=True, index=True)
    subject_id = Column(String(128), nullable=True, index=True)

    model = Column(String(100), nullable=False)
    input_tokens = Column(Integer, default=0, nullable=False)
    output_tokens = Column(Integer, default=0, nullable=False)
    total_cost = Column(Float, default=0.0, nullable=False)
    operation_type = Column(String(20), default="cv_scan", nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
