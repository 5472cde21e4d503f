from typing import Literal, Optional
from pydantic import BaseModel


OperationType = Literal["cv_scan", "cv_parse", "chat", "other"]


class UsageEntry(BaseModel):
    requester_id: Optional[str] = None
    subject_id: Optional[str] = None
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0
    operation_type: OperationType = "cv_scan"


