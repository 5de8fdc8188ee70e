from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every successful progression response."""
    message: str = Field(..., description="What happened, e.g. 'Quiz not passed'.")
    data: Optional[DataType] = Field(None, description="Snapshot, lesson state or quiz result.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Stable machine code: FORBIDDEN, NOT_FOUND, CONFLICT, VALIDATION_ERROR ...")
    message: str = Field(..., description="Human-readable reason")
    details: Optional[Dict[str, Any]] = Field(None, description="Field errors or exception type")

class ErrorResponse(BaseModel):
    """Uniform body for every 4xx/5xx the service returns."""
    error: ErrorDetail
    status: int = Field(..., description="HTTP status code, repeated for clients that only see the body")
    timestamp: str = Field(..., description="ISO 8601 timestamp of error")
    path: str = Field(..., description="Request path that caused the error")
    request_id: str = Field(..., description="Matches the X-Request-ID response header")
