"""
Result models returned across the public surface.

Errors never escape the radar facade as exceptions. Each operation
returns an OperationResult:

    {
        "status": "success | failed",
        "data": { ... } | null,
        "error": { "code": "...", "message": "...", "recoverable": bool } | null
    }
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

from tech_radar.utils import utcnow

T = TypeVar("T")


class ResultStatus(str, Enum):
    """Status of an operation result."""
    SUCCESS = "success"
    FAILED = "failed"


class ErrorCode(str, Enum):
    """Machine-readable error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SCHEDULING_INCONSISTENCY = "SCHEDULING_INCONSISTENCY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorInfo(BaseModel):
    """
    Error information for failed operations.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable error message
        recoverable: Whether the caller can correct and retry
        details: Additional error details
        timestamp: When the error occurred
    """
    code: str
    message: str
    recoverable: bool = True
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_exception(cls, e: Exception, code: str = ErrorCode.INTERNAL_ERROR.value) -> "ErrorInfo":
        """Create ErrorInfo from an exception."""
        return cls(
            code=code,
            message=str(e),
            recoverable=False,
            details={"exception_type": type(e).__name__},
        )


class OperationResult(BaseModel, Generic[T]):
    """
    Result of a radar operation.

    Attributes:
        status: success or failed
        data: Operation output (entry, notice, snapshot, ...)
        error: Error information if failed
    """
    status: ResultStatus
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @property
    def success(self) -> bool:
        """Check if the operation succeeded."""
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def create_success(cls, data: Any = None) -> "OperationResult":
        """Create a successful result."""
        return cls(status=ResultStatus.SUCCESS, data=data)

    @classmethod
    def create_failure(cls, error: ErrorInfo) -> "OperationResult":
        """Create a failed result."""
        return cls(status=ResultStatus.FAILED, error=error)


class ValidationResult(BaseModel):
    """Outcome of validating an entry; carries every violation at once."""
    valid: bool
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))
