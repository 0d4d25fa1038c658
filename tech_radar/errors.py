"""
Error taxonomy for the radar engines.

Engines raise these internally; the TechRadar facade converts them to
ErrorInfo so callers across process boundaries can branch on `code`.
"""

from typing import Any, Dict, List, Optional

from tech_radar.models.results import ErrorCode, ErrorInfo


class RadarError(Exception):
    """Base class for all radar errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    recoverable: bool = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            code=self.code.value,
            message=self.message,
            recoverable=self.recoverable,
            details=self.details or None,
        )


class ValidationError(RadarError):
    """Entry failed validation; the caller must correct and resubmit."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        super().__init__(", ".join(errors), details={"errors": list(errors), **(details or {})})
        self.errors = list(errors)


class NotFound(RadarError):
    """Operation referenced an unknown entity id."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} with ID {entity_id} not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity_id = entity_id


class Conflict(RadarError):
    """Optimistic version mismatch or a forbidden state transition."""

    code = ErrorCode.CONFLICT

    def __init__(
        self,
        message: str,
        entity_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        details: Dict[str, Any] = {}
        if entity_id is not None:
            details["id"] = entity_id
        if expected_version is not None:
            details["expected_version"] = expected_version
        if actual_version is not None:
            details["actual_version"] = actual_version
        super().__init__(message, details=details)


class SchedulingInconsistency(RadarError):
    """Deprecation dates are out of order; a configuration problem."""

    code = ErrorCode.SCHEDULING_INCONSISTENCY
    recoverable = False
