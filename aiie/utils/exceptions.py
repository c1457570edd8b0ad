"""
Custom Exception Hierarchy

Specific exception types for the appropriateness engine, each carrying
structured error information for API responses.

Denied session transitions are NOT exceptions; see
`aiie.core.session.state.DenialReason`.
"""
from typing import Optional, Dict, Any


class AppropriatenessError(Exception):
    """Base exception for all appropriateness engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class InputError(AppropriatenessError):
    """Malformed clinical input or imaging catalog, raised before ranking."""

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INPUT_ERROR",
            details={"field": field, **(details or {})}
        )
        self.field = field


class RuleTableError(AppropriatenessError):
    """The declarative rule table is malformed."""

    def __init__(
        self,
        message: str,
        rule_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RULE_TABLE_ERROR",
            details={"rule_id": rule_id, **(details or {})}
        )
        self.rule_id = rule_id


class RuleEvaluationError(AppropriatenessError):
    """A rule failed while a ranking call was in progress."""

    def __init__(
        self,
        message: str,
        rule_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RULE_EVALUATION_ERROR",
            details={"rule_id": rule_id, **(details or {})}
        )
        self.rule_id = rule_id


class CaseNotFoundError(AppropriatenessError):
    """Requested case id is not in the repository."""

    def __init__(
        self,
        case_id: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Case not found: {case_id}",
            code="CASE_NOT_FOUND",
            details={"case_id": case_id, **(details or {})}
        )
        self.case_id = case_id
