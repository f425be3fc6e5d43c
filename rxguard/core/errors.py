"""Error Hierarchy — typed, categorized exceptions for all RxGuard failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Recoverable outcomes (missing input, label not found, ambiguous label) are
      NOT exceptions — they are ResolutionOutcome variants answered with CLARIFY
    - Upstream, identity, integrity and storage failures are fatal and propagate
    - BaselineModelError is always caught per model and never reaches the caller
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with RxGuardError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    drug_query: str | None = None
    doc_id: str | None = None
    model: str | None = None
    debug_info: dict[str, Any] | None = None


class RxGuardError(Exception):
    """Base exception for all RxGuard errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "drug_query": self.context.drug_query,
                    "doc_id": self.context.doc_id,
                    "model": self.context.model,
                },
            }
        }


# ─── Evidence Errors ────────────────────────────────────────────

class MissingIdentityError(RxGuardError):
    """Label record lacks set_id/effective_time — cannot be pinned."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "openFDA record missing set_id/effective_time; cannot pin evidence.",
            "LABEL_IDENTITY_MISSING", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )


class EvidenceIntegrityError(RxGuardError):
    """Snapshot content does not match its evidence hash or section schema."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "EVIDENCE_INTEGRITY_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class UpstreamError(RxGuardError):
    """Label source returned a non-2xx, non-404 status or an unusable payload."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        status_code: int | None = None,
        body_excerpt: str = "",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"openFDA error ({api_error_type}): {message}",
            "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.api_error_type = api_error_type
        self.status_code = status_code
        self.body_excerpt = body_excerpt


class DatabaseError(RxGuardError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class BlobStoreError(RxGuardError):
    """Overflow evidence blob could not be read or written."""
    def __init__(self, message: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"Blob store failure at '{path}': {message}",
            "BLOB_STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.path = path


class BaselineModelError(RxGuardError):
    """Baseline collaborator call failed (HTTP, timeout, or malformed response)."""
    def __init__(
        self, message: str, api_error_type: str, context: ErrorContext | None = None,
    ):
        category = (
            ErrorCategory.TIMEOUT if api_error_type == "timeout"
            else ErrorCategory.EXTERNAL_API
        )
        super().__init__(
            message, "BASELINE_MODEL_ERROR", category,
            ErrorSeverity.WARNING, context, 502,
        )
        self.api_error_type = api_error_type
