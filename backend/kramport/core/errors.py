"""Error Hierarchy — typed, categorized exceptions for Kramport failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Per-block resolution failures are NEVER raised: they become SkipReason records
    - Only the root document fetch and configuration problems surface as exceptions
    - to_dict() produces a flat envelope suitable for structured logs

Design Decisions:
    - Single hierarchy with KramportError base: callers catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CONFIGURATION = "configuration"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    doc_id: str | None = None
    block_id: str | None = None
    depth: int | None = None
    debug_info: dict[str, Any] | None = None


class KramportError(Exception):
    """Base exception for all Kramport errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a standardized error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "doc_id": self.context.doc_id,
                    "block_id": self.context.block_id,
                    "depth": self.context.depth,
                },
            }
        }


# ─── Caller Errors ──────────────────────────────────────────────

class ConfigurationError(KramportError):
    """Required setting missing or invalid."""
    def __init__(self, message: str, setting: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context,
        )
        self.setting = setting


class ResourceNotFoundError(KramportError):
    """Requested document or block does not exist or has no content."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Infrastructure Errors ──────────────────────────────────────

class KernelAPIError(KramportError):
    """Document-store kernel call failed (transport, HTTP status, or API code)."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        api_code: int | None = None,
        timed_out: bool = False,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Kernel API error: {message}",
            "KERNEL_TIMEOUT" if timed_out else "KERNEL_API_ERROR",
            ErrorCategory.TIMEOUT if timed_out else ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context,
        )
        self.status_code = status_code
        self.api_code = api_code
        self.timed_out = timed_out
