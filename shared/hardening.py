"""User-facing error formatting for the Assay HTTP layer.

Converts internal exceptions into structured, jargon-free messages with
an actionable suggestion and a machine-readable error code. Input
validation errors carry their reason in a separate ``reason`` field so the
caller can fix the data; the exception repr is kept for logs only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class UserFriendlyError:
    """A structured error designed for end-user consumption.

    Attributes:
        message: Clear description for the user.
        suggestion: Actionable guidance.
        component: Originating subsystem.
        error_code: Machine-readable identifier (e.g. "DIAG_005").
        reason: What was wrong with the input, when the error is an input
            validation error. Empty otherwise.
        technical_detail: Debugging info for logs only -- never shown to users.
    """

    message: str
    suggestion: str
    component: str
    error_code: str
    reason: str = ""
    technical_detail: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize for API responses (excludes technical_detail).

        Returns:
            Dictionary safe for sending to end users.
        """
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "component": self.component,
            "error_code": self.error_code,
            "reason": self.reason,
        }


class ErrorFormatter:
    """Convert internal exceptions to user-friendly messages.

    All methods return a ``UserFriendlyError``. Stack traces and exception
    reprs stay in the log; only validation reasons reach the end user.
    """

    def format_diagnostic_error(self, error: Exception) -> UserFriendlyError:
        """Format an error raised while diagnosing loss curves.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, component="assay", code_prefix="DIAG")

    # ------------------------------------------------------------------

    def _format(
        self,
        error: Exception,
        *,
        component: str,
        code_prefix: str,
    ) -> UserFriendlyError:
        """Shared formatting logic.

        Args:
            error: The caught exception.
            component: Subsystem name.
            code_prefix: Short prefix for error code.

        Returns:
            Structured error with safe user message.
        """
        message, suggestion, code_suffix = _classify_error(error)
        formatted = UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component=component,
            error_code=f"{code_prefix}_{code_suffix}",
            reason=str(error) if isinstance(error, ValueError) else "",
            technical_detail=repr(error),
        )
        logger.warning("%s: %s", formatted.error_code, formatted.technical_detail)
        return formatted


def _classify_error(error: Exception) -> tuple[str, str, str]:
    """Map an exception to (message, suggestion, code_suffix).

    Args:
        error: The caught exception.

    Returns:
        Tuple of user message, suggestion text, and error code suffix.
    """
    if isinstance(error, ValueError):
        return (
            "The loss data could not be analyzed.",
            "Send at least two non-negative, finite loss values per curve, "
            "with the same number of iterations for training and validation.",
            "005",
        )
    return (
        "An unexpected error occurred.",
        "If this keeps happening, please report the issue.",
        "999",
    )
