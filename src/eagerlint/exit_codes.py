"""Standardized CLI exit codes for eagerlint.

Exit code scheme (POSIX + SAST tool conventions):

    0  SUCCESS        -- command completed, no issues found
    1  GENERAL_ERROR  -- unexpected failure, crash, unhandled exception
    2  USAGE_ERROR    -- invalid arguments, bad flags, bad config (Click default)
    5  GATE_FAILURE   -- N+1 issues were found

CI tools can tell "analysis found issues" (5) apart from "tool crashed" (1).
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_GATE_FAILURE: int = 5

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error",
    EXIT_USAGE: "invalid usage (bad arguments, flags or config)",
    EXIT_GATE_FAILURE: "N+1 issues found",
}

# ---------------------------------------------------------------------------
# Custom exceptions (caught by Click's error handler)
# ---------------------------------------------------------------------------


class EagerlintError(click.ClickException):
    """Base class for eagerlint errors with exit codes."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class ConfigError(EagerlintError):
    """Raised when ``.eagerlint/config.json`` has the wrong shape."""

    def __init__(self, message: str = "Invalid configuration."):
        super().__init__(message, EXIT_USAGE)


class GateFailureError(EagerlintError):
    """Raised when the check found issues and the caller wants an exception."""

    def __init__(self, message: str = "N+1 issues found."):
        super().__init__(message, EXIT_GATE_FAILURE)
