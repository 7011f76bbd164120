"""
Unified error handling for cfchain.

Every failure surfaced by the orchestration layer is a ``CfChainError``
subclass so callers can tell a server refusal apart from a job failure or
from giving up waiting.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Transport/server error
- 12: Resource lookup error
- 13: Job or staging failure
- 14: Timeout
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    TRANSPORT_ERROR = 11
    LOOKUP_ERROR = 12
    JOB_FAILED = 13
    TIMEOUT = 14
    UNKNOWN_ERROR = 127


class CfChainError(Exception):
    """Base exception for cfchain errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CfChainError):
    """Raised for invalid configuration, before any network call is made."""

    exit_code = ExitCode.CONFIG_ERROR


class TransportError(CfChainError):
    """Raised when the control-plane API cannot be reached or rejects a request."""

    exit_code = ExitCode.TRANSPORT_ERROR


class RetryableHTTPError(TransportError):
    """HTTP errors that should be retried."""


class ClientV2Error(TransportError):
    """A v2 API error payload, rendered as ``CF-<Name>(<code>): <description>``."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        code: int | None,
        description: str,
    ) -> None:
        message = f"{error_code}({code}): {description}"
        super().__init__(
            message,
            details={"status_code": status_code, "error_code": error_code, "code": code},
        )
        self.status_code = status_code
        self.error_code = error_code
        self.code = code
        self.description = description


class ResourceNotFoundError(CfChainError):
    """Raised when a lookup expected a resource and the listing was empty."""

    exit_code = ExitCode.LOOKUP_ERROR


class AmbiguousResourceError(CfChainError):
    """Raised when a lookup expected exactly one resource and got more."""

    exit_code = ExitCode.LOOKUP_ERROR


class JobFailedError(CfChainError):
    """Raised when an asynchronous job reaches the failed state."""

    exit_code = ExitCode.JOB_FAILED

    def __init__(self, job_id: str, error_details: dict[str, Any] | None = None) -> None:
        error_details = error_details or {}
        description = error_details.get("description") or "job failed"
        error_code = error_details.get("error_code")
        if error_code:
            message = f"{error_code}({error_details.get('code')}): {description}"
        else:
            message = description
        super().__init__(message, details={"job_id": job_id})
        self.job_id = job_id
        self.error_details = error_details


class StagingFailedError(CfChainError):
    """Raised when an application package fails to stage."""

    exit_code = ExitCode.JOB_FAILED


class OperationTimeoutError(CfChainError):
    """Base for timeouts: the client gave up waiting, the server did not refuse."""

    exit_code = ExitCode.TIMEOUT


class PollTimeoutError(OperationTimeoutError):
    """Raised when a poll loop exhausts its deadline without a matching state."""


class WorkflowTimeoutError(OperationTimeoutError):
    """Raised when a whole workflow exceeds its overall deadline."""


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Exit codes:
        - CfChainError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except CfChainError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                print(f"Error: {format_error_message(e)}", file=sys.stderr)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: CfChainError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
