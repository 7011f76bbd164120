"""Core modules for cfchain - centralized error definitions."""

from cfchain.core.errors import (
    AmbiguousResourceError,
    CfChainError,
    ClientV2Error,
    ConfigurationError,
    ExitCode,
    JobFailedError,
    OperationTimeoutError,
    PollTimeoutError,
    ResourceNotFoundError,
    RetryableHTTPError,
    StagingFailedError,
    TransportError,
    WorkflowTimeoutError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "CfChainError",
    "ConfigurationError",
    "TransportError",
    "RetryableHTTPError",
    "ClientV2Error",
    "ResourceNotFoundError",
    "AmbiguousResourceError",
    "JobFailedError",
    "StagingFailedError",
    "OperationTimeoutError",
    "PollTimeoutError",
    "WorkflowTimeoutError",
    "main_with_error_handling",
    "format_error_message",
]
