"""Tests for core/errors.py."""

from cfchain.core.errors import (
    ClientV2Error,
    ExitCode,
    JobFailedError,
    PollTimeoutError,
    RetryableHTTPError,
    TransportError,
    format_error_message,
    main_with_error_handling,
)


def test_client_error_message():
    error = ClientV2Error(404, "CF-ServiceBrokerNotFound", 270004, "The service broker was not found: b-1")

    assert str(error) == "CF-ServiceBrokerNotFound(270004): The service broker was not found: b-1"
    assert isinstance(error, TransportError)
    assert error.exit_code == ExitCode.TRANSPORT_ERROR


def test_job_failure_without_details():
    error = JobFailedError("job-1")

    assert str(error) == "job failed"
    assert error.details == {"job_id": "job-1"}


def test_timeouts_are_distinct_from_server_errors():
    assert not issubclass(PollTimeoutError, TransportError)
    assert PollTimeoutError("late").exit_code == ExitCode.TIMEOUT


def test_format_error_message_includes_details():
    error = RetryableHTTPError("HTTP 503", details={"path": "/v2/jobs/j"})

    assert format_error_message(error) == "HTTP 503 (path=/v2/jobs/j)"


def test_decorator_maps_errors_to_exit_codes():
    @main_with_error_handling(log_errors=False)
    def fails() -> int:
        raise PollTimeoutError("gave up")

    @main_with_error_handling(log_errors=False)
    def explodes() -> int:
        raise RuntimeError("boom")

    @main_with_error_handling(log_errors=False)
    def succeeds() -> int:
        return 0

    assert fails() == ExitCode.TIMEOUT
    assert explodes() == ExitCode.UNKNOWN_ERROR
    assert succeeds() == 0
