"""Tests for orchestration/compose.py."""

import asyncio
import time

import pytest

from cfchain.core.errors import ClientV2Error, OperationTimeoutError, WorkflowTimeoutError
from cfchain.orchestration.compose import join, with_deadline


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(error, delay=0.0):
    await asyncio.sleep(delay)
    raise error


@pytest.mark.asyncio
async def test_join_returns_results_in_argument_order():
    result = await join(_value("space", delay=0.02), _value("domain"))

    assert result == ("space", "domain")


@pytest.mark.asyncio
async def test_join_runs_steps_concurrently():
    started = time.monotonic()

    await join(_value(1, delay=0.1), _value(2, delay=0.1), _value(3, delay=0.1))

    assert time.monotonic() - started < 0.25


@pytest.mark.asyncio
async def test_join_failure_discards_successful_sibling():
    error = ClientV2Error(400, "CF-SpaceNameTaken", 40002, "The app space name is taken: dev")

    with pytest.raises(ClientV2Error) as exc_info:
        await join(_value("space"), _fail(error, delay=0.01))

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_join_first_failure_wins_and_cancels_stragglers():
    slow_finished = False

    async def slow():
        nonlocal slow_finished
        await asyncio.sleep(0.2)
        slow_finished = True
        return "late"

    with pytest.raises(RuntimeError, match="first"):
        await join(slow(), _fail(RuntimeError("first"), delay=0.01), _fail(ValueError("second"), delay=0.1))

    await asyncio.sleep(0.25)
    assert slow_finished is False


@pytest.mark.asyncio
async def test_with_deadline_passes_result_through():
    assert await with_deadline(_value("done"), 1.0) == "done"


@pytest.mark.asyncio
async def test_with_deadline_raises_workflow_timeout():
    with pytest.raises(WorkflowTimeoutError) as exc_info:
        await with_deadline(_value("never", delay=1.0), 0.05, operation="push broker")

    assert isinstance(exc_info.value, OperationTimeoutError)
    assert exc_info.value.details["operation"] == "push broker"


@pytest.mark.asyncio
async def test_with_deadline_unwinds_nested_join():
    reached = []

    async def chain():
        await join(_value(1, delay=0.01), _value(2, delay=0.01))
        reached.append("joined")
        await asyncio.sleep(1.0)
        reached.append("after")

    with pytest.raises(WorkflowTimeoutError):
        await with_deadline(chain(), 0.1)

    assert reached == ["joined"]


@pytest.mark.asyncio
async def test_with_deadline_keeps_step_timeouts():
    with pytest.raises(TimeoutError, match="upstream") as exc_info:
        await with_deadline(_fail(TimeoutError("upstream"), delay=0.01), 1.0)

    assert not isinstance(exc_info.value, WorkflowTimeoutError)
