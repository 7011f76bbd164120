"""Composition helpers for multi-step asynchronous workflows."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

import structlog

from cfchain.core.errors import WorkflowTimeoutError

logger = structlog.get_logger()

T = TypeVar("T")


async def join(*steps: Awaitable[Any]) -> tuple[Any, ...]:
    """
    Run independent steps concurrently and return their results in order.

    The first step to fail decides the outcome: its exception is raised,
    the siblings still in flight are cancelled, and no partial tuple is
    ever returned. Cancelling a sibling only abandons the client-side wait.
    """
    tasks = [asyncio.ensure_future(step) for step in steps]
    try:
        pending: set[asyncio.Future[Any]] = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            failed = [task for task in tasks if task in done and task.exception() is not None]
            if failed:
                raise failed[0].exception()  # type: ignore[misc]
        return tuple(task.result() for task in tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


async def with_deadline(step: Awaitable[T], timeout: float, *, operation: str = "workflow") -> T:
    """
    Await ``step`` under an overall deadline.

    On expiry the whole chain is cancelled and ``WorkflowTimeoutError`` is
    raised. A ``TimeoutError`` raised by ``step`` itself propagates as is.
    Mutations already sent to the server are not rolled back.
    """
    deadline = asyncio.timeout(timeout)
    try:
        async with deadline:
            return await step
    except TimeoutError as exc:
        if not deadline.expired():
            raise
        logger.warning("workflow_timeout", operation=operation, timeout=timeout)
        raise WorkflowTimeoutError(
            f"{operation} did not complete within {timeout}s",
            details={"operation": operation, "timeout": timeout},
        ) from exc
