"""Bounded-time, bounded-attempt execution of a single agent run."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from testcrew.agents.types import AgentResult
from testcrew.execution.exceptions import AgentTimeoutError

logger = logging.getLogger(__name__)

RunCallable = Callable[[], Awaitable[AgentResult]]
SleepCallable = Callable[[float], Awaitable[None]]


async def _attempt(run: RunCallable, timeout_seconds: float, name: str) -> AgentResult:
    """Run one attempt, normalizing timeouts and exceptions into failure results."""
    deadline = asyncio.timeout(timeout_seconds)
    try:
        async with deadline:
            result = await run()
    except TimeoutError as e:
        if not deadline.expired():
            # Raised by the agent itself, not by our deadline.
            logger.warning("%s agent raised TimeoutError: %s", name, e)
            return AgentResult.failure(str(e) or "TimeoutError")
        error = AgentTimeoutError(name, timeout_seconds)
        logger.warning("%s", error)
        return AgentResult.failure(str(error), timed_out=True)
    except Exception as e:
        logger.warning("%s agent raised %s: %s", name, type(e).__name__, e)
        return AgentResult.failure(str(e) or type(e).__name__)

    if not isinstance(result, AgentResult):
        return AgentResult.failure(
            f"{name} agent returned {type(result).__name__}, expected AgentResult"
        )
    return result


async def execute_with_policy(
    run: RunCallable,
    timeout_seconds: float,
    max_attempts: int,
    *,
    backoff_seconds: float = 1.0,
    name: str = "agent",
    sleep: SleepCallable = asyncio.sleep,
) -> AgentResult:
    """Execute ``run`` with a per-attempt timeout and linear backoff between retries.

    Returns the first successful result, or the last failure once attempts are
    exhausted. Agent exceptions and timeouts become failure results; the only
    exception this lets through is cancellation of the caller itself.

    The delay before attempt ``k + 1`` is ``k * backoff_seconds``.
    """
    if timeout_seconds <= 0:
        raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempt = 1
    while True:
        result = await _attempt(run, timeout_seconds, name)
        result.attempts = attempt
        if result.success:
            if attempt > 1:
                logger.info("%s agent succeeded on attempt %d", name, attempt)
            return result
        if attempt >= max_attempts:
            break

        delay = attempt * backoff_seconds
        logger.info(
            "%s agent failed (attempt %d/%d), retrying in %.1fs",
            name, attempt, max_attempts, delay,
        )
        await sleep(delay)
        attempt += 1

    logger.warning("%s agent failed after %d attempt(s)", name, max_attempts)
    return result
