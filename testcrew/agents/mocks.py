"""Mock agents and collaborators for testing and ``--mock`` runs."""

from __future__ import annotations

import asyncio
import time
from typing import Union

from testcrew.agents.types import (
    AgentResult,
    ImprovementPlan,
    ResultBundle,
    Suggestion,
)

ScriptedOutcome = Union[AgentResult, BaseException]


class MockAgent:
    """Mock agent that replays a script of results or exceptions.

    Each ``run()`` consumes the next scripted entry; the last entry repeats once
    the script is exhausted. Exceptions in the script are raised instead of
    returned. ``hang=True`` makes every call block until cancelled.
    """

    description: str = "Mock agent for testing"

    def __init__(
        self,
        name: str = "mock",
        results: ScriptedOutcome | list[ScriptedOutcome] | None = None,
        delay: float = 0.0,
        hang: bool = False,
        call_log: list[str] | None = None,
    ) -> None:
        self.name = name
        if results is None:
            results = [AgentResult(success=True, details={"output": f"{name} ok"})]
        elif not isinstance(results, list):
            results = [results]
        self._script = results
        self._delay = delay
        self._hang = hang
        self._call_log = call_log
        self.call_count: int = 0
        self.prepare_count: int = 0
        self.cancelled_count: int = 0
        self.started_at: list[float] = []
        self.finished_at: list[float] = []

    async def prepare(self) -> None:
        self.prepare_count += 1

    async def run(self) -> AgentResult:
        self.call_count += 1
        self.started_at.append(time.monotonic())
        if self._call_log is not None:
            self._call_log.append(self.name)
        entry = self._script[min(self.call_count - 1, len(self._script) - 1)]
        try:
            if self._hang:
                await asyncio.Event().wait()
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled_count += 1
            raise
        finally:
            self.finished_at.append(time.monotonic())
        if isinstance(entry, BaseException):
            raise entry
        return entry


class MockReporter:
    """Mock reporter that records calls and optionally raises."""

    def __init__(
        self,
        error: Exception | None = None,
        call_log: list[str] | None = None,
    ) -> None:
        self._error = error
        self._call_log = call_log
        self.call_count: int = 0
        self.last_results: ResultBundle | None = None

    async def generate(self, results: ResultBundle) -> str:
        self.call_count += 1
        self.last_results = results
        if self._call_log is not None:
            self._call_log.append("reporter")
        if self._error is not None:
            raise self._error
        return f"# Test Report\n\nGenerated: {results.timestamp}\n"


class MockCoder:
    """Mock coder that returns a canned plan and optionally raises."""

    def __init__(
        self,
        plan: ImprovementPlan | None = None,
        error: Exception | None = None,
        call_log: list[str] | None = None,
    ) -> None:
        self._plan = plan or ImprovementPlan(
            suggestions=[
                Suggestion(
                    priority="low",
                    category="testing",
                    title="Keep tests green",
                    description="Mock suggestion",
                    action="Nothing to do",
                )
            ]
        )
        self._error = error
        self._call_log = call_log
        self.call_count: int = 0
        self.last_results: ResultBundle | None = None

    async def analyze(self, results: ResultBundle) -> ImprovementPlan:
        self.call_count += 1
        self.last_results = results
        if self._call_log is not None:
            self._call_log.append("coder")
        if self._error is not None:
            raise self._error
        return self._plan
