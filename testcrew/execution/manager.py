"""Test manager: schedules the agents, aggregates results and dispatches reporting."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable

from testcrew.agents.protocol import Coder, Reporter
from testcrew.agents.registry import AgentRegistry
from testcrew.agents.types import (
    AgentResult,
    AgentSettings,
    ResultBundle,
    Summary,
    utc_timestamp,
)
from testcrew.execution.config import ManagerConfig
from testcrew.execution.dispatch import DispatchResult, dispatch_reports
from testcrew.execution.exceptions import AgentTimeoutError
from testcrew.execution.policy import SleepCallable, execute_with_policy
from testcrew.execution.summary import get_summary

logger = logging.getLogger(__name__)


class TestManager:
    """Coordinates the lint, unit, API and E2E agents for one project.

    Usage:
        manager = TestManager(config, registry, reporter=reporter, coder=coder)
        results = await manager.run_all()
        summary = manager.get_summary()
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        config: ManagerConfig,
        registry: AgentRegistry,
        reporter: Reporter | None = None,
        coder: Coder | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepCallable = asyncio.sleep,
    ) -> None:
        self._config = config.snapshot()
        self._registry = registry
        self._reporter = reporter
        self._coder = coder
        self._clock = clock
        self._sleep = sleep
        self._results = ResultBundle()
        self._dispatch: DispatchResult | None = None

    @property
    def config(self) -> ManagerConfig:
        return self._config

    @property
    def results(self) -> ResultBundle:
        return self._results

    @property
    def dispatch_result(self) -> DispatchResult | None:
        return self._dispatch

    def enabled_agents(self) -> list[str]:
        return self._config.agents.enabled()

    async def run_all(self) -> ResultBundle:
        """Run every enabled agent, then report. Returns the completed bundle."""
        logger.info("Test manager: starting test suite")
        self._results = ResultBundle(timestamp=utc_timestamp())
        self._dispatch = None

        self._ensure_output_dir()

        if self._config.parallel:
            await self.run_parallel()
        else:
            await self.run_sequential()

        self._results.summary = self.get_summary()
        self._dispatch = await dispatch_reports(self._results, self._reporter, self._coder)

        logger.info("Test manager: all agents completed")
        return self._results

    async def run_sequential(self) -> None:
        """Run enabled agents one at a time in fixed order, honoring fail-fast."""
        for name in self.enabled_agents():
            result = await self.run_agent(name)
            self._results.set(name, result)
            if self._config.fail_fast and not result.success:
                remaining = self.enabled_agents()
                skipped = remaining[remaining.index(name) + 1:]
                if skipped:
                    logger.warning(
                        "Fail-fast: %s failed, skipping %s", name, ", ".join(skipped)
                    )
                break

    async def run_parallel(self) -> None:
        """Launch every enabled agent concurrently. Fail-fast does not apply."""

        async def _run_into_slot(name: str) -> None:
            self._results.set(name, await self.run_agent(name))

        await asyncio.gather(*[_run_into_slot(name) for name in self.enabled_agents()])

    async def run_agent(self, name: str) -> AgentResult:
        """Build, prepare and run one agent under the retry/timeout policy."""
        logger.info("Running %s agent", name)
        started = self._clock()
        try:
            result = await self._run_agent(name)
        finally:
            self._results.timings[name] = self._clock() - started

        if result.success:
            logger.info("%s agent completed", name)
        else:
            logger.error("%s agent failed: %s", name, result.error or "reported failure")
        return result

    async def _run_agent(self, name: str) -> AgentResult:
        settings = AgentSettings(
            project_root=self._config.project_root,
            output_dir=self._config.output_dir,
            options=self._config.options_for(name),
        )
        deadline = asyncio.timeout(self._config.timeout_seconds)
        try:
            agent = self._registry.create(name, settings)
            prepare = getattr(agent, "prepare", None)
            if prepare is not None:
                async with deadline:
                    await prepare()
        except TimeoutError as e:
            if not deadline.expired():
                logger.error("%s agent could not be set up: %s", name, e)
                return AgentResult.failure(str(e) or "TimeoutError")
            error = AgentTimeoutError(name, self._config.timeout_seconds)
            logger.error("%s agent setup: %s", name, error)
            return AgentResult.failure(f"prepare: {error}", timed_out=True)
        except Exception as e:
            logger.error("%s agent could not be set up: %s", name, e)
            return AgentResult.failure(str(e) or type(e).__name__)

        return await execute_with_policy(
            agent.run,
            self._config.timeout_seconds,
            self._config.max_attempts,
            backoff_seconds=self._config.retry_backoff_seconds,
            name=name,
            sleep=self._sleep,
        )

    def _ensure_output_dir(self) -> None:
        output_dir = Path(self._config.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create output directory %s: %s", output_dir, e)

    def get_summary(self) -> Summary:
        # Before the first run nothing has been skipped yet.
        enabled = self.enabled_agents() if self._results.timestamp is not None else None
        return get_summary(self._results, enabled=enabled)
