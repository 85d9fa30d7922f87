"""Hand a completed ResultBundle to the reporter and then the coder."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from testcrew.agents.protocol import Coder, Reporter
from testcrew.agents.types import ImprovementPlan, ResultBundle

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    report: str | None = None
    plan: ImprovementPlan | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


async def dispatch_reports(
    results: ResultBundle,
    reporter: Reporter | None,
    coder: Coder | None,
) -> DispatchResult:
    """Run the reporter, then the coder, once each.

    Failures of either are logged and recorded; neither touches ``results``
    nor stops the other from running.
    """
    outcome = DispatchResult()

    if reporter is not None:
        logger.info("Generating final test report")
        try:
            outcome.report = await reporter.generate(results)
        except Exception as e:
            logger.error("Reporter failed: %s", e)
            outcome.errors["reporter"] = str(e) or type(e).__name__

    if coder is not None:
        logger.info("Running coder agent to analyze improvements")
        try:
            outcome.plan = await coder.analyze(results)
        except Exception as e:
            logger.error("Coder agent failed: %s", e)
            outcome.errors["coder"] = str(e) or type(e).__name__

    return outcome
