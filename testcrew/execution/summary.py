"""Summary derivation and exit-code policy for a ResultBundle."""

from __future__ import annotations

from typing import Iterable

from testcrew.agents.types import (
    AGENT_ORDER,
    GATING_AGENTS,
    AgentOutcome,
    AgentSummary,
    ResultBundle,
    Summary,
)

_COUNT_KEYS = (("total_tests", "total"), ("passed", "passed"), ("failed", "failed"), ("skipped", "skipped"))


def get_summary(bundle: ResultBundle, enabled: Iterable[str] | None = None) -> Summary:
    """Derive a compact per-agent view of ``bundle`` without mutating it.

    ``enabled`` lists the agents that were scheduled; enabled agents with an
    empty slot were skipped by fail-fast and are reported as failed/skipped.
    When omitted, only agents that produced a result appear.
    """
    enabled_set = set(enabled) if enabled is not None else set()
    summary = Summary(timestamp=bundle.timestamp, timings=dict(bundle.timings))

    for name in AGENT_ORDER:
        result = bundle.get(name)
        if result is None:
            if name in enabled_set:
                summary.agents[name] = AgentSummary(
                    success=False, issues=0, outcome=AgentOutcome.SKIPPED
                )
            continue

        summary.agents[name] = AgentSummary(
            success=result.success is True,
            issues=len(result.issues or []),
            outcome=result.outcome,
        )

        stats = result.details.get("stats")
        if isinstance(stats, dict):
            for attr, key in _COUNT_KEYS:
                value = stats.get(key)
                if isinstance(value, int):
                    setattr(summary, attr, getattr(summary, attr) + value)

    return summary


def gating_outcomes(summary: Summary) -> dict[str, AgentOutcome]:
    return {
        name: summary.agents[name].outcome
        for name in GATING_AGENTS
        if name in summary.agents
    }


def exit_code(summary: Summary) -> int:
    """0 only when every scheduled gating agent passed; skipped counts as not passed."""
    outcomes = gating_outcomes(summary)
    if all(outcome is AgentOutcome.PASSED for outcome in outcomes.values()):
        return 0
    return 1
