"""Agents, their contracts and the collaborators that consume their results."""

from testcrew.agents.api_tester import ApiTesterAgent
from testcrew.agents.coder import CoderAgent
from testcrew.agents.e2e_tester import E2ETesterAgent
from testcrew.agents.linter import LinterAgent
from testcrew.agents.mocks import MockAgent, MockCoder, MockReporter
from testcrew.agents.protocol import Agent, Coder, PreparableAgent, Reporter
from testcrew.agents.registry import AgentRegistry
from testcrew.agents.reporter import MarkdownReporter
from testcrew.agents.types import (
    AGENT_ORDER,
    GATING_AGENTS,
    AgentOutcome,
    AgentResult,
    AgentSettings,
    AgentSummary,
    ImprovementPlan,
    ResultBundle,
    Suggestion,
    Summary,
)
from testcrew.agents.unit_tester import UnitTesterAgent

__all__ = [
    "AGENT_ORDER",
    "GATING_AGENTS",
    "Agent",
    "AgentOutcome",
    "AgentRegistry",
    "AgentResult",
    "AgentSettings",
    "AgentSummary",
    "ApiTesterAgent",
    "Coder",
    "CoderAgent",
    "E2ETesterAgent",
    "ImprovementPlan",
    "LinterAgent",
    "MarkdownReporter",
    "MockAgent",
    "MockCoder",
    "MockReporter",
    "PreparableAgent",
    "Reporter",
    "ResultBundle",
    "Suggestion",
    "Summary",
    "UnitTesterAgent",
]
