"""Convenience functions for wiring a TestManager with default collaborators."""

from __future__ import annotations

from testcrew.agents.api_tester import ApiTesterAgent
from testcrew.agents.coder import CoderAgent
from testcrew.agents.e2e_tester import E2ETesterAgent
from testcrew.agents.linter import LinterAgent
from testcrew.agents.mocks import MockAgent, MockCoder, MockReporter
from testcrew.agents.registry import AgentRegistry
from testcrew.agents.reporter import REPORT_FILE, MarkdownReporter
from testcrew.agents.types import AGENT_ORDER, ResultBundle
from testcrew.agents.unit_tester import UnitTesterAgent
from testcrew.execution.config import ManagerConfig
from testcrew.execution.manager import TestManager


def create_default_registry() -> AgentRegistry:
    """Create an AgentRegistry with the real subprocess-backed agents."""
    registry = AgentRegistry()
    registry.register("linter", LinterAgent)
    registry.register("unittest", UnitTesterAgent)
    registry.register("apitest", ApiTesterAgent)
    registry.register("e2e", E2ETesterAgent)
    return registry


def create_mock_registry() -> AgentRegistry:
    """Create an AgentRegistry whose agents always succeed without spawning anything."""
    registry = AgentRegistry()
    for name in AGENT_ORDER:
        registry.register(name, lambda _settings, name=name: MockAgent(name=name))
    return registry


def create_manager(config: ManagerConfig, mock: bool = False) -> TestManager:
    """Build a TestManager with default (or mock) agents, reporter and coder."""
    if mock:
        return TestManager(
            config,
            create_mock_registry(),
            reporter=MockReporter(),
            coder=MockCoder(),
        )

    reporter_opts = config.options_for("reporter")
    coder_opts = config.options_for("coder")
    advisor = None
    if coder_opts.get("ai_review"):
        from testcrew.agents.claude_advisor import ClaudeAdvisor

        advisor = ClaudeAdvisor(
            model=coder_opts.get("model", "sonnet"),
            max_turns=int(coder_opts.get("max_turns", 10)),
        )

    return TestManager(
        config,
        create_default_registry(),
        reporter=MarkdownReporter(
            config.output_dir,
            report_file=reporter_opts.get("report_file", REPORT_FILE),
            max_issues_per_section=int(reporter_opts.get("max_issues_per_section", 20)),
            max_suggestions=int(reporter_opts.get("max_suggestions", 10)),
        ),
        coder=CoderAgent(
            config.project_root,
            config.output_dir,
            ai_review=bool(coder_opts.get("ai_review", False)),
            advisor=advisor,
        ),
    )


async def run_tests(config: ManagerConfig, mock: bool = False) -> ResultBundle:
    """Run the full agent pipeline with default collaborators."""
    return await create_manager(config, mock=mock).run_all()
