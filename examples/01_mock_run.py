"""Example 1: Run the full pipeline with mock agents.

No Node tooling needed: every agent is a MockAgent, and the unit test agent is
scripted to fail once so the retry policy is visible in the log output.
"""

import asyncio
import logging
import tempfile
from pathlib import Path

from testcrew.agents import AgentResult, MarkdownReporter, MockAgent
from testcrew.agents.coder import CoderAgent
from testcrew.execution import ManagerConfig, TestManager, create_mock_registry


async def main():
    logging.basicConfig(level=logging.INFO)
    output_dir = Path(tempfile.mkdtemp(prefix="testcrew-"))

    registry = create_mock_registry()
    flaky = MockAgent(
        name="unittest",
        results=[
            AgentResult(success=False, issues=["Test failed: flaky > once"]),
            AgentResult(success=True, details={"stats": {"total": 3, "passed": 3}}),
        ],
    )
    registry.register_instance("unittest", flaky)

    config = ManagerConfig(output_dir=output_dir, retries=1, retry_backoff_seconds=0.5)
    manager = TestManager(
        config,
        registry,
        reporter=MarkdownReporter(output_dir),
        coder=CoderAgent(config.project_root, output_dir),
    )
    await manager.run_all()

    print(manager.get_summary().to_dict())
    print(f"\nReport written to {output_dir / 'TEST_REPORT.md'}")


if __name__ == "__main__":
    asyncio.run(main())
