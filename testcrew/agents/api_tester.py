"""API test agent: runs the server's test suite and parses the Vitest summary line."""

from __future__ import annotations

import logging
import re

from testcrew.agents.process import run_command
from testcrew.agents.types import AgentResult, AgentSettings

logger = logging.getLogger(__name__)

_PASSED = re.compile(r"Tests\s+(?:\d+\s+failed\s+\|\s+)?(\d+)\s+passed")
_FAILED = re.compile(r"Tests\s+(\d+)\s+failed")


def parse_test_counts(output: str) -> dict[str, int]:
    """Extract passed/failed counts from a line like ``Tests  114 passed (114)``."""
    passed = _PASSED.search(output)
    failed = _FAILED.search(output)
    passed_count = int(passed.group(1)) if passed else 0
    failed_count = int(failed.group(1)) if failed else 0
    return {
        "passed": passed_count,
        "failed": failed_count,
        "total": passed_count + failed_count,
    }


class ApiTesterAgent:
    """Runs ``npm test`` in the server directory."""

    name: str = "apitest"
    description: str = "Runs the backend API test suite"

    def __init__(self, settings: AgentSettings) -> None:
        opts = settings.options
        self._server_dir = settings.project_root / opts.get("server_dir", "server")
        self._command: list[str] = list(opts.get("command", ["npm", "test"]))

    async def run(self) -> AgentResult:
        logger.info("API tester: running API tests in %s", self._server_dir)
        completed = await run_command(self._command, cwd=self._server_dir, env={"CI": "true"})
        stats = parse_test_counts(completed.stdout)
        return AgentResult(
            success=completed.ok,
            error=None if completed.ok else (completed.stderr.strip() or f"exit code {completed.returncode}"),
            details={"output": completed.stdout, "stats": stats},
        )
