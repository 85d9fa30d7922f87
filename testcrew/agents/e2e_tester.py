"""E2E test agent: runs Playwright and records per-spec results."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from testcrew.agents.process import run_command
from testcrew.agents.scaffold import render_playwright_config, write_e2e_specs
from testcrew.agents.types import AgentResult, AgentSettings

logger = logging.getLogger(__name__)

RESULTS_FILE = "e2e-results.json"
DEFAULT_BASE_URL = "http://localhost:5173"


def _spec_status(spec: dict[str, Any]) -> str:
    tests = spec.get("tests", [])
    if tests and all(t.get("status") == "skipped" for t in tests):
        return "skipped"
    return "passed" if spec.get("ok") else "failed"


def parse_playwright_report(report: dict[str, Any]) -> tuple[list[dict[str, Any]], list[str]]:
    """Walk Playwright's JSON reporter suites into (tests, errors)."""
    tests: list[dict[str, Any]] = []

    def walk(suite: dict[str, Any], prefix: str) -> None:
        title = suite.get("title", "")
        path = f"{prefix} > {title}" if prefix and title else (title or prefix)
        for spec in suite.get("specs", []):
            duration = sum(
                r.get("duration", 0)
                for t in spec.get("tests", [])
                for r in t.get("results", [])
            )
            name = f"{path} > {spec.get('title', '')}" if path else spec.get("title", "")
            tests.append({"name": name, "status": _spec_status(spec), "duration": duration})
        for child in suite.get("suites", []):
            walk(child, path)

    for suite in report.get("suites", []):
        walk(suite, "")

    errors = [
        e.get("message", str(e)) if isinstance(e, dict) else str(e)
        for e in report.get("errors", [])
    ]
    return tests, errors


class E2ETesterAgent:
    """Runs the Playwright suite against the running application."""

    name: str = "e2e"
    description: str = "Runs end-to-end browser tests with Playwright"

    def __init__(self, settings: AgentSettings) -> None:
        opts = settings.options
        self._project_root = settings.project_root
        self._output_dir = settings.output_dir
        self._tests_dir = self._project_root / opts.get("tests_dir", "e2e-tests")
        self._command: list[str] = list(opts.get("command", ["npx", "playwright", "test"]))
        self._base_url = opts.get("base_url")
        self._app_file = opts.get("app_file", "src/App.jsx")
        self._generate_tests = bool(opts.get("generate_tests", True))
        self._write_config = bool(opts.get("write_config", True))
        self.generated: list[Path] = []

    async def prepare(self) -> None:
        """Generate route, navigation and form specs plus a Playwright config when missing."""
        self._tests_dir.mkdir(parents=True, exist_ok=True)
        if self._generate_tests:
            self.generated = write_e2e_specs(self._project_root / self._app_file, self._tests_dir)
        if not self._write_config or any(self._project_root.glob("playwright.config.*")):
            return
        config_path = self._project_root / "playwright.config.js"
        config_path.write_text(
            render_playwright_config(
                os.path.relpath(self._tests_dir, self._project_root),
                self._base_url or DEFAULT_BASE_URL,
            )
        )
        logger.info("Generated %s", config_path)

    async def run(self) -> AgentResult:
        logger.info("E2E tester: running Playwright tests")
        env = {"CI": "true"}
        if self._base_url:
            env["BASE_URL"] = str(self._base_url)
        # Launch failures (missing npx) propagate so the retry policy sees them.
        completed = await run_command([*self._command, "--reporter=json"], cwd=self._project_root, env=env)

        tests: list[dict[str, Any]] = []
        errors: list[str] = []
        try:
            tests, errors = parse_playwright_report(json.loads(completed.stdout))
        except ValueError:
            if completed.stderr.strip():
                errors.append(completed.stderr.strip())

        issues: list[str] = [f"Test failed: {t['name']}" for t in tests if t["status"] == "failed"]
        if not completed.ok:
            logger.warning("Playwright tests exited with code %d", completed.returncode)
            issues.append(f"Tests exited with code {completed.returncode}")

        passed = sum(1 for t in tests if t["status"] == "passed")
        failed = sum(1 for t in tests if t["status"] == "failed")
        result = AgentResult(
            success=completed.ok,
            issues=issues,
            details={
                "tests": tests,
                "errors": errors,
                "generated_tests": [p.name for p in self.generated],
                "stats": {
                    "total": len(tests),
                    "passed": passed,
                    "failed": failed,
                    "skipped": len(tests) - passed - failed,
                },
            },
        )
        path = self._output_dir / RESULTS_FILE
        path.write_text(json.dumps(result.to_dict(), indent=2))
        logger.info("E2E results saved to %s", path)
        return result
