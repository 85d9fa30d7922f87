"""Unit test agent: runs Vitest and collects per-test results and coverage."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from string import Template
from typing import Any

from testcrew.agents.process import run_command
from testcrew.agents.scaffold import SETUP_FILE, write_unit_tests
from testcrew.agents.types import AgentResult, AgentSettings

logger = logging.getLogger(__name__)

RESULTS_FILE = "unit-test-results.json"
VITEST_OUTPUT_FILE = "vitest-output.json"

VITEST_CONFIG = Template("""\
import { defineConfig, configDefaults } from 'vitest/config';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
  test: {
    globals: true,
    environment: 'jsdom',
    setupFiles: [$setup_files],
    exclude: [...configDefaults.exclude, 'e2e-tests/**'],
    coverage: {
      provider: 'v8',
      reporter: ['text', 'json', 'json-summary', 'html'],
    },
  },
});
""")


def parse_vitest_report(report: dict[str, Any]) -> tuple[list[dict[str, Any]], list[str]]:
    """Flatten Vitest's JSON reporter output into (tests, issues)."""
    tests: list[dict[str, Any]] = []
    issues: list[str] = []
    for suite in report.get("testResults", []):
        for test in suite.get("assertionResults", []):
            failures = test.get("failureMessages") or []
            name = test.get("fullName") or test.get("title", "")
            tests.append({
                "name": name,
                "status": test.get("status"),
                "duration": test.get("duration"),
                "error": "\n".join(failures) or None,
            })
            if test.get("status") == "failed":
                issues.append(f"Test failed: {name}")
    return tests, issues


def read_coverage_summary(path: Path) -> dict[str, float] | None:
    """Read total percentages from an istanbul ``coverage-summary.json``."""
    try:
        total = json.loads(path.read_text())["total"]
    except (OSError, ValueError, KeyError):
        return None
    return {
        metric: float(total[metric]["pct"])
        for metric in ("lines", "functions", "branches", "statements")
        if metric in total
    }


class UnitTesterAgent:
    """Runs the project's Vitest suite and reports per-test results."""

    name: str = "unittest"
    description: str = "Runs unit tests with Vitest and reports results with coverage"

    def __init__(self, settings: AgentSettings) -> None:
        opts = settings.options
        self._project_root = settings.project_root
        self._output_dir = settings.output_dir
        self._tests_dir = self._project_root / opts.get("tests_dir", "src/__tests__")
        self._command: list[str] = list(opts.get("command", ["npx", "vitest", "run"]))
        self._coverage = bool(opts.get("coverage", False))
        self._write_config = bool(opts.get("write_config", True))
        self._generate_tests = bool(opts.get("generate_tests", True))
        self._src_dir = opts.get("src_dir", "src")
        self.generated: list[Path] = []

    @property
    def vitest_output(self) -> Path:
        return self._output_dir / VITEST_OUTPUT_FILE

    async def prepare(self) -> None:
        """Generate starter tests and a Vitest config; existing files are kept."""
        self._tests_dir.mkdir(parents=True, exist_ok=True)
        if self._generate_tests:
            self.generated = write_unit_tests(self._project_root / self._src_dir, self._tests_dir)
        if not self._write_config:
            return
        if any(self._project_root.glob("vitest.config.*")) or any(
            self._project_root.glob("vite.config.*")
        ):
            return
        setup = self._tests_dir / SETUP_FILE
        setup_files = ""
        if setup.exists():
            setup_files = f"'./{Path(os.path.relpath(setup, self._project_root)).as_posix()}'"
        config_path = self._project_root / "vitest.config.js"
        config_path.write_text(VITEST_CONFIG.substitute(setup_files=setup_files))
        logger.info("Generated %s", config_path)

    async def run(self) -> AgentResult:
        logger.info("Unit tester: running unit tests")
        args = [
            *self._command,
            "--reporter=json",
            f"--outputFile={self.vitest_output}",
        ]
        if self._coverage:
            args.append("--coverage")
        # A run that dies before writing must not report the previous attempt.
        self.vitest_output.unlink(missing_ok=True)
        completed = await run_command(args, cwd=self._project_root)

        success = completed.ok
        if not success:
            logger.warning("Unit tests exited with code %d", completed.returncode)

        tests: list[dict[str, Any]] = []
        issues: list[str] = []
        try:
            tests, issues = parse_vitest_report(json.loads(self.vitest_output.read_text()))
            logger.info("Parsed %d test results", len(tests))
        except (OSError, ValueError) as e:
            logger.error("Failed to parse Vitest JSON output: %s", e)
            issues.append("Failed to parse test results")

        coverage = read_coverage_summary(
            self._project_root / "coverage" / "coverage-summary.json"
        )
        passed = sum(1 for t in tests if t["status"] == "passed")
        failed = sum(1 for t in tests if t["status"] == "failed")
        result = AgentResult(
            success=success,
            issues=issues,
            details={
                "tests": tests,
                "coverage": coverage,
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
        logger.info("Unit test results saved to %s", path)
        return result
