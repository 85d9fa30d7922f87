"""Markdown test report generation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from testcrew.agents.types import (
    AGENT_ORDER,
    GATING_AGENTS,
    AgentOutcome,
    AgentResult,
    ResultBundle,
)

logger = logging.getLogger(__name__)

REPORT_FILE = "TEST_REPORT.md"

_SECTION_TITLES = {
    "linter": "Code Linting",
    "unittest": "Unit Tests",
    "apitest": "API Tests",
    "e2e": "E2E Tests",
}


_STATUS_LABELS = {
    AgentOutcome.PASSED: "PASS",
    AgentOutcome.FAILED: "FAIL",
    AgentOutcome.SKIPPED: "SKIPPED",
}


def _outcomes(results: ResultBundle) -> dict[str, AgentOutcome]:
    """Per-agent outcomes, including agents skipped by fail-fast when a summary exists."""
    if results.summary is not None:
        return {name: s.outcome for name, s in results.summary.agents.items()}
    return {name: r.outcome for name, r in results.items() if r is not None}


def _test_counts(result: AgentResult) -> tuple[int, int, int]:
    tests = result.details.get("tests") or []
    passed = sum(1 for t in tests if t.get("status") == "passed")
    failed = sum(1 for t in tests if t.get("status") == "failed")
    return len(tests), passed, failed


class MarkdownReporter:
    """Builds TEST_REPORT.md from a ResultBundle."""

    def __init__(
        self,
        output_dir: Path,
        report_file: str = REPORT_FILE,
        max_issues_per_section: int = 20,
        max_suggestions: int = 10,
    ) -> None:
        self._output_dir = Path(output_dir)
        self._report_file = report_file
        self._max_issues = max_issues_per_section
        self._max_suggestions = max_suggestions

    @property
    def report_path(self) -> Path:
        return self._output_dir / self._report_file

    async def generate(self, results: ResultBundle) -> str:
        logger.info("Reporter: generating test report")
        report = self.build_report(results)
        self.report_path.write_text(report)
        logger.info("Report saved to %s", self.report_path)
        return report

    def build_report(self, results: ResultBundle) -> str:
        lines = [
            "# Test Report\n",
            f"**Generated:** {results.timestamp or 'unknown'}\n",
            "---\n",
            "## Executive Summary\n",
        ]
        lines.extend(self._summary(results))
        lines.append("---\n")

        if results.linter is not None:
            lines.extend(self._linter_section(results.linter))
            lines.append("---\n")
        if results.unittest is not None:
            lines.extend(self._unit_section(results.unittest))
            lines.append("---\n")
        if results.apitest is not None:
            lines.extend(self._api_section(results.apitest))
            lines.append("---\n")
        if results.e2e is not None:
            lines.extend(self._e2e_section(results.e2e))
            lines.append("---\n")

        lines.extend(self._recommendations(results))
        if results.timings:
            lines.extend(self._timings(results.timings))
        return "\n".join(lines)

    def _summary(self, results: ResultBundle) -> list[str]:
        outcomes = _outcomes(results)
        gating = [outcomes[name] for name in GATING_AGENTS if name in outcomes]
        overall = "PASS" if all(o is AgentOutcome.PASSED for o in gating) else "FAIL"
        lines = [
            f"### Overall Status: {overall}\n",
            "| Test Suite | Status | Issues |",
            "|------------|--------|--------|",
        ]
        for name in AGENT_ORDER:
            if name not in outcomes:
                continue
            result = results.get(name)
            if result is None:
                issues = 0
            elif name == "linter":
                stats = result.details.get("stats") or {}
                issues = stats.get("errors", 0) + stats.get("warnings", 0)
            else:
                issues = len(result.issues)
            label = _STATUS_LABELS[outcomes[name]]
            lines.append(f"| {_SECTION_TITLES[name]} | {label} | {issues} |")

        skipped = [n for n, o in outcomes.items() if o is AgentOutcome.SKIPPED]
        if skipped:
            lines.append(f"\n*Not run (fail-fast): {', '.join(skipped)}*")
        lines.append("")
        return lines

    def _issue_table(self, title: str, issues: list[dict[str, Any]]) -> list[str]:
        lines = [
            f"#### {title}\n",
            "| File | Line | Message | Rule |",
            "|------|------|---------|------|",
        ]
        for issue in issues[: self._max_issues]:
            lines.append(
                f"| {issue.get('file', '-')} | {issue.get('line') or '-'} "
                f"| {issue.get('message', '')} | {issue.get('rule') or '-'} |"
            )
        if len(issues) > self._max_issues:
            lines.append(f"\n*... and {len(issues) - self._max_issues} more*")
        lines.append("")
        return lines

    def _linter_section(self, result: AgentResult) -> list[str]:
        lines = ["## Code Linting Results\n"]
        lines.append(
            "**Status:** All checks passed\n" if result.success else "**Status:** Issues found\n"
        )
        if result.error:
            lines.append(f"**Error:** {result.error}\n")

        stats = result.details.get("stats")
        if stats:
            lines.append("### Statistics\n")
            lines.append(f"- **Errors:** {stats.get('errors', 0)}")
            lines.append(f"- **Warnings:** {stats.get('warnings', 0)}")
            lines.append(f"- **Info:** {stats.get('info', 0)}\n")

        issues = [i for i in result.issues if isinstance(i, dict)]
        errors = [i for i in issues if i.get("type") == "error"]
        warnings = [i for i in issues if i.get("type") == "warning"]
        if errors or warnings:
            lines.append("### Issues Found\n")
            if errors:
                lines.extend(self._issue_table("Errors", errors))
            if warnings:
                lines.extend(self._issue_table("Warnings", warnings))

        suggestions = result.details.get("suggestions") or []
        if suggestions:
            lines.append("### Suggestions\n")
            for idx, s in enumerate(suggestions[: self._max_suggestions], start=1):
                where = f" (line {s['line']})" if s.get("line") else ""
                lines.append(f"{idx}. **{s.get('file', 'unknown')}**{where}")
                lines.append(f"   - {s.get('message', '')}")
            if len(suggestions) > self._max_suggestions:
                lines.append(
                    f"\n*... and {len(suggestions) - self._max_suggestions} more suggestions*"
                )
            lines.append("")
        return lines

    def _test_summary(self, result: AgentResult) -> list[str]:
        total, passed, failed = _test_counts(result)
        if not total:
            return []
        return [
            "### Test Summary\n",
            f"- **Total Tests:** {total}",
            f"- **Passed:** {passed}",
            f"- **Failed:** {failed}\n",
        ]

    def _numbered(self, title: str, items: list[Any]) -> list[str]:
        if not items:
            return []
        lines = [f"### {title}\n"]
        for idx, item in enumerate(items[: self._max_issues], start=1):
            lines.append(f"{idx}. {item}")
        if len(items) > self._max_issues:
            lines.append(f"\n*... and {len(items) - self._max_issues} more*")
        lines.append("")
        return lines

    def _unit_section(self, result: AgentResult) -> list[str]:
        lines = ["## Unit Test Results\n"]
        lines.append(
            "**Status:** All tests passed\n" if result.success else "**Status:** Some tests failed\n"
        )
        if result.error:
            lines.append(f"**Error:** {result.error}\n")
        lines.extend(self._test_summary(result))

        coverage = result.details.get("coverage")
        if coverage:
            lines.append("### Coverage\n")
            for metric in ("lines", "functions", "branches"):
                value = coverage.get(metric)
                lines.append(f"- **{metric.title()}:** {value if value is not None else 'N/A'}%")
            lines.append("")

        lines.extend(self._numbered("Issues", result.issues))
        return lines

    def _api_section(self, result: AgentResult) -> list[str]:
        lines = ["## API Test Results\n"]
        lines.append(
            "**Status:** All API tests passed\n"
            if result.success
            else "**Status:** API tests failed\n"
        )
        stats = result.details.get("stats")
        if stats:
            lines.append(f"- **Passed:** {stats.get('passed', 0)}")
            lines.append(f"- **Failed:** {stats.get('failed', 0)}")
            lines.append(f"- **Total:** {stats.get('total', 0)}\n")
        if result.error:
            lines.extend(["### Errors\n", "```", result.error.strip(), "```\n"])
        return lines

    def _e2e_section(self, result: AgentResult) -> list[str]:
        lines = ["## End-to-End Test Results\n"]
        lines.append(
            "**Status:** All E2E tests passed\n"
            if result.success
            else "**Status:** Some E2E tests failed\n"
        )
        lines.extend(self._test_summary(result))
        lines.extend(self._numbered("Issues Found", result.issues))

        errors = list(result.details.get("errors") or [])
        if result.error:
            errors.append(result.error)
        if errors:
            lines.extend(["### Errors\n", "```", *errors, "```\n"])
        return lines

    def _recommendations(self, results: ResultBundle) -> list[str]:
        lines = ["## Improvement Recommendations\n", "### High Priority\n"]
        lint_stats = (results.linter.details.get("stats") or {}) if results.linter else {}

        high = []
        if lint_stats.get("errors", 0) > 0:
            high.append("**Fix all linting errors** - These can lead to runtime issues")
        if results.unittest is not None and not results.unittest.success:
            high.append("**Fix failing unit tests** - Broken tests indicate code issues")
        if results.apitest is not None and not results.apitest.success:
            high.append("**Fix failing API tests** - Backend contracts are broken")
        if results.e2e is not None and not results.e2e.success:
            high.append("**Fix failing E2E tests** - User-facing features are broken")
        if not high:
            high.append("No critical issues found")
        lines.extend(f"{idx}. {item}" for idx, item in enumerate(high, start=1))

        lines.append("\n### Medium Priority\n")
        medium = []
        if lint_stats.get("warnings", 0) > 5:
            medium.append("**Address linting warnings** - Improve code quality and maintainability")
        if results.linter is not None and results.linter.details.get("suggestions"):
            medium.append("**Review code suggestions** - Optimize code structure and patterns")
        coverage = (results.unittest.details.get("coverage") or {}) if results.unittest else {}
        if coverage.get("lines") is not None and coverage["lines"] < 80:
            medium.append("**Increase test coverage** - Target at least 80% code coverage")
        if not medium:
            medium.append("Continue monitoring code quality metrics")
        lines.extend(f"{idx}. {item}" for idx, item in enumerate(medium, start=1))
        lines.append("")
        return lines

    def _timings(self, timings: dict[str, float]) -> list[str]:
        lines = ["## Timings\n", "| Agent | Seconds |", "|-------|---------|"]
        for name, seconds in timings.items():
            lines.append(f"| {name} | {seconds:.2f} |")
        lines.append("")
        return lines
