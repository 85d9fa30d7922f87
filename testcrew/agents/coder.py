"""Coder agent: turns aggregated results into a prioritized improvement plan."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from testcrew.agents.types import AgentResult, ImprovementPlan, ResultBundle, Suggestion

if TYPE_CHECKING:
    from testcrew.agents.claude_advisor import ClaudeAdvisor

logger = logging.getLogger(__name__)

ACTION_PLAN_FILE = "ACTION_PLAN.md"
ANALYSIS_FILE = "coder-analysis.json"

PRIORITIES = ("high", "medium", "low")
COVERAGE_TARGET = 80.0


def _unique_files(issues: list[Any]) -> list[str]:
    files: list[str] = []
    for issue in issues:
        if isinstance(issue, dict) and issue.get("file") and issue["file"] not in files:
            files.append(issue["file"])
    return files


def _as_text(items: list[Any]) -> list[str]:
    texts = []
    for item in items:
        if isinstance(item, dict):
            texts.append(item.get("message", str(item)))
        else:
            texts.append(str(item))
    return texts


def analyze_linter(result: AgentResult | None) -> list[Suggestion]:
    if result is None:
        return []
    stats = result.details.get("stats") or {}
    issues = [i for i in result.issues if isinstance(i, dict)]
    suggestions = result.details.get("suggestions") or []
    out: list[Suggestion] = []

    if stats.get("errors", 0) > 0:
        out.append(Suggestion(
            priority="high",
            category="code-quality",
            title="Fix Linting Errors",
            description=f"Found {stats['errors']} linting errors that need immediate attention.",
            action="Review and fix all ESLint errors",
            files=_unique_files([i for i in issues if i.get("type") == "error"]),
        ))
    if stats.get("warnings", 0) > 10:
        out.append(Suggestion(
            priority="medium",
            category="code-quality",
            title="Address Linting Warnings",
            description=f"Found {stats['warnings']} warnings that should be reviewed.",
            action="Gradually address warnings to improve code quality",
            files=_unique_files([i for i in issues if i.get("type") == "warning"]),
        ))

    console_logs = [s for s in suggestions if "console.log" in s.get("message", "")]
    if len(console_logs) > 5:
        out.append(Suggestion(
            priority="low",
            category="code-cleanup",
            title="Remove Debug Console Logs",
            description=f"Found {len(console_logs)} console.log statements that should be removed.",
            action="Replace console.log with proper logging or remove",
            files=_unique_files(console_logs),
        ))

    complex_code = [
        s for s in suggestions
        if "nested" in s.get("message", "") or "complex" in s.get("message", "")
    ]
    if complex_code:
        out.append(Suggestion(
            priority="medium",
            category="refactoring",
            title="Reduce Code Complexity",
            description="Some files have deeply nested or complex code.",
            action="Refactor complex functions into smaller, more manageable pieces",
            files=_unique_files(complex_code),
        ))
    return out


def analyze_unit_tests(result: AgentResult | None) -> list[Suggestion]:
    if result is None:
        return []
    out: list[Suggestion] = []

    if not result.success:
        details = _as_text(result.issues)
        if result.error:
            details.append(result.error)
        out.append(Suggestion(
            priority="high",
            category="testing",
            title="Fix Failing Unit Tests",
            description="Some unit tests are failing.",
            action="Investigate and fix all failing unit tests",
            details=details,
        ))

    coverage = result.details.get("coverage") or {}
    lines = coverage.get("lines")
    if lines is not None and float(lines) < COVERAGE_TARGET:
        out.append(Suggestion(
            priority="medium",
            category="testing",
            title="Increase Test Coverage",
            description=f"Current coverage is {float(lines):g}%. Target is {COVERAGE_TARGET:g}%+.",
            action="Add tests for uncovered code paths",
            recommendations=[
                "Focus on critical business logic first",
                "Add edge case tests",
                "Test error handling paths",
            ],
        ))

    if not result.details.get("tests") and result.error is None:
        out.append(Suggestion(
            priority="high",
            category="testing",
            title="Add Unit Tests",
            description="No unit tests found in the project.",
            action="Create unit tests for critical functions and modules",
            recommendations=[
                "Start with utility functions",
                "Test service layer logic",
                "Add tests for custom hooks",
            ],
        ))
    return out


def analyze_api_tests(result: AgentResult | None) -> list[Suggestion]:
    if result is None or result.success:
        return []
    stats = result.details.get("stats") or {}
    return [Suggestion(
        priority="high",
        category="api-testing",
        title="Fix Failing API Tests",
        description=f"{stats.get('failed', 0)} API tests failed.",
        action="Check the server's test output and fix the broken endpoints",
        details=[result.error] if result.error else [],
    )]


def analyze_e2e(result: AgentResult | None) -> list[Suggestion]:
    if result is None:
        return []
    out: list[Suggestion] = []
    if not result.success:
        out.append(Suggestion(
            priority="high",
            category="e2e-testing",
            title="Fix Failing E2E Tests",
            description="End-to-end tests are failing.",
            action="Debug and fix E2E test failures",
            details=_as_text(result.issues),
            recommendations=[
                "Check if the application is running correctly",
                "Verify selectors are still valid",
                "Check for timing issues",
            ],
        ))
    errors = result.details.get("errors") or []
    if errors:
        out.append(Suggestion(
            priority="medium",
            category="e2e-testing",
            title="Address E2E Test Errors",
            description="Errors occurred during E2E test execution.",
            action="Review and fix E2E test errors",
            details=_as_text(errors),
        ))
    return out


class CoderAgent:
    """Analyzes a ResultBundle and writes ACTION_PLAN.md and coder-analysis.json."""

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        ai_review: bool = False,
        advisor: ClaudeAdvisor | None = None,
    ) -> None:
        self._project_root = Path(project_root)
        self._output_dir = Path(output_dir)
        self._ai_review = ai_review
        self._advisor = advisor

    async def analyze(self, results: ResultBundle) -> ImprovementPlan:
        logger.info("Coder: analyzing test results")
        plan = ImprovementPlan(
            suggestions=[
                *analyze_linter(results.linter),
                *analyze_unit_tests(results.unittest),
                *analyze_api_tests(results.apitest),
                *analyze_e2e(results.e2e),
            ]
        )
        if self._ai_review:
            plan.ai_review = await self._review(plan)

        (self._output_dir / ACTION_PLAN_FILE).write_text(render_action_plan(plan))
        (self._output_dir / ANALYSIS_FILE).write_text(json.dumps(plan.to_dict(), indent=2))
        logger.info("Coder: %d suggestions written to %s", len(plan.suggestions), self._output_dir)
        return plan

    async def _review(self, plan: ImprovementPlan) -> str:
        advisor = self._advisor
        try:
            if advisor is None:
                from testcrew.agents.claude_advisor import ClaudeAdvisor

                advisor = ClaudeAdvisor()
            return await advisor.review(plan, self._project_root)
        except Exception as e:
            logger.warning("AI review unavailable: %s", e)
            return f"*AI review unavailable: {e}*"


def _format_suggestion(num: int, s: Suggestion) -> list[str]:
    lines = [
        f"### {num}. {s.title}\n",
        f"**Category:** {s.category}\n",
        f"**Description:** {s.description}\n",
        f"**Action:** {s.action}\n",
    ]
    if s.files:
        lines.append("**Affected Files:**")
        lines.extend(f"- {f}" for f in s.files[:10])
        if len(s.files) > 10:
            lines.append(f"- *... and {len(s.files) - 10} more files*")
        lines.append("")
    if s.recommendations:
        lines.append("**Recommendations:**")
        lines.extend(f"- {r}" for r in s.recommendations)
        lines.append("")
    if s.details:
        lines.extend(["<details>", "<summary>Details</summary>", ""])
        lines.extend(f"- {d}" for d in s.details[:5])
        if len(s.details) > 5:
            lines.append(f"- *... and {len(s.details) - 5} more*")
        lines.extend(["", "</details>", ""])
    return lines


def render_action_plan(plan: ImprovementPlan) -> str:
    counts = {p: len(plan.by_priority(p)) for p in PRIORITIES}
    lines = [
        "# Action Plan for Code Improvements\n",
        f"**Generated:** {plan.timestamp}\n",
        f"**Total Suggestions:** {len(plan.suggestions)}",
        f"- High Priority: {counts['high']}",
        f"- Medium Priority: {counts['medium']}",
        f"- Low Priority: {counts['low']}\n",
    ]
    for priority in PRIORITIES:
        lines.append("---\n")
        lines.append(f"## {priority.title()} Priority Actions\n")
        items = plan.by_priority(priority)
        if not items:
            lines.append(f"*No {priority} priority issues found!*\n")
            continue
        for idx, s in enumerate(items, start=1):
            lines.extend(_format_suggestion(idx, s))

    if plan.ai_review:
        lines.extend(["---\n", "## AI Review\n", plan.ai_review, ""])
    return "\n".join(lines)
