"""Linter agent: ESLint plus lightweight code-smell and React checks."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from testcrew.agents.process import run_command
from testcrew.agents.types import AgentResult, AgentSettings

logger = logging.getLogger(__name__)

RESULTS_FILE = "lint-results.json"

_SEVERITY = {2: "error", 1: "warning"}
_CONSOLE_LOG = re.compile(r"console\.(log|debug|info)")
_TODO = re.compile(r"//\s*(TODO|FIXME|HACK|XXX)", re.IGNORECASE)
_INLINE_STYLE = re.compile(r"style=\{\{")
_SKIP_DIRS = {"node_modules"}


def collect_files(root: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Recursively list files with ``extensions``, skipping node_modules and dot dirs."""
    if not root.is_dir():
        logger.warning("Could not read directory %s", root)
        return []
    files: list[Path] = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            if entry.name in _SKIP_DIRS or entry.name.startswith("."):
                continue
            files.extend(collect_files(entry, extensions))
        elif entry.is_file() and entry.suffix in extensions:
            files.append(entry)
    return files


class LinterAgent:
    """Runs ESLint and scans JS/JSX sources for code smells."""

    name: str = "linter"
    description: str = "Checks source code for lint errors and code quality issues"

    def __init__(self, settings: AgentSettings) -> None:
        opts = settings.options
        self._project_root = settings.project_root
        self._output_dir = settings.output_dir
        self._src_dir = opts.get("src_dir", "src")
        self._command: list[str] = list(opts.get("command", ["npx", "eslint", "--format", "json"]))
        self._fix = bool(opts.get("fix", False))
        self._max_file_lines = int(opts.get("max_file_lines", 300))
        self._max_indent = int(opts.get("max_indent", 24))

    @property
    def src_path(self) -> Path:
        return self._project_root / self._src_dir

    def _relative(self, path: str | Path) -> str:
        try:
            return Path(path).relative_to(self._project_root).as_posix()
        except ValueError:
            return str(path)

    async def run(self) -> AgentResult:
        logger.info("Linter: starting code quality checks")
        issues: list[dict[str, Any]] = []
        suggestions: list[dict[str, Any]] = []
        stats = {"errors": 0, "warnings": 0, "info": 0}

        await self._run_eslint(issues, stats)
        for path in collect_files(self.src_path, (".js", ".jsx")):
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not analyze %s: %s", path, e)
                continue
            self.check_code_smells(self._relative(path), content, suggestions, stats)
            if path.suffix == ".jsx":
                self.check_best_practices(self._relative(path), content, issues, suggestions, stats)

        result = AgentResult(
            success=stats["errors"] == 0,
            issues=issues,
            details={"suggestions": suggestions, "stats": stats},
        )
        self._save(result)
        logger.info(
            "Linter: %d errors, %d warnings, %d suggestions",
            stats["errors"], stats["warnings"], len(suggestions),
        )
        return result

    async def _run_eslint(self, issues: list[dict[str, Any]], stats: dict[str, int]) -> None:
        args = [*self._command, str(self.src_path)]
        if self._fix:
            args.append("--fix")
        try:
            completed = await run_command(args, cwd=self._project_root)
        except OSError as e:
            logger.warning("ESLint execution failed: %s", e)
            issues.append({"type": "error", "message": f"ESLint failed: {e}", "file": "unknown"})
            return

        try:
            report = json.loads(completed.stdout or "[]")
        except json.JSONDecodeError:
            message = completed.stderr.strip() or "unparseable ESLint output"
            logger.warning("ESLint execution failed: %s", message)
            issues.append({"type": "error", "message": f"ESLint failed: {message}", "file": "unknown"})
            return

        self.parse_eslint_report(report, issues, stats)

    def parse_eslint_report(
        self,
        report: list[dict[str, Any]],
        issues: list[dict[str, Any]],
        stats: dict[str, int],
    ) -> None:
        """Convert ESLint's JSON formatter output into issues and stats."""
        for file_result in report:
            file_path = self._relative(file_result.get("filePath", "unknown"))
            for message in file_result.get("messages", []):
                severity = message.get("severity", 0)
                issues.append({
                    "type": _SEVERITY.get(severity, "info"),
                    "message": message.get("message", ""),
                    "rule": message.get("ruleId"),
                    "file": file_path,
                    "line": message.get("line"),
                    "column": message.get("column"),
                })
                if severity == 2:
                    stats["errors"] += 1
                elif severity == 1:
                    stats["warnings"] += 1

    def check_code_smells(
        self,
        file_path: str,
        content: str,
        suggestions: list[dict[str, Any]],
        stats: dict[str, int],
    ) -> None:
        lines = content.split("\n")

        if len(lines) > self._max_file_lines:
            suggestions.append({
                "type": "suggestion",
                "message": (
                    f"File is very long ({len(lines)} lines). "
                    "Consider breaking it into smaller modules."
                ),
                "file": file_path,
                "severity": "info",
            })
            stats["info"] += 1

        for lineno, line in enumerate(lines, start=1):
            if _CONSOLE_LOG.search(line):
                suggestions.append({
                    "type": "suggestion",
                    "message": "Found console.log - consider removing before production",
                    "file": file_path,
                    "line": lineno,
                    "severity": "info",
                })
                stats["info"] += 1
            todo = _TODO.search(line)
            if todo:
                suggestions.append({
                    "type": "suggestion",
                    "message": f"Found {todo.group(1).upper()} comment",
                    "file": file_path,
                    "line": lineno,
                    "severity": "info",
                })

        for lineno, line in enumerate(lines, start=1):
            indent = len(line) - len(line.lstrip())
            if indent > self._max_indent:
                suggestions.append({
                    "type": "suggestion",
                    "message": "Deeply nested code detected. Consider refactoring.",
                    "file": file_path,
                    "line": lineno,
                    "severity": "info",
                })
                stats["info"] += 1
                break

    def check_best_practices(
        self,
        file_path: str,
        content: str,
        issues: list[dict[str, Any]],
        suggestions: list[dict[str, Any]],
        stats: dict[str, int],
    ) -> None:
        """React component checks for .jsx files."""
        if ".map(" in content and "key=" not in content:
            suggestions.append({
                "type": "suggestion",
                "message": "Using .map() without key prop - ensure all list items have unique keys",
                "file": file_path,
                "severity": "warning",
            })

        inline_styles = len(_INLINE_STYLE.findall(content))
        if inline_styles > 5:
            suggestions.append({
                "type": "suggestion",
                "message": (
                    f"Found {inline_styles} inline styles. Consider using CSS modules "
                    "or styled-components for better performance."
                ),
                "file": file_path,
                "severity": "info",
            })

        if "useState" not in content and "useEffect" not in content:
            return
        in_condition = False
        for lineno, line in enumerate(content.split("\n"), start=1):
            if "if (" in line or "if(" in line:
                in_condition = True
            if in_condition and ("useState" in line or "useEffect" in line):
                issues.append({
                    "type": "error",
                    "message": "Hooks should not be called conditionally",
                    "file": file_path,
                    "line": lineno,
                    "severity": "error",
                })
                stats["errors"] += 1
            if "}" in line:
                in_condition = False

    def _save(self, result: AgentResult) -> None:
        path = self._output_dir / RESULTS_FILE
        path.write_text(json.dumps(result.to_dict(), indent=2))
        logger.info("Lint results saved to %s", path)
