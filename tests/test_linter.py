"""Tests for LinterAgent parsing and code-smell checks."""

from __future__ import annotations

import json
import sys
import textwrap

import pytest

from testcrew.agents.linter import RESULTS_FILE, LinterAgent, collect_files
from testcrew.agents.protocol import Agent
from testcrew.agents.types import AgentSettings


def _agent(tmp_path, **options) -> LinterAgent:
    out = tmp_path / "results"
    out.mkdir(exist_ok=True)
    return LinterAgent(AgentSettings(project_root=tmp_path, output_dir=out, options=options))


def _fake_eslint(tmp_path, report: list) -> list[str]:
    """Command that prints ``report`` as ESLint JSON, ignoring its arguments."""
    script = tmp_path / "fake_eslint.py"
    script.write_text(f"import json\nprint(json.dumps({report!r}))\n")
    return [sys.executable, str(script)]


def test_satisfies_agent_protocol(tmp_path):
    assert isinstance(_agent(tmp_path), Agent)


class TestParseEslintReport:
    def test_maps_severities_and_counts(self, tmp_path):
        agent = _agent(tmp_path)
        issues, stats = [], {"errors": 0, "warnings": 0, "info": 0}
        report = [
            {
                "filePath": str(tmp_path / "src" / "App.jsx"),
                "messages": [
                    {"ruleId": "no-unused-vars", "severity": 2, "message": "x unused", "line": 3, "column": 7},
                    {"ruleId": "eqeqeq", "severity": 1, "message": "use ===", "line": 9, "column": 2},
                ],
            },
            {"filePath": str(tmp_path / "src" / "clean.js"), "messages": []},
        ]

        agent.parse_eslint_report(report, issues, stats)

        assert stats == {"errors": 1, "warnings": 1, "info": 0}
        assert issues[0] == {
            "type": "error",
            "message": "x unused",
            "rule": "no-unused-vars",
            "file": "src/App.jsx",
            "line": 3,
            "column": 7,
        }
        assert issues[1]["type"] == "warning"


class TestCodeSmells:
    def _check(self, tmp_path, content, **options):
        agent = _agent(tmp_path, **options)
        suggestions, stats = [], {"errors": 0, "warnings": 0, "info": 0}
        agent.check_code_smells("src/a.js", content, suggestions, stats)
        return suggestions, stats

    def test_long_file(self, tmp_path):
        suggestions, stats = self._check(tmp_path, "x\n" * 20, max_file_lines=10)

        assert any("very long" in s["message"] for s in suggestions)
        assert stats["info"] == 1

    def test_console_log_and_todo(self, tmp_path):
        content = "console.log('hi');\n// todo: fix\nconsole.error('fine');\n"

        suggestions, _ = self._check(tmp_path, content)

        messages = [(s["message"], s.get("line")) for s in suggestions]
        assert ("Found console.log - consider removing before production", 1) in messages
        assert ("Found TODO comment", 2) in messages
        assert len(suggestions) == 2

    def test_deep_nesting_reported_once(self, tmp_path):
        content = " " * 30 + "a();\n" + " " * 30 + "b();\n"

        suggestions, _ = self._check(tmp_path, content)

        nested = [s for s in suggestions if "nested" in s["message"]]
        assert len(nested) == 1
        assert nested[0]["line"] == 1


class TestBestPractices:
    def _check(self, tmp_path, content):
        agent = _agent(tmp_path)
        issues, suggestions = [], []
        stats = {"errors": 0, "warnings": 0, "info": 0}
        agent.check_best_practices("src/C.jsx", content, issues, suggestions, stats)
        return issues, suggestions, stats

    def test_map_without_key(self, tmp_path):
        _, suggestions, _ = self._check(tmp_path, "items.map(i => <li>{i}</li>)")

        assert any("key prop" in s["message"] for s in suggestions)

    def test_many_inline_styles(self, tmp_path):
        _, suggestions, _ = self._check(tmp_path, "<div style={{a: 1}} />\n" * 6)

        assert any("6 inline styles" in s["message"] for s in suggestions)

    def test_conditional_hook_is_error(self, tmp_path):
        content = textwrap.dedent(
            """\
            function C({ show }) {
              if (show) {
                const [x, setX] = useState(0);
              }
              useEffect(() => {});
            }
            """
        )

        issues, _, stats = self._check(tmp_path, content)

        assert stats["errors"] == 1
        assert issues[0]["line"] == 3
        assert issues[0]["message"] == "Hooks should not be called conditionally"


def test_collect_files_skips_node_modules_and_dot_dirs(tmp_path):
    (tmp_path / "src" / "node_modules").mkdir(parents=True)
    (tmp_path / "src" / ".cache").mkdir()
    (tmp_path / "src" / "components").mkdir()
    (tmp_path / "src" / "node_modules" / "dep.js").write_text("")
    (tmp_path / "src" / ".cache" / "c.js").write_text("")
    (tmp_path / "src" / "components" / "Card.jsx").write_text("")
    (tmp_path / "src" / "main.js").write_text("")
    (tmp_path / "src" / "style.css").write_text("")

    files = collect_files(tmp_path / "src", (".js", ".jsx"))

    assert [f.name for f in files] == ["Card.jsx", "main.js"]


def test_collect_files_missing_dir(tmp_path):
    assert collect_files(tmp_path / "missing", (".js",)) == []


class TestRun:
    @pytest.mark.asyncio
    async def test_clean_project_passes_and_writes_results(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "main.js").write_text("export const a = 1;\n")
        agent = _agent(tmp_path, command=_fake_eslint(tmp_path, []))

        result = await agent.run()

        assert result.success is True
        saved = json.loads((tmp_path / "results" / RESULTS_FILE).read_text())
        assert saved["success"] is True
        assert saved["stats"] == {"errors": 0, "warnings": 0, "info": 0}

    @pytest.mark.asyncio
    async def test_eslint_errors_fail_the_run(self, tmp_path):
        (tmp_path / "src").mkdir()
        report = [{
            "filePath": str(tmp_path / "src" / "main.js"),
            "messages": [{"ruleId": "no-undef", "severity": 2, "message": "x is not defined", "line": 1, "column": 1}],
        }]
        agent = _agent(tmp_path, command=_fake_eslint(tmp_path, report))

        result = await agent.run()

        assert result.success is False
        assert result.details["stats"]["errors"] == 1
        assert result.issues[0]["file"] == "src/main.js"

    @pytest.mark.asyncio
    async def test_missing_eslint_is_recorded_not_raised(self, tmp_path):
        (tmp_path / "src").mkdir()
        agent = _agent(tmp_path, command=["definitely-not-eslint-xyz"])

        result = await agent.run()

        assert result.success is True
        assert result.issues[0]["message"].startswith("ESLint failed:")
