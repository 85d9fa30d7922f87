"""Tests for the unit, API and E2E test agents."""

from __future__ import annotations

import json
import sys

import pytest

from testcrew.agents.api_tester import ApiTesterAgent, parse_test_counts
from testcrew.agents.e2e_tester import RESULTS_FILE as E2E_RESULTS, E2ETesterAgent, parse_playwright_report
from testcrew.agents.protocol import Agent, PreparableAgent
from testcrew.agents.types import AgentSettings
from testcrew.agents.unit_tester import (
    RESULTS_FILE as UNIT_RESULTS,
    UnitTesterAgent,
    parse_vitest_report,
    read_coverage_summary,
)

VITEST_REPORT = {
    "testResults": [
        {
            "assertionResults": [
                {"fullName": "utils formats dates", "status": "passed", "duration": 3, "failureMessages": []},
                {"fullName": "utils parses ids", "status": "failed", "duration": 5, "failureMessages": ["expected 1"]},
                {"fullName": "utils pending", "status": "skipped", "duration": 0},
            ]
        }
    ]
}

PLAYWRIGHT_REPORT = {
    "suites": [
        {
            "title": "smoke.spec.js",
            "specs": [
                {"title": "loads home", "ok": True, "tests": [{"status": "expected", "results": [{"duration": 120}]}]},
            ],
            "suites": [
                {
                    "title": "forms",
                    "specs": [
                        {"title": "validates", "ok": False, "tests": [{"status": "unexpected", "results": [{"duration": 80}, {"duration": 90}]}]},
                        {"title": "later", "ok": True, "tests": [{"status": "skipped", "results": []}]},
                    ],
                }
            ],
        }
    ],
    "errors": [{"message": "webServer failed to start"}],
}


def _settings(tmp_path, **options) -> AgentSettings:
    out = tmp_path / "results"
    out.mkdir(exist_ok=True)
    return AgentSettings(project_root=tmp_path, output_dir=out, options=options)


def _script(tmp_path, name: str, body: str) -> list[str]:
    path = tmp_path / name
    path.write_text(body)
    return [sys.executable, str(path)]


# ===========================================================================
# Unit tester
# ===========================================================================


class TestUnitTester:
    def test_satisfies_preparable_protocol(self, tmp_path):
        assert isinstance(UnitTesterAgent(_settings(tmp_path)), PreparableAgent)

    def test_parse_vitest_report(self):
        tests, issues = parse_vitest_report(VITEST_REPORT)

        assert [t["status"] for t in tests] == ["passed", "failed", "skipped"]
        assert tests[1]["error"] == "expected 1"
        assert tests[0]["error"] is None
        assert issues == ["Test failed: utils parses ids"]

    def test_read_coverage_summary(self, tmp_path):
        path = tmp_path / "coverage-summary.json"
        path.write_text(json.dumps({"total": {"lines": {"pct": 72.5}, "branches": {"pct": 60}}}))

        assert read_coverage_summary(path) == {"lines": 72.5, "branches": 60.0}
        assert read_coverage_summary(tmp_path / "missing.json") is None

    @pytest.mark.asyncio
    async def test_prepare_writes_config_once(self, tmp_path):
        agent = UnitTesterAgent(_settings(tmp_path))

        await agent.prepare()
        config = tmp_path / "vitest.config.js"
        config.write_text("// customized")
        await agent.prepare()

        assert (tmp_path / "src" / "__tests__").is_dir()
        assert config.read_text() == "// customized"

    @pytest.mark.asyncio
    async def test_prepare_respects_existing_vite_config(self, tmp_path):
        (tmp_path / "vite.config.js").write_text("export default {}")

        await UnitTesterAgent(_settings(tmp_path)).prepare()

        assert not (tmp_path / "vitest.config.js").exists()

    @pytest.mark.asyncio
    async def test_run_parses_output_file(self, tmp_path):
        fake = _script(
            tmp_path,
            "fake_vitest.py",
            "import json, sys\n"
            "out = [a.split('=', 1)[1] for a in sys.argv if a.startswith('--outputFile=')][0]\n"
            f"open(out, 'w').write(json.dumps({VITEST_REPORT!r}))\n"
            "sys.exit(1)\n",
        )
        agent = UnitTesterAgent(_settings(tmp_path, command=fake))

        result = await agent.run()

        assert result.success is False
        assert result.issues == ["Test failed: utils parses ids"]
        assert result.details["stats"] == {"total": 3, "passed": 1, "failed": 1, "skipped": 1}
        saved = json.loads((tmp_path / "results" / UNIT_RESULTS).read_text())
        assert len(saved["tests"]) == 3

    @pytest.mark.asyncio
    async def test_stale_output_from_earlier_run_is_ignored(self, tmp_path):
        settings = _settings(tmp_path, command=_script(tmp_path, "crash.py", "import sys\nsys.exit(3)\n"))
        stale = {"testResults": [{"assertionResults": [{"fullName": "old passing test", "status": "passed"}]}]}
        (settings.output_dir / "vitest-output.json").write_text(json.dumps(stale))

        result = await UnitTesterAgent(settings).run()

        assert result.success is False
        assert result.details["tests"] == []
        assert result.details["stats"]["total"] == 0
        assert result.issues == ["Failed to parse test results"]

    @pytest.mark.asyncio
    async def test_run_without_output_file(self, tmp_path):
        agent = UnitTesterAgent(_settings(tmp_path, command=_script(tmp_path, "noop.py", "")))

        result = await agent.run()

        assert result.success is True
        assert result.issues == ["Failed to parse test results"]


# ===========================================================================
# API tester
# ===========================================================================


class TestApiTester:
    def test_satisfies_agent_protocol(self, tmp_path):
        assert isinstance(ApiTesterAgent(_settings(tmp_path)), Agent)

    @pytest.mark.parametrize(
        "output, expected",
        [
            (" Tests  114 passed (114)", {"passed": 114, "failed": 0, "total": 114}),
            (" Tests  2 failed | 112 passed (114)", {"passed": 112, "failed": 2, "total": 114}),
            ("no summary here", {"passed": 0, "failed": 0, "total": 0}),
        ],
    )
    def test_parse_test_counts(self, output, expected):
        assert parse_test_counts(output) == expected

    @pytest.mark.asyncio
    async def test_run_in_server_dir(self, tmp_path):
        (tmp_path / "server").mkdir()
        fake = _script(
            tmp_path,
            "fake_npm.py",
            "import os, sys\n"
            "assert os.path.basename(os.getcwd()) == 'server'\n"
            "assert os.environ['CI'] == 'true'\n"
            "print(' Tests  1 failed | 4 passed (5)')\n"
            "print('boom', file=sys.stderr)\n"
            "sys.exit(1)\n",
        )
        agent = ApiTesterAgent(_settings(tmp_path, command=fake))

        result = await agent.run()

        assert result.success is False
        assert result.error == "boom"
        assert result.details["stats"] == {"passed": 4, "failed": 1, "total": 5}


# ===========================================================================
# E2E tester
# ===========================================================================


class TestE2ETester:
    def test_parse_playwright_report(self):
        tests, errors = parse_playwright_report(PLAYWRIGHT_REPORT)

        assert [(t["name"], t["status"]) for t in tests] == [
            ("smoke.spec.js > loads home", "passed"),
            ("smoke.spec.js > forms > validates", "failed"),
            ("smoke.spec.js > forms > later", "skipped"),
        ]
        assert tests[1]["duration"] == 170
        assert errors == ["webServer failed to start"]

    @pytest.mark.asyncio
    async def test_prepare_creates_tests_dir(self, tmp_path):
        await E2ETesterAgent(_settings(tmp_path, tests_dir="e2e")).prepare()

        assert (tmp_path / "e2e").is_dir()

    @pytest.mark.asyncio
    async def test_run_records_failures(self, tmp_path):
        fake = _script(
            tmp_path,
            "fake_playwright.py",
            f"import json, sys\nprint(json.dumps({PLAYWRIGHT_REPORT!r}))\nsys.exit(1)\n",
        )
        agent = E2ETesterAgent(_settings(tmp_path, command=fake))

        result = await agent.run()

        assert result.success is False
        assert "Test failed: smoke.spec.js > forms > validates" in result.issues
        assert "Tests exited with code 1" in result.issues
        assert result.details["errors"] == ["webServer failed to start"]
        saved = json.loads((tmp_path / "results" / E2E_RESULTS).read_text())
        assert saved["stats"]["failed"] == 1

    @pytest.mark.asyncio
    async def test_missing_playwright_raises_for_the_policy(self, tmp_path):
        agent = E2ETesterAgent(_settings(tmp_path, command=["definitely-not-npx-xyz"]))

        with pytest.raises(FileNotFoundError):
            await agent.run()
