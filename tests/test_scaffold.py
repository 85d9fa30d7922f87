"""Tests for starter test generation and the agents' prepare phase."""

from __future__ import annotations

import pytest

from testcrew.agents.e2e_tester import E2ETesterAgent
from testcrew.agents.scaffold import (
    FORMS_SPEC,
    NAVIGATION_SPEC,
    SETUP_FILE,
    extract_routes,
    exported_names,
    find_test_targets,
    import_path,
    render_route_spec,
    route_spec_name,
    write_e2e_specs,
    write_unit_tests,
)
from testcrew.agents.types import AgentSettings
from testcrew.agents.unit_tester import UnitTesterAgent

APP_JSX = """\
import { Routes, Route } from 'react-router-dom';

export default function App() {
  return (
    <Routes>
      <Route path="/" element={<Home />} />
      <Route path='/properties' element={<Properties />} />
      <Route path="/properties/:id" element={<PropertyDetail />} />
      <Route path="/" element={<Home />} />
    </Routes>
  );
}
"""


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    (src / "utils").mkdir(parents=True)
    (src / "db" / "services").mkdir(parents=True)
    (src / "hooks").mkdir()
    (src / "utils" / "format.js").write_text(
        "export const formatDate = (d) => d;\nexport function slugify(s) { return s; }\n"
    )
    (src / "utils" / "constants.js").write_text("const A = 1;\n")
    (src / "db" / "services" / "propertyService.js").write_text(
        "export async function getProperties() {}\nexport const deleteProperty = () => {};\n"
    )
    (src / "db" / "services" / "index.js").write_text("export * from './propertyService';\n")
    (src / "hooks" / "useProperties.js").write_text("export function useProperties() {}\n")
    (src / "App.jsx").write_text(APP_JSX)
    return tmp_path


def _settings(root, **options) -> AgentSettings:
    out = root / "results"
    out.mkdir(exist_ok=True)
    return AgentSettings(project_root=root, output_dir=out, options=options)


# ===========================================================================
# Unit test generation
# ===========================================================================


class TestUnitGeneration:
    def test_finds_targets_by_convention(self, project):
        targets = find_test_targets(project / "src")

        assert [(t.kind, t.name) for t in targets] == [
            ("utility", "constants"),
            ("utility", "format"),
            ("service", "propertyService"),
            ("hook", "useProperties"),
        ]

    def test_exported_names(self):
        content = "export const a = 1;\nexport async function b() {}\nexport function c() {}\n"

        assert exported_names(content) == ["a", "c"]
        assert exported_names(content, include_async=True) == ["a", "b", "c"]

    def test_import_path_is_relative_to_tests_dir(self, tmp_path):
        module = tmp_path / "src" / "utils" / "format.js"

        assert import_path(module, tmp_path / "src" / "__tests__") == "../utils/format"
        assert import_path(module, tmp_path / "src") == "./utils/format"

    def test_writes_tests_for_exporting_modules(self, project):
        tests_dir = project / "src" / "__tests__"
        tests_dir.mkdir()

        written = write_unit_tests(project / "src", tests_dir)

        assert sorted(p.name for p in written) == [
            "format.test.js",
            "propertyService.test.js",
            SETUP_FILE,
            "useProperties.test.js",
        ]
        utility = (tests_dir / "format.test.js").read_text()
        assert "import { formatDate, slugify } from '../utils/format';" in utility
        assert "expect(typeof slugify).toBe('function');" in utility
        service = (tests_dir / "propertyService.test.js").read_text()
        assert "import * as service from '../db/services/propertyService';" in service
        assert "vi.mock('../utils/api'" in service
        assert "expect(service.getProperties).toBeDefined();" in service
        hook = (tests_dir / "useProperties.test.js").read_text()
        assert "import { useProperties } from '../hooks/useProperties';" in hook

    def test_existing_tests_are_never_overwritten(self, project):
        tests_dir = project / "src" / "__tests__"
        tests_dir.mkdir()
        (tests_dir / "format.test.js").write_text("// hand written")

        write_unit_tests(project / "src", tests_dir)
        second = write_unit_tests(project / "src", tests_dir)

        assert (tests_dir / "format.test.js").read_text() == "// hand written"
        assert second == []

    def test_missing_source_dirs_only_write_setup(self, tmp_path):
        tests_dir = tmp_path / "tests"
        tests_dir.mkdir()

        written = write_unit_tests(tmp_path / "src", tests_dir)

        assert [p.name for p in written] == [SETUP_FILE]

    @pytest.mark.asyncio
    async def test_agent_prepare_generates_tests_and_config(self, project):
        agent = UnitTesterAgent(_settings(project))

        await agent.prepare()

        assert (project / "src" / "__tests__" / "format.test.js").exists()
        config = (project / "vitest.config.js").read_text()
        assert "setupFiles: ['./src/__tests__/setup.js']," in config
        assert len(agent.generated) == 4

    @pytest.mark.asyncio
    async def test_agent_prepare_can_skip_generation(self, project):
        agent = UnitTesterAgent(_settings(project, generate_tests=False))

        await agent.prepare()

        assert not (project / "src" / "__tests__" / "format.test.js").exists()
        assert "setupFiles: []," in (project / "vitest.config.js").read_text()


# ===========================================================================
# E2E spec generation
# ===========================================================================


class TestE2EGeneration:
    def test_extract_routes_dedupes_in_order(self):
        assert extract_routes(APP_JSX) == ["/", "/properties", "/properties/:id"]

    @pytest.mark.parametrize(
        "route, expected",
        [
            ("/", "home"),
            ("/properties", "properties"),
            ("/properties/:id", "properties-_id"),
            ("/reports/", "reports"),
        ],
    )
    def test_route_spec_name(self, route, expected):
        assert route_spec_name(route) == expected

    def test_route_spec_visits_route(self):
        spec = render_route_spec("/properties")

        assert "test.describe('properties page'" in spec
        assert "await page.goto('/properties');" in spec

    def test_writes_route_navigation_and_form_specs(self, project):
        tests_dir = project / "e2e-tests"
        tests_dir.mkdir()

        written = write_e2e_specs(project / "src" / "App.jsx", tests_dir)

        assert sorted(p.name for p in written) == sorted([
            "home.spec.js",
            "properties.spec.js",
            "properties-_id.spec.js",
            NAVIGATION_SPEC,
            FORMS_SPEC,
        ])

    def test_missing_app_file_still_writes_generic_specs(self, tmp_path):
        written = write_e2e_specs(tmp_path / "src" / "App.jsx", tmp_path)

        assert sorted(p.name for p in written) == [FORMS_SPEC, NAVIGATION_SPEC]

    @pytest.mark.asyncio
    async def test_agent_prepare_is_idempotent(self, project):
        agent = E2ETesterAgent(_settings(project, base_url="http://localhost:4000"))

        await agent.prepare()
        (project / "e2e-tests" / "home.spec.js").write_text("// customized")
        await agent.prepare()

        assert (project / "e2e-tests" / "home.spec.js").read_text() == "// customized"
        assert agent.generated == []
        config = (project / "playwright.config.js").read_text()
        assert "testDir: './e2e-tests'," in config
        assert "http://localhost:4000" in config

    @pytest.mark.asyncio
    async def test_existing_playwright_config_is_kept(self, project):
        (project / "playwright.config.ts").write_text("export default {}")

        await E2ETesterAgent(_settings(project)).prepare()

        assert not (project / "playwright.config.js").exists()
