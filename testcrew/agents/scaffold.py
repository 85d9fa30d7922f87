"""Starter test generation for the unit and E2E agents.

Unit targets are found by convention: ``<src>/utils``, ``<src>/db/services``
and ``<src>/hooks``. E2E routes come from ``<Route path="...">`` elements in
the app component. Every writer skips files that already exist, so running
generation again never clobbers tests a developer has filled in.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from string import Template

from testcrew.agents.linter import collect_files

logger = logging.getLogger(__name__)

TARGET_DIRS = (
    ("utility", Path("utils")),
    ("service", Path("db") / "services"),
    ("hook", Path("hooks")),
)

SETUP_FILE = "setup.js"
NAVIGATION_SPEC = "navigation.spec.js"
FORMS_SPEC = "forms.spec.js"

_EXPORT = re.compile(r"export\s+(?:const|function)\s+(\w+)")
_EXPORT_WITH_ASYNC = re.compile(r"export\s+(?:const|function|async\s+function)\s+(\w+)")
_ROUTE = re.compile(r"""<Route\s+path=["']([^"']+)["']""")


@dataclass
class ModuleTarget:
    """A source module that gets a generated unit test."""

    kind: str
    path: Path

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def test_file(self) -> str:
        return f"{self.name}.test.js"


def find_test_targets(src_path: Path) -> list[ModuleTarget]:
    targets: list[ModuleTarget] = []
    for kind, subdir in TARGET_DIRS:
        directory = src_path / subdir
        if not directory.is_dir():
            logger.debug("No %s directory at %s", kind, directory)
            continue
        for path in collect_files(directory, (".js",)):
            if kind != "utility" and path.name == "index.js":
                continue
            targets.append(ModuleTarget(kind=kind, path=path))
    return targets


def exported_names(content: str, include_async: bool = False) -> list[str]:
    pattern = _EXPORT_WITH_ASYNC if include_async else _EXPORT
    return pattern.findall(content)


def import_path(module: Path, tests_dir: Path) -> str:
    """Extensionless relative import of ``module`` from a test in ``tests_dir``."""
    rel = Path(os.path.relpath(module.with_suffix(""), tests_dir)).as_posix()
    return rel if rel.startswith(".") else f"./{rel}"


# ---------------------------------------------------------------------------
# Vitest templates
# ---------------------------------------------------------------------------

_API_MOCK = Template("""\
vi.mock('$api', () => ({
  api: {
    get: vi.fn(),
    post: vi.fn(),
    put: vi.fn(),
    delete: vi.fn(),
  }
}));
""")

_UTILITY_CASE = Template("""\
  describe('$fn', () => {
    it('should be defined', () => {
      expect($fn).toBeDefined();
      expect(typeof $fn).toBe('function');
    });

    it('should handle valid input', () => {
      // const result = $fn(validInput);
      // expect(result).toBe(expectedOutput);
    });

    it('should handle edge cases', () => {
      // expect($fn(null)).toBeDefined();
      // expect($fn(undefined)).toBeDefined();
    });
  });

""")

_SERVICE_CASE = Template("""\
  describe('$fn', () => {
    it('should be defined', () => {
      expect(service.$fn).toBeDefined();
    });

    it('should handle successful operation', async () => {
      // const result = await service.$fn(testData);
      // expect(result).toBeDefined();
    });

    it('should handle errors gracefully', async () => {
      // await expect(service.$fn(invalidData)).rejects.toThrow();
    });
  });

""")

_HOOK_TEST = Template("""\
import { describe, it, expect, vi } from 'vitest';
import { $name } from '$module';

$api_mock
describe('$name', () => {
  it('should be defined', () => {
    expect($name).toBeDefined();
  });

  it('should initialize correctly', () => {
    // const { result } = renderHook(() => $name());
    // expect(result.current).toBeDefined();
  });
});
""")

TEST_SETUP = """\
import { afterEach } from 'vitest';
import { cleanup } from '@testing-library/react';
import '@testing-library/jest-dom/vitest';

afterEach(() => {
  cleanup();
});

// jsdom has no IndexedDB
global.indexedDB = {
  open: () => ({
    onsuccess: null,
    onerror: null,
    onupgradeneeded: null,
  }),
};
"""


def render_unit_test(
    target: ModuleTarget, content: str, tests_dir: Path, api_module: str
) -> str | None:
    """Vitest source for ``target``, or None when it exports nothing testable.

    ``api_module`` is the import path of the project's API client, which
    service and hook tests mock out.
    """
    module = import_path(target.path, tests_dir)
    api_mock = _API_MOCK.substitute(api=api_module)

    if target.kind == "hook":
        return _HOOK_TEST.substitute(name=target.name, module=module, api_mock=api_mock)

    if target.kind == "service":
        names = exported_names(content, include_async=True)
        if not names:
            return None
        header = (
            "import { describe, it, expect, beforeEach, vi } from 'vitest';\n"
            f"import * as service from '{module}';\n\n"
            f"{api_mock}\n"
            f"describe('{target.name}', () => {{\n"
            "  beforeEach(() => {\n"
            "    vi.clearAllMocks();\n"
            "  });\n\n"
        )
        return header + "".join(_SERVICE_CASE.substitute(fn=n) for n in names) + "});\n"

    names = exported_names(content)
    if not names:
        return None
    header = (
        "import { describe, it, expect } from 'vitest';\n"
        f"import {{ {', '.join(names)} }} from '{module}';\n\n"
        f"describe('{target.name}', () => {{\n"
    )
    return header + "".join(_UTILITY_CASE.substitute(fn=n) for n in names) + "});\n"


def write_unit_tests(src_path: Path, tests_dir: Path) -> list[Path]:
    """Generate missing unit tests plus the shared setup file. Returns new files."""
    written: list[Path] = []
    targets = find_test_targets(src_path)
    api_module = import_path(src_path / "utils" / "api.js", tests_dir)
    logger.info("Found %d modules to test", len(targets))

    for target in targets:
        test_path = tests_dir / target.test_file
        if test_path.exists():
            logger.debug("Skipping existing test: %s", test_path.name)
            continue
        try:
            content = target.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not generate test for %s: %s", target.name, e)
            continue
        source = render_unit_test(target, content, tests_dir, api_module)
        if source is None:
            continue
        test_path.write_text(source)
        written.append(test_path)
        logger.info("Generated test: %s", test_path.name)

    setup = tests_dir / SETUP_FILE
    if not setup.exists():
        setup.write_text(TEST_SETUP)
        written.append(setup)
    return written


# ---------------------------------------------------------------------------
# Playwright templates
# ---------------------------------------------------------------------------

_ROUTE_SPEC = Template("""\
import { test, expect } from '@playwright/test';

test.describe('$title page', () => {
  test('should load successfully', async ({ page }) => {
    await page.goto('$route');
    await expect(page).toHaveURL('$route');
    await expect(page.locator('body')).toBeVisible();
  });

  test('should have proper title or heading', async ({ page }) => {
    await page.goto('$route');
    const heading = page.locator('h1, h2').first();
    await expect(heading).toBeVisible();
  });

  test('should not have console errors', async ({ page }) => {
    const errors = [];
    page.on('console', msg => {
      if (msg.type() === 'error') {
        errors.push(msg.text());
      }
    });

    await page.goto('$route');
    await page.waitForLoadState('networkidle');

    expect(errors).toHaveLength(0);
  });
});
""")

NAVIGATION_SOURCE = """\
import { test, expect } from '@playwright/test';

test.describe('Navigation', () => {
  test('should navigate between pages', async ({ page }) => {
    await page.goto('/');

    const navLinks = await page.locator('nav a, [role="navigation"] a').all();

    for (const link of navLinks.slice(0, 5)) {
      const href = await link.getAttribute('href');
      if (href && !href.startsWith('http') && !href.startsWith('#')) {
        await link.click();
        await page.waitForLoadState('networkidle');
        await expect(page.locator('body')).toBeVisible();
        await page.goto('/');
      }
    }
  });

  test('should have responsive navigation', async ({ page }) => {
    await page.goto('/');
    const nav = page.locator('nav, [role="navigation"]').first();
    await expect(nav).toBeVisible();
  });
});
"""

FORMS_SOURCE = """\
import { test, expect } from '@playwright/test';

test.describe('Forms', () => {
  test('should handle form validation', async ({ page }) => {
    await page.goto('/');

    const forms = await page.locator('form').all();
    if (forms.length > 0) {
      const submitButton = forms[0].locator('button[type="submit"], input[type="submit"]').first();
      if (await submitButton.count() > 0) {
        await submitButton.click();
        await expect(page.locator('body')).toBeVisible();
      }
    }
  });

  test('should fill and submit forms', async ({ page }) => {
    await page.goto('/');

    const forms = await page.locator('form').all();
    for (const form of forms.slice(0, 2)) {
      const inputs = await form.locator('input:not([type="submit"]), textarea, select').all();
      for (const input of inputs) {
        const type = await input.getAttribute('type');
        const tagName = await input.evaluate(el => el.tagName.toLowerCase());
        if (type === 'text' || type === 'email' || tagName === 'textarea') {
          await input.fill('Test Value');
        } else if (type === 'checkbox') {
          await input.check();
        }
      }
    }
  });
});
"""

PLAYWRIGHT_CONFIG = Template("""\
import { defineConfig, devices } from '@playwright/test';

export default defineConfig({
  testDir: './$tests_dir',
  fullyParallel: true,
  forbidOnly: !!process.env.CI,
  workers: process.env.CI ? 1 : undefined,
  outputDir: 'test-results/playwright-results',
  use: {
    baseURL: process.env.BASE_URL || '$base_url',
    trace: 'on-first-retry',
    screenshot: 'only-on-failure',
  },
  projects: [
    {
      name: 'chromium',
      use: { ...devices['Desktop Chrome'] },
    },
  ],
  webServer: {
    command: 'npm run dev',
    url: process.env.BASE_URL || '$base_url',
    reuseExistingServer: !process.env.CI,
  },
});
""")


def extract_routes(content: str) -> list[str]:
    """Unique ``<Route path>`` values in source order."""
    return list(dict.fromkeys(_ROUTE.findall(content)))


def route_spec_name(route: str) -> str:
    if route == "/":
        return "home"
    name = route.strip("/").replace("/", "-")
    # Dynamic segments (":id") and wildcards are not valid in file names everywhere.
    return re.sub(r"[^\w.-]", "_", name) or "root"


def render_route_spec(route: str) -> str:
    return _ROUTE_SPEC.substitute(title=route_spec_name(route), route=route)


def write_e2e_specs(app_file: Path, tests_dir: Path) -> list[Path]:
    """Generate missing route, navigation and form specs. Returns new files."""
    try:
        routes = extract_routes(app_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not analyze routes in %s: %s", app_file, e)
        routes = []
    logger.info("Found %d routes", len(routes))

    specs = {f"{route_spec_name(r)}.spec.js": render_route_spec(r) for r in routes}
    specs[NAVIGATION_SPEC] = NAVIGATION_SOURCE
    specs[FORMS_SPEC] = FORMS_SOURCE

    written: list[Path] = []
    for filename, source in specs.items():
        path = tests_dir / filename
        if path.exists():
            continue
        path.write_text(source)
        written.append(path)
        logger.info("Generated test: %s", filename)
    return written


def render_playwright_config(tests_dir: str, base_url: str) -> str:
    return PLAYWRIGHT_CONFIG.substitute(tests_dir=Path(tests_dir).as_posix(), base_url=base_url)
