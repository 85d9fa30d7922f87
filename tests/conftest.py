"""Shared test configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from testcrew.execution.config import ManagerConfig


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="Run slow tests"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="Need --run-slow to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for a ManagerConfig rooted in tmp_path with a short timeout."""

    def _make(**overrides) -> ManagerConfig:
        values = {
            "project_root": tmp_path,
            "output_dir": tmp_path / "results",
            "timeout_seconds": 5.0,
            "retry_backoff_seconds": 0.0,
        }
        values.update(overrides)
        return ManagerConfig(**values)

    return _make


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
