"""Test manager configuration and YAML loading."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from testcrew.agents.types import AGENT_ORDER
from testcrew.execution.exceptions import ConfigError

# Collaborator sections that carry free-form options.
OPTION_SECTIONS: tuple[str, ...] = (*AGENT_ORDER, "reporter", "coder")


@dataclass
class AgentToggles:
    linter: bool = True
    unittest: bool = True
    apitest: bool = True
    e2e: bool = True

    def enabled(self) -> list[str]:
        """Enabled agent names in fixed execution order."""
        return [name for name in AGENT_ORDER if getattr(self, name)]

    def disable(self, name: str) -> None:
        if name not in AGENT_ORDER:
            raise ConfigError(f"Unknown agent: {name}")
        setattr(self, name, False)


@dataclass
class ManagerConfig:
    """Configuration for a test manager run."""

    project_root: Path = field(default_factory=Path.cwd)
    output_dir: Path | None = None
    agents: AgentToggles = field(default_factory=AgentToggles)
    parallel: bool = False
    fail_fast: bool = False
    timeout_seconds: float = 600.0
    retries: int = 0
    retry_backoff_seconds: float = 1.0
    options: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.project_root = Path(self.project_root)
        if self.output_dir is None:
            self.output_dir = self.project_root / "test-results"
        self.output_dir = Path(self.output_dir)
        self.validate()

    def validate(self) -> None:
        try:
            self._check_limits()
        except TypeError as e:
            raise ConfigError(str(e)) from e
        unknown = set(self.options) - set(OPTION_SECTIONS)
        if unknown:
            raise ConfigError(f"Unknown option sections: {', '.join(sorted(unknown))}")

    def _check_limits(self) -> None:
        if self.timeout_seconds <= 0:
            raise ConfigError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ConfigError(f"retries must be an integer, got {self.retries!r}")
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}")
        if self.retry_backoff_seconds < 0:
            raise ConfigError(
                f"retry_backoff_seconds must be >= 0, got {self.retry_backoff_seconds}"
            )

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def options_for(self, name: str) -> dict[str, Any]:
        return dict(self.options.get(name, {}))

    def snapshot(self) -> ManagerConfig:
        """Deep copy used by the manager so later caller edits can't leak into a run."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_root": str(self.project_root),
            "output_dir": str(self.output_dir),
            "agents": {name: getattr(self.agents, name) for name in AGENT_ORDER},
            "parallel": self.parallel,
            "fail_fast": self.fail_fast,
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
        }


_SCALAR_KEYS = {
    f.name for f in fields(ManagerConfig) if f.name not in ("agents", "options")
}


def config_from_dict(data: dict[str, Any], base_dir: Path | None = None) -> ManagerConfig:
    """Build a ManagerConfig from a plain mapping (e.g. parsed YAML).

    Relative ``project_root``/``output_dir`` resolve against ``base_dir``.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    known = _SCALAR_KEYS | {"agents"} | set(OPTION_SECTIONS)
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {k: data[k] for k in _SCALAR_KEYS if k in data}

    for key in ("project_root", "output_dir"):
        if key in kwargs and kwargs[key] is not None:
            path = Path(kwargs[key])
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            kwargs[key] = path

    toggles = data.get("agents") or {}
    if not isinstance(toggles, dict):
        raise ConfigError("'agents' must be a mapping of agent name to bool")
    bad = set(toggles) - set(AGENT_ORDER)
    if bad:
        raise ConfigError(f"Unknown agents: {', '.join(sorted(bad))}")
    kwargs["agents"] = AgentToggles(**{k: bool(v) for k, v in toggles.items()})

    options: dict[str, dict[str, Any]] = {}
    for section in OPTION_SECTIONS:
        value = data.get(section)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise ConfigError(f"'{section}' section must be a mapping")
        options[section] = dict(value)
    kwargs["options"] = options

    try:
        return ManagerConfig(**kwargs)
    except TypeError as e:
        raise ConfigError(str(e)) from e


def load_config(path: Path) -> ManagerConfig:
    """Load a ManagerConfig from a YAML file."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return config_from_dict(data, base_dir=path.parent)
