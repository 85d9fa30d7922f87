"""Registry mapping agent names to agent factories."""

from __future__ import annotations

from typing import Callable

from testcrew.agents.protocol import Agent
from testcrew.agents.types import AgentSettings

AgentFactory = Callable[[AgentSettings], Agent]


class AgentRegistry:
    """Maps agent names to factories that build a fresh agent per run."""

    def __init__(self) -> None:
        self._factories: dict[str, AgentFactory] = {}

    def register(self, name: str, factory: AgentFactory) -> None:
        self._factories[name] = factory

    def register_instance(self, name: str, agent: Agent) -> None:
        """Register an already-built agent; every lookup returns the same instance."""
        self._factories[name] = lambda _settings: agent

    def get_factory(self, name: str) -> AgentFactory:
        if name not in self._factories:
            raise KeyError(f"No agent registered for: {name}")
        return self._factories[name]

    def create(self, name: str, settings: AgentSettings) -> Agent:
        return self.get_factory(name)(settings)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def list_agents(self) -> list[str]:
        return list(self._factories)
