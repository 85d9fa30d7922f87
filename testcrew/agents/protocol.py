"""Protocol definitions for agents and the collaborators that consume their results."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from testcrew.agents.types import AgentResult, ImprovementPlan, ResultBundle


@runtime_checkable
class Agent(Protocol):
    name: str
    description: str

    async def run(self) -> AgentResult: ...


@runtime_checkable
class PreparableAgent(Agent, Protocol):
    """Agent with a separate, non-retried artifact generation phase."""

    async def prepare(self) -> None: ...


@runtime_checkable
class Reporter(Protocol):
    async def generate(self, results: ResultBundle) -> str: ...


@runtime_checkable
class Coder(Protocol):
    async def analyze(self, results: ResultBundle) -> ImprovementPlan: ...
