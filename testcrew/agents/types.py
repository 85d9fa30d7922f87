"""Data types shared by agents, the test manager and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

# Fixed sequential order; also the set of ResultBundle slots.
AGENT_ORDER: tuple[str, ...] = ("linter", "unittest", "apitest", "e2e")

# Agents whose outcome decides the overall status. apitest is informational.
GATING_AGENTS: tuple[str, ...] = ("linter", "unittest", "e2e")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AgentOutcome(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class AgentSettings:
    """What a registry factory receives when constructing an agent."""

    project_root: Path
    output_dir: Path
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResult:
    success: bool
    issues: list[Any] = field(default_factory=list)
    error: str | None = None
    timestamp: str = field(default_factory=utc_timestamp)
    attempts: int = 1
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str, **details: Any) -> AgentResult:
        return cls(success=False, error=message, details=details)

    @property
    def outcome(self) -> AgentOutcome:
        return AgentOutcome.PASSED if self.success else AgentOutcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.details)
        data.update(
            success=self.success,
            issues=list(self.issues),
            error=self.error,
            timestamp=self.timestamp,
            attempts=self.attempts,
        )
        return data


@dataclass
class AgentSummary:
    success: bool
    issues: int
    outcome: AgentOutcome

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "issues": self.issues, "outcome": self.outcome.value}


@dataclass
class Summary:
    timestamp: str | None
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    agents: dict[str, AgentSummary] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "totalTests": self.total_tests,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "agents": {name: s.to_dict() for name, s in self.agents.items()},
            "timings": {name: round(secs, 3) for name, secs in self.timings.items()},
        }


@dataclass
class ResultBundle:
    """One slot per agent; ``None`` means the agent did not run."""

    linter: AgentResult | None = None
    unittest: AgentResult | None = None
    apitest: AgentResult | None = None
    e2e: AgentResult | None = None
    timestamp: str | None = None
    summary: Summary | None = None
    timings: dict[str, float] = field(default_factory=dict)

    def get(self, name: str) -> AgentResult | None:
        if name not in AGENT_ORDER:
            raise KeyError(f"Unknown agent: {name}")
        return getattr(self, name)

    def set(self, name: str, result: AgentResult | None) -> None:
        if name not in AGENT_ORDER:
            raise KeyError(f"Unknown agent: {name}")
        setattr(self, name, result)

    def items(self) -> list[tuple[str, AgentResult | None]]:
        return [(name, getattr(self, name)) for name in AGENT_ORDER]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            name: result.to_dict() if result is not None else None
            for name, result in self.items()
        }
        data["timestamp"] = self.timestamp
        data["summary"] = self.summary.to_dict() if self.summary is not None else None
        data["timings"] = dict(self.timings)
        return data


@dataclass
class Suggestion:
    priority: str
    category: str
    title: str
    description: str
    action: str
    files: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "priority": self.priority,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "action": self.action,
            "files": list(self.files),
            "recommendations": list(self.recommendations),
            "details": list(self.details),
        }


@dataclass
class ImprovementPlan:
    suggestions: list[Suggestion] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)
    ai_review: str | None = None

    def by_priority(self, priority: str) -> list[Suggestion]:
        return [s for s in self.suggestions if s.priority == priority]

    def by_category(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.suggestions:
            counts[s.category] = counts.get(s.category, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": {
                "totalSuggestions": len(self.suggestions),
                "byPriority": {
                    p: len(self.by_priority(p)) for p in ("high", "medium", "low")
                },
                "byCategory": self.by_category(),
            },
            "aiReview": self.ai_review,
        }
