"""Execution exception types."""


class ConfigError(ValueError):
    """Raised when a test manager configuration is invalid."""


class AgentTimeoutError(TimeoutError):
    """Raised when a single agent attempt exceeds its time limit."""

    def __init__(self, agent_name: str, timeout_seconds: float):
        self.agent_name = agent_name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{agent_name} agent timed out after {timeout_seconds:g}s")
