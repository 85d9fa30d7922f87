"""Multi-agent test orchestration: lint, unit, API and E2E agents plus reporting."""

__version__ = "0.1.0"
