"""Claude advisor: asks claude-agent-sdk for a review of an improvement plan."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

# The SDK spawns the claude CLI, which refuses to nest inside another session.
os.environ.pop("CLAUDECODE", None)

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    query,
)

from testcrew.agents.types import ImprovementPlan

logger = logging.getLogger(__name__)

READ_ONLY_TOOLS = ["Read", "Glob", "Grep"]


class ClaudeAdvisor:
    """Reviews a rule-based improvement plan against the project's source."""

    def __init__(
        self,
        model: str = "sonnet",
        max_turns: int = 10,
        timeout: float = 300,
    ) -> None:
        self._model = model
        self._max_turns = max_turns
        self._timeout = timeout

    def build_prompt(self, plan: ImprovementPlan) -> str:
        return (
            "You are reviewing the results of an automated lint and test run.\n"
            "Below is the rule-based improvement plan as JSON. Inspect the source "
            "files it mentions and reply with a short Markdown list of the most "
            "important concrete fixes, most urgent first. Do not modify files.\n\n"
            f"```json\n{json.dumps(plan.to_dict(), indent=2)}\n```"
        )

    async def review(self, plan: ImprovementPlan, working_dir: Path) -> str:
        """Return Claude's review text. Raises RuntimeError on failure or timeout."""
        options = ClaudeAgentOptions(
            model=self._model,
            cwd=working_dir,
            allowed_tools=READ_ONLY_TOOLS,
            permission_mode="default",
            max_turns=self._max_turns,
        )

        text_parts: list[str] = []
        is_error = False
        try:
            async with asyncio.timeout(self._timeout):
                async for message in query(prompt=self.build_prompt(plan), options=options):
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if isinstance(block, TextBlock):
                                text_parts.append(block.text)
                    elif isinstance(message, ResultMessage):
                        is_error = message.is_error
                        if message.result:
                            text_parts.append(message.result)
        except TimeoutError as e:
            raise RuntimeError(f"Claude review timed out after {self._timeout}s") from e

        output = "\n".join(text_parts).strip()
        if is_error:
            raise RuntimeError(f"Claude review failed: {output or 'no output'}")
        return output or "(no output)"
