"""Feature generator: asks Claude for a feature list and shapes it into rows."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re

# The SDK spawns the claude CLI, which refuses to nest inside another session.
os.environ.pop("CLAUDECODE", None)

from claude_agent_sdk import AssistantMessage, ClaudeAgentOptions, ResultMessage, TextBlock, query

from ..board.normalizer import normalize_generated_feature

logger = logging.getLogger(__name__)

FEATURES_PROMPT = """\
You are a product manager scoping the first release of a software product. \
Propose the features it needs.

Rules:
1. Propose exactly {count} features.
2. Each feature is an object with "name", "description", "priority" and \
   "implementation_status".
3. "priority" is one of "must-have", "nice-to-have" or "not-prioritized". \
   Only features the product cannot launch without are "must-have".
4. "implementation_status" is always "not_started".
5. Keep descriptions to one or two sentences.
6. Output ONLY a JSON array of feature objects, no commentary.
"""

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def parse_features(text: str) -> list[dict]:
    """Extract the JSON array from a model reply.

    Accepts a bare array, an array inside a fenced block, or an object
    with a ``features`` key.
    """
    match = _FENCE.search(text)
    body = match.group(1) if match else text
    start = body.find("[")
    brace = body.find("{")
    if brace != -1 and (start == -1 or brace < start):
        payload = json.loads(body[brace:body.rfind("}") + 1])
        payload = payload.get("features", []) if isinstance(payload, dict) else payload
    elif start != -1:
        payload = json.loads(body[start:body.rfind("]") + 1])
    else:
        raise ValueError("No feature list found in model output")
    if not isinstance(payload, list):
        raise ValueError("Feature list is not a JSON array")
    return [f for f in payload if isinstance(f, dict)]


class FeatureGenerator:
    """Generates insertable ``features`` rows from a product description."""

    def __init__(self, model: str = "sonnet", timeout: int = 120) -> None:
        self._model = model
        self._timeout = timeout

    async def generate(self, product_description: str, count: int = 8) -> list[dict]:
        prompt = (
            FEATURES_PROMPT.format(count=count)
            + f"\n\n---\n\nProduct Description: {product_description}"
        )
        text = await self._call_claude(prompt)
        rows = [normalize_generated_feature(raw, i) for i, raw in enumerate(parse_features(text))]
        logger.info("Generated %d features", len(rows))
        return rows

    async def _call_claude(self, prompt: str) -> str:
        options = ClaudeAgentOptions(model=self._model, allowed_tools=[], max_turns=1)
        text_parts: list[str] = []
        result_text: str | None = None
        try:
            async with asyncio.timeout(self._timeout):
                async for message in query(prompt=prompt, options=options):
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if isinstance(block, TextBlock):
                                text_parts.append(block.text)
                    elif isinstance(message, ResultMessage):
                        if message.is_error:
                            raise RuntimeError(f"Feature generation failed: {message.result}")
                        result_text = message.result
        except TimeoutError:
            raise RuntimeError(f"Feature generation timed out after {self._timeout}s") from None
        # ResultMessage.result repeats the final assistant text when present.
        return (result_text or "\n".join(text_parts)).strip()


class MockFeatureGenerator:
    """Test double that returns canned features."""

    def __init__(self, features: list[dict] | None = None):
        self._features = features or [
            {"name": "User sign-up", "description": "Email and password accounts.", "priority": "must-have"},
            {"name": "Kanban board", "description": "Drag items between columns.", "priority": "must-have"},
            {"name": "Dark mode", "description": "Alternate colour theme.", "priority": "nice-to-have"},
        ]
        self.call_count = 0
        self.last_description: str | None = None

    async def generate(self, product_description: str, count: int = 8) -> list[dict]:
        self.call_count += 1
        self.last_description = product_description
        return [
            normalize_generated_feature(raw, i)
            for i, raw in enumerate(self._features[:count])
        ]
