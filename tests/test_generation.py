"""Tests for the feature generator.

The SDK is mocked; the one real call is marked slow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from unittest.mock import patch

import pytest

from fluxr.generation import FeatureGenerator, MockFeatureGenerator, parse_features


@dataclass
class _Text:
    text: str


@dataclass
class _Assistant:
    content: list = field(default_factory=list)


@dataclass
class _Result:
    result: str | None = None
    is_error: bool = False


def _fake_query(*messages):
    async def _query(*, prompt, options):
        for message in messages:
            yield message

    return _query


def _patched(query):
    return [
        patch("fluxr.generation.features.query", query),
        patch("fluxr.generation.features.AssistantMessage", _Assistant),
        patch("fluxr.generation.features.TextBlock", _Text),
        patch("fluxr.generation.features.ResultMessage", _Result),
    ]


async def _generate(query, **kwargs):
    patches = _patched(query)
    for p in patches:
        p.start()
    try:
        return await FeatureGenerator(model="haiku", timeout=5).generate("A recipe app", **kwargs)
    finally:
        for p in patches:
            p.stop()


class TestParseFeatures:
    def test_bare_array(self):
        assert parse_features('[{"name": "A"}]') == [{"name": "A"}]

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n[{"name": "A"}, {"name": "B"}]\n```\nEnjoy'
        assert [f["name"] for f in parse_features(text)] == ["A", "B"]

    def test_wrapped_object(self):
        assert parse_features('{"features": [{"name": "A"}]}') == [{"name": "A"}]

    def test_non_objects_dropped(self):
        assert parse_features('[{"name": "A"}, "junk", 3]') == [{"name": "A"}]

    def test_no_json(self):
        with pytest.raises(ValueError, match="No feature list"):
            parse_features("I could not think of any features.")


class TestFeatureGenerator:
    async def test_normalizes_result(self):
        reply = '[{"name": "Meal plans", "priority": "Must Have"}, {"description": "no name"}]'
        rows = await _generate(_fake_query(_Assistant([_Text(reply)]), _Result(result=reply)))
        assert rows[0]["name"] == "Meal plans"
        assert rows[0]["priority"] == "must-have"
        assert rows[1]["name"] == "Untitled Feature 2"
        assert [r["position"] for r in rows] == [0, 1000]

    async def test_falls_back_to_assistant_text(self):
        rows = await _generate(_fake_query(_Assistant([_Text('[{"name": "A"}]')]), _Result()))
        assert [r["name"] for r in rows] == ["A"]

    async def test_error_result(self):
        with pytest.raises(RuntimeError, match="Feature generation failed"):
            await _generate(_fake_query(_Result(result="overloaded", is_error=True)))

    async def test_timeout(self):
        async def _hang(*, prompt, options):
            import asyncio
            await asyncio.sleep(999)
            yield  # pragma: no cover

        generator = FeatureGenerator(model="haiku", timeout=1)
        with patch("fluxr.generation.features.query", _hang):
            with pytest.raises(RuntimeError, match="timed out"):
                await generator.generate("A recipe app")

    @pytest.mark.slow
    async def test_real_sdk_call(self):
        rows = await FeatureGenerator(model="haiku").generate("A todo list app", count=2)
        assert rows
        assert all(r["implementation_status"] == "not_started" for r in rows)


class TestMockFeatureGenerator:
    async def test_counts_calls(self):
        generator = MockFeatureGenerator()
        rows = await generator.generate("anything", count=2)
        assert len(rows) == 2
        assert generator.call_count == 1
        assert generator.last_description == "anything"
