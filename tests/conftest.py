"""Shared fixtures: the bundled fixture data, a registry over it, and a scripted model."""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from copilot_config import AgentSettings
from context.loader import BusinessData, load_business_data
from orchestrator.models import ModelStep, ToolCallRequest
from orchestrator.registry import ToolRegistry, spec_name


WEEK = {"startDate": "2026-01-30", "endDate": "2026-02-05"}


class ScriptedProvider:
    """ModelProvider stub that replays a fixed list of steps and records every request."""

    def __init__(self, steps: Sequence[Optional[ModelStep]], *, repeat_last: bool = False):
        self.steps = list(steps)
        self.repeat_last = repeat_last
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages, tools):
        self.calls.append({"messages": list(messages), "tools": [spec_name(t) for t in tools]})
        if len(self.steps) > 1 or not self.repeat_last:
            return self.steps.pop(0)
        return self.steps[0]


def tool_step(*calls: Tuple[str, Optional[str]]) -> ModelStep:
    """Assistant step requesting the given (name, raw arguments) calls, ids call_1, call_2, ..."""
    return ModelStep(
        content=None,
        tool_calls=[ToolCallRequest(id=f"call_{i}", name=name, arguments=args) for i, (name, args) in enumerate(calls, 1)],
    )


def final_step(content: Any) -> ModelStep:
    if not isinstance(content, str):
        content = json.dumps(content)
    return ModelStep(content=content)


def valid_answer(**overrides) -> Dict[str, Any]:
    answer = {
        "answer_markdown": "Sales for **2026-01-30 to 2026-02-05** totalled $4,446.25.",
        "metrics": [{"label": "Revenue", "value": "4446.25", "unit": "USD", "trend": "up"}],
        "actions": [],
        "sources": [{"type": "table", "detail": "getSalesSummary 2026-01-30 to 2026-02-05"}],
        "warnings": [],
        "followups": ["Which hours were busiest?"],
    }
    answer.update(overrides)
    return answer


@pytest.fixture(scope="session")
def business_data() -> BusinessData:
    return load_business_data()


@pytest.fixture
def registry(business_data) -> ToolRegistry:
    return ToolRegistry(business_data)


@pytest.fixture
def settings() -> AgentSettings:
    return AgentSettings(round_timeout_s=5)
