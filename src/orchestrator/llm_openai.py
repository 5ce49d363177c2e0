"""
src/orchestrator/llm_openai.py

OpenAI client wrapper for function calling.
- OpenAIProvider.complete(): one round trip (no tool execution), normalised into a ModelStep
- extract_tool_calls(): pull function calls out of a response choice

The tool-calling loop itself lives in orchestrator.router.
"""


from typing import Any, Dict, List, Optional
from openai import AsyncOpenAI, OpenAIError

from copilot_config import DEFAULT_MODEL, DEFAULT_TEMPERATURE
from orchestrator.errors import ModelProviderError
from orchestrator.models import ModelStep, ToolCallRequest


def extract_tool_calls(choice) -> List[ToolCallRequest]:
    """
    Normalize tool calls from the OpenAI response choice.
    Arguments stay as the raw JSON string; the router parses them.
    """

    out: List[ToolCallRequest] = []
    tcs = getattr(choice.message, "tool_calls", None)

    if not tcs:
        return out

    for tc in tcs:
        if tc.type == "function" and tc.function:
            out.append(ToolCallRequest(id=tc.id, name=tc.function.name, arguments=tc.function.arguments))

    return out


class OpenAIProvider:
    """ModelProvider backed by the Chat Completions API."""

    def __init__(self, *, model: str = DEFAULT_MODEL, temperature: float = DEFAULT_TEMPERATURE, client: Optional[AsyncOpenAI] = None):

        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI()  # reads OPENAI_API_KEY

    async def complete(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> Optional[ModelStep]:
        """
        Low-level call to OpenAI Chat Completions with optional tool specs.
        Returns None when the response has no choices.
        """

        params: Dict[str, Any] = {"model": self.model, "messages": messages, "temperature": self.temperature}

        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        try:
            resp = await self.client.chat.completions.create(**params)
        except OpenAIError as e:
            raise ModelProviderError(f"OpenAI request failed: {e}") from e

        if not resp.choices:
            return None

        choice = resp.choices[0]

        return ModelStep(content=choice.message.content, tool_calls=extract_tool_calls(choice))
