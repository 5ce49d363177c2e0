"""
src/orchestrator/models.py

Pydantic models for tool-calling I/O and audit entries, plus the model-provider interface.
"""


from typing import Any, Dict, List, Optional, Protocol
from pydantic import BaseModel, Field

from orchestrator.output_schema import CopilotOutput


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model. `arguments` is the raw JSON string, untrusted."""

    id: str
    name: str
    arguments: Optional[str] = None


class ModelStep(BaseModel):
    """Provider-neutral view of one model response."""

    content: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)

    def as_message(self) -> Dict[str, Any]:
        """The assistant message to append to the transcript (OpenAI chat format)."""

        msg: Dict[str, Any] = {"role": "assistant", "content": self.content}

        if self.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments or "{}"},
                }
                for tc in self.tool_calls
            ]

        return msg


class ModelProvider(Protocol):
    """One implementation per LLM provider. The router only ever talks to this."""

    async def complete(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> Optional[ModelStep]:
        """Return the next step, or None when the provider sent back no choice at all."""
        ...


class ToolCall(BaseModel):

    id: Optional[str] = None
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):

    name: str
    ok: bool
    output: Any
    error: Optional[str] = None


class AuditEntry(BaseModel):

    step: str
    ok: bool
    detail: str
    tool_call: Optional[ToolCall] = None
    tool_result: Optional[ToolResult] = None


class OrchestratorResult(BaseModel):

    output: CopilotOutput
    messages: List[Dict[str, Any]] # Final chat messages
    audit: List[AuditEntry]
    rounds: int
