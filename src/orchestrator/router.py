"""
src/orchestrator/router.py

Router: runs the function-calling loop, executes tools, validates the final answer and returns a tidy result.

Flow of one question:
    seed transcript -> model step -> (execute tool calls, append results, next step)* -> final text
    -> strip fences -> json -> CopilotOutput

Anything a tool does wrong goes back to the model as a payload. Anything the model
does wrong at the end (no JSON, bad shape, too many rounds) is fatal and raised as an AgentError.
"""


import re
import json
import asyncio
import logging
from typing import Any, Dict, List, Optional, Set
from rapidfuzz import fuzz, utils

from copilot_config import AgentSettings
from orchestrator import prompts
from orchestrator.errors import (
    AgentCancelled,
    AgentError,
    EmptyModelResponse,
    MaxRoundsExceeded,
    ModelProviderError,
    ModelTimeout,
    OutputParseError,
    OutputValidationError,
    SourceCoverageError,
)
from orchestrator.models import AuditEntry, ModelProvider, ModelStep, OrchestratorResult, ToolCall, ToolResult
from orchestrator.output_schema import CopilotOutput, validate
from orchestrator.registry import ToolRegistry, spec_name


log = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"```\s*$")

CITATION_MATCH = 90


# -------- Helpers --------------------------------------------------------------
def parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """Model-supplied argument JSON -> dict. Anything unparseable (or not an object) becomes {}."""

    if not raw:
        return {}

    try:
        args = json.loads(raw)
    except ValueError:
        log.warning("unparseable tool arguments, using {}: %.200s", raw)
        return {}

    return args if isinstance(args, dict) else {}

def strip_fences(raw: str) -> str:
    """Drop a ```json ... ``` wrapper the model may add despite instructions."""

    cleaned = raw.strip()

    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned)).strip()

    return cleaned

def parse_final_answer(raw: str) -> CopilotOutput:
    """
    Final model text -> validated CopilotOutput.

    Raises:
        OutputParseError: text is not JSON (message carries the first 500 chars of raw output).
        OutputValidationError: JSON does not match the schema (every failing path listed).
    """

    try:
        parsed = json.loads(strip_fences(raw))
    except ValueError as e:
        raise OutputParseError(str(e), raw) from e

    outcome = validate(parsed)

    if not outcome.ok:
        raise OutputValidationError([str(i) for i in outcome.issues])

    return outcome.output

def missing_sources(output: CopilotOutput, tool_names: Set[str]) -> List[str]:
    """Tools that were called but are not named in any source detail."""

    details = [utils.default_process(s.detail) for s in output.sources]
    missing = []

    for name in sorted(tool_names):
        needle = utils.default_process(name)
        if not any(fuzz.partial_ratio(needle, d) >= CITATION_MATCH for d in details):
            missing.append(name)

    return missing


# -------- Orchestrate ----------------------------------------------------------
async def _complete(provider: ModelProvider, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> Optional[ModelStep]:
    """Call the provider; anything it raises (its own timeouts included) becomes a ModelProviderError."""

    try:
        return await provider.complete(messages, tools)
    except AgentError:
        raise
    except Exception as e:
        raise ModelProviderError(f"Model request failed: {e}") from e

async def _request_step(
        provider: ModelProvider,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        *,
        round_no: int,
        timeout_s: Optional[float],
) -> ModelStep:
    """One model round trip, bounded by the per-round timeout."""

    if timeout_s:
        try:
            step = await asyncio.wait_for(_complete(provider, messages, tools), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            raise ModelTimeout(round_no, timeout_s) from e
    else:
        step = await _complete(provider, messages, tools)

    if step is None:
        raise EmptyModelResponse()

    return step

async def run(
        question: str,
        *,
        neighborhood_context_enabled: bool,
        provider: ModelProvider,
        registry: ToolRegistry,
        settings: Optional[AgentSettings] = None,
        cancel_event: Optional[asyncio.Event] = None,
) -> OrchestratorResult:
    """
    Entry point: answer one seller question with a tool-calling loop.

    Args:
        question: The user's text.
        neighborhood_context_enabled: Whether the neighborhood tool may be offered.
        provider: Model backend (OpenAIProvider in production, a scripted stub in tests).
        registry: Shared tool registry.
        settings: Model/loop knobs; defaults if omitted.
        cancel_event: If set between rounds, the run stops with AgentCancelled.

    Returns:
        OrchestratorResult with the validated output, the transcript and an audit trail.

    Raises:
        AgentError (one of its subclasses) for every fatal outcome.
    """

    settings = settings or AgentSettings()
    tools = registry.list_available(neighborhood_context_enabled)
    visible = {spec_name(t) for t in tools}

    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": prompts.SYSTEM_PROMPT},
        {"role": "user", "content": prompts.user_message(question, neighborhood_context_enabled)},
    ]
    audit: List[AuditEntry] = []
    used_tools: Set[str] = set()

    for round_no in range(1, settings.max_tool_rounds + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise AgentCancelled(round_no)

        step = await _request_step(provider, messages, tools, round_no=round_no, timeout_s=settings.round_timeout_s)
        messages.append(step.as_message())
        log.info("model_round round=%d tool_calls=%d", round_no, len(step.tool_calls))

        # If the model returned a normal message and no tool calls, we are done
        if not step.tool_calls:
            audit.append(AuditEntry(step=f"model_round_{round_no}", ok=True, detail="No tool call: final answer."))
            output = parse_final_answer(step.content or "")
            _check_sources(output, used_tools, audit, strict=settings.strict_sources)
            log.info("final_answer rounds=%d metrics=%d actions=%d", round_no, len(output.metrics), len(output.actions))
            return OrchestratorResult(output=output, messages=messages, audit=audit, rounds=round_no)

        audit.append(AuditEntry(step=f"model_round_{round_no}", ok=True, detail=f"{len(step.tool_calls)} tool call(s) requested."))

        # Execute each tool call in order, feed back results
        for req in step.tool_calls:
            tc = ToolCall(id=req.id, name=req.name, arguments=parse_arguments(req.arguments))
            log.info("tool_call %s(%s)", tc.name, json.dumps(tc.arguments, ensure_ascii=False))

            payload = registry.execute(tc.name, tc.arguments, allowed=visible)
            error = payload.get("error") if isinstance(payload, dict) else None
            result = ToolResult(name=tc.name, ok=error is None, output=None if error else payload, error=error)
            if result.ok:
                used_tools.add(tc.name)

            log.info("tool_result %s ok=%s", tc.name, result.ok)
            audit.append(AuditEntry(step="tool_call", ok=result.ok, detail=error or "ok", tool_call=tc, tool_result=result))

            messages.append({
                "role": "tool",
                "tool_call_id": req.id,
                "content": json.dumps(payload, ensure_ascii=False, default=str),
            })

    log.error("max_rounds_reached rounds=%d", settings.max_tool_rounds)
    raise MaxRoundsExceeded(settings.max_tool_rounds)

def _check_sources(output: CopilotOutput, used_tools: Set[str], audit: List[AuditEntry], *, strict: bool) -> None:
    """Every tool used should be cited in sources. Soft by default; strict raises."""

    missing = missing_sources(output, used_tools)

    if not missing:
        return

    log.warning("missing_source tools=%s", ",".join(missing))
    audit.append(AuditEntry(step="source_check", ok=False, detail=f"Not cited in sources: {', '.join(missing)}"))

    if strict:
        raise SourceCoverageError(missing)
