"""The tool-calling loop, driven by a scripted model."""

import asyncio
import json

import pytest

from copilot_config import AgentSettings, NEIGHBORHOOD_TOOL
from orchestrator import router
from orchestrator.errors import (
    AgentCancelled,
    EmptyModelResponse,
    MaxRoundsExceeded,
    ModelProviderError,
    ModelTimeout,
    OutputParseError,
    OutputValidationError,
    SourceCoverageError,
)
from orchestrator.router import parse_arguments, parse_final_answer, strip_fences

from conftest import WEEK, ScriptedProvider, final_step, tool_step, valid_answer


async def ask(provider, registry, settings, question="How were sales this week?", enabled=False, **kw):
    return await router.run(
        question,
        neighborhood_context_enabled=enabled,
        provider=provider,
        registry=registry,
        settings=settings,
        **kw,
    )


def tool_messages(messages):
    return [m for m in messages if m["role"] == "tool"]


# -------- helpers --------------------------------------------------------------
@pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]", "42"])
def test_parse_arguments_falls_back_to_empty(raw):
    assert parse_arguments(raw) == {}


def test_parse_arguments_object():
    assert parse_arguments(json.dumps(WEEK)) == WEEK


def test_fenced_answer_parses_like_unwrapped():
    body = json.dumps(valid_answer())

    assert strip_fences(f"```json\n{body}\n```") == body
    assert strip_fences(f"```\n{body}\n```") == body
    assert parse_final_answer(f"```json\n{body}\n```") == parse_final_answer(body)


# -------- end to end -----------------------------------------------------------
@pytest.mark.asyncio
async def test_sales_question_calls_tool_then_answers(registry, settings):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", json.dumps(WEEK))),
        final_step(valid_answer()),
    ])

    result = await ask(provider, registry, settings)

    assert result.rounds == 2
    assert any(s.type == "table" for s in result.output.sources)
    assert len(provider.calls) == 2
    assert NEIGHBORHOOD_TOOL not in provider.calls[0]["tools"]

    assistant = result.messages[2]
    assert assistant["role"] == "assistant"
    assert assistant["tool_calls"][0]["id"] == "call_1"
    (tool_msg,) = tool_messages(result.messages)
    assert tool_msg["tool_call_id"] == "call_1"
    assert json.loads(tool_msg["content"])["total_revenue"] == 4446.25

    steps = [a.step for a in result.audit]
    assert steps == ["model_round_1", "tool_call", "model_round_2"]


@pytest.mark.asyncio
async def test_weather_question_without_context_answers_directly(registry, settings):
    answer = {
        "answer_markdown": "I can't see weather data right now. Turn on **Neighborhood Context** and ask again.",
        "metrics": [],
        "actions": [],
        "sources": [{"type": "rule", "detail": "neighborhood_context_enabled is false"}],
        "warnings": [],
        "followups": ["Enable Neighborhood Context and ask about this week's weather"],
    }
    provider = ScriptedProvider([final_step(answer)])

    result = await ask(provider, registry, settings, question="Will the rain hurt sales this week?")

    assert result.rounds == 1
    assert result.output.metrics == [] and result.output.actions == []
    seeded = provider.calls[0]["messages"][1]["content"]
    assert seeded.startswith("neighborhood_context_enabled: false\n\n")
    assert NEIGHBORHOOD_TOOL not in provider.calls[0]["tools"]


@pytest.mark.asyncio
async def test_context_enabled_offers_neighborhood_tool(registry, settings):
    provider = ScriptedProvider([
        tool_step((NEIGHBORHOOD_TOOL, json.dumps(WEEK))),
        final_step(valid_answer(sources=[{"type": "context", "detail": "getNeighborhoodContext 2026-01-30..2026-02-05"}])),
    ])

    result = await ask(provider, registry, settings, enabled=True)

    assert NEIGHBORHOOD_TOOL in provider.calls[0]["tools"]
    assert provider.calls[0]["messages"][1]["content"].startswith("neighborhood_context_enabled: true")
    assert json.loads(tool_messages(result.messages)[0]["content"])["events"]["count"] == 3


@pytest.mark.asyncio
async def test_non_json_answer_fails_with_excerpt(registry, settings):
    provider = ScriptedProvider([final_step("not json at all")])

    with pytest.raises(OutputParseError) as exc:
        await ask(provider, registry, settings)

    assert "LLM output is not valid JSON" in str(exc.value)
    assert "not json at all" in str(exc.value)


@pytest.mark.asyncio
async def test_parse_error_excerpt_is_truncated(registry, settings):
    provider = ScriptedProvider([final_step("x" * 1000)])

    with pytest.raises(OutputParseError) as exc:
        await ask(provider, registry, settings)

    assert "x" * 500 in str(exc.value)
    assert "x" * 501 not in str(exc.value)


@pytest.mark.asyncio
async def test_answer_without_sources_fails_validation(registry, settings):
    answer = valid_answer()
    del answer["sources"]
    provider = ScriptedProvider([final_step(answer)])

    with pytest.raises(OutputValidationError) as exc:
        await ask(provider, registry, settings)

    assert str(exc.value).startswith("LLM output failed schema validation: ")
    assert exc.value.issues[0].startswith("sources: ")


@pytest.mark.asyncio
async def test_validation_error_lists_every_issue(registry, settings):
    answer = valid_answer(metrics=[{"label": "a", "value": "1"}] * 7, followups=["?"] * 4)
    provider = ScriptedProvider([final_step(answer)])

    with pytest.raises(OutputValidationError) as exc:
        await ask(provider, registry, settings)

    assert len(exc.value.issues) == 2
    assert "; " in str(exc.value)


@pytest.mark.asyncio
async def test_empty_content_is_a_parse_error(registry, settings):
    provider = ScriptedProvider([final_step("")])

    with pytest.raises(OutputParseError):
        await ask(provider, registry, settings)


@pytest.mark.asyncio
async def test_no_choice_is_an_empty_response(registry, settings):
    provider = ScriptedProvider([None])

    with pytest.raises(EmptyModelResponse, match="Empty response from LLM"):
        await ask(provider, registry, settings)


# -------- loop behaviour -------------------------------------------------------
@pytest.mark.asyncio
async def test_endless_tool_calls_stop_after_exactly_eight_rounds(registry):
    provider = ScriptedProvider([tool_step(("getInventoryStatus", "{}"))], repeat_last=True)

    with pytest.raises(MaxRoundsExceeded, match="Agent exceeded maximum tool-calling rounds"):
        await ask(provider, registry, AgentSettings())

    assert len(provider.calls) == 8


@pytest.mark.asyncio
async def test_round_cap_is_configurable(registry):
    provider = ScriptedProvider([tool_step(("getInventoryStatus", "{}"))], repeat_last=True)

    with pytest.raises(MaxRoundsExceeded):
        await ask(provider, registry, AgentSettings(max_tool_rounds=3))

    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_answer_on_last_allowed_round_succeeds(registry):
    steps = [tool_step(("getInventoryStatus", "{}"))] * 7 + [final_step(valid_answer())]
    provider = ScriptedProvider(steps)

    result = await ask(provider, registry, AgentSettings())

    assert result.rounds == 8


@pytest.mark.asyncio
async def test_malformed_arguments_do_not_abort_the_turn(registry, settings):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", "{startDate: oops")),
        final_step(valid_answer(warnings=["Sales summary failed; no figures shown."])),
    ])

    result = await ask(provider, registry, settings)

    (tool_msg,) = tool_messages(result.messages)
    assert json.loads(tool_msg["content"])["error"].startswith("Tool getSalesSummary failed:")
    call = next(a for a in result.audit if a.step == "tool_call")
    assert call.tool_call.arguments == {}
    assert call.ok is False


@pytest.mark.asyncio
async def test_tool_calls_run_in_request_order(registry, settings):
    provider = ScriptedProvider([
        tool_step(
            ("getInventoryStatus", "{}"),
            ("getForecast", "{}"),
            ("getTopItems", json.dumps({**WEEK, "limit": 1})),
        ),
        final_step(valid_answer()),
    ])

    result = await ask(provider, registry, settings)

    msgs = tool_messages(result.messages)
    assert [m["tool_call_id"] for m in msgs] == ["call_1", "call_2", "call_3"]
    assert json.loads(msgs[0]["content"])["total_items"] == 15
    assert json.loads(msgs[1]["content"])["error"] == "Unknown tool: getForecast"
    assert json.loads(msgs[2]["content"])["items"][0]["name"] == "Latte"
    # all results are in the transcript before the next model request
    assert tool_messages(provider.calls[1]["messages"]) == msgs


@pytest.mark.asyncio
async def test_hidden_neighborhood_tool_is_refused(registry, settings):
    provider = ScriptedProvider([
        tool_step((NEIGHBORHOOD_TOOL, json.dumps(WEEK))),
        final_step(valid_answer()),
    ])

    result = await ask(provider, registry, settings, enabled=False)

    payload = json.loads(tool_messages(result.messages)[0]["content"])
    assert payload["error"] == f"Unknown tool: {NEIGHBORHOOD_TOOL}"


# -------- cancellation, timeout, provider failures -----------------------------
@pytest.mark.asyncio
async def test_cancelled_before_first_round(registry, settings):
    provider = ScriptedProvider([final_step(valid_answer())])
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(AgentCancelled):
        await ask(provider, registry, settings, cancel_event=cancel)

    assert provider.calls == []


@pytest.mark.asyncio
async def test_cancel_takes_effect_at_next_round_boundary(registry, settings):
    cancel = asyncio.Event()

    class CancelDuringRound(ScriptedProvider):
        async def complete(self, messages, tools):
            cancel.set()
            return await super().complete(messages, tools)

    provider = CancelDuringRound([tool_step(("getInventoryStatus", "{}")), final_step(valid_answer())])

    with pytest.raises(AgentCancelled) as exc:
        await ask(provider, registry, settings, cancel_event=cancel)

    assert exc.value.round_no == 2
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_slow_model_round_times_out(registry):
    class SlowProvider:
        async def complete(self, messages, tools):
            await asyncio.sleep(1)

    with pytest.raises(ModelTimeout):
        await ask(SlowProvider(), registry, AgentSettings(round_timeout_s=0.01))


@pytest.mark.asyncio
async def test_provider_exception_is_wrapped(registry, settings):
    class BrokenProvider:
        async def complete(self, messages, tools):
            raise ConnectionError("connection reset")

    with pytest.raises(ModelProviderError, match="connection reset"):
        await ask(BrokenProvider(), registry, settings)


# -------- source coverage ------------------------------------------------------
@pytest.mark.asyncio
async def test_uncited_tool_is_flagged_in_audit(registry, settings):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", json.dumps(WEEK))),
        final_step(valid_answer(sources=[{"type": "table", "detail": "Weekly revenue table"}])),
    ])

    result = await ask(provider, registry, settings)

    check = result.audit[-1]
    assert check.step == "source_check"
    assert check.ok is False
    assert "getSalesSummary" in check.detail


@pytest.mark.asyncio
async def test_strict_sources_rejects_uncited_tool(registry):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", json.dumps(WEEK))),
        final_step(valid_answer(sources=[{"type": "table", "detail": "Weekly revenue table"}])),
    ])

    with pytest.raises(SourceCoverageError) as exc:
        await ask(provider, registry, AgentSettings(strict_sources=True))

    assert exc.value.missing == ["getSalesSummary"]


@pytest.mark.asyncio
async def test_strict_sources_accepts_cited_tool(registry):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", json.dumps(WEEK))),
        final_step(valid_answer()),
    ])

    result = await ask(provider, registry, AgentSettings(strict_sources=True))

    assert all(a.ok for a in result.audit)


@pytest.mark.asyncio
async def test_provider_timeout_without_round_timeout_is_a_provider_error(registry):
    class SocketTimeoutProvider:
        async def complete(self, messages, tools):
            raise TimeoutError("socket read timed out")

    with pytest.raises(ModelProviderError, match="socket read timed out"):
        await ask(SocketTimeoutProvider(), registry, AgentSettings(round_timeout_s=None))


@pytest.mark.asyncio
async def test_provider_timeout_is_not_reported_as_round_timeout(registry, settings):
    class SocketTimeoutProvider:
        async def complete(self, messages, tools):
            raise TimeoutError("socket read timed out")

    with pytest.raises(ModelProviderError):
        await ask(SocketTimeoutProvider(), registry, settings)


def test_round_timeout_message_without_a_limit():
    assert str(ModelTimeout(3, None)) == "Model did not respond in time (round 3)"


@pytest.mark.asyncio
async def test_strict_sources_ignores_failed_tool_calls(registry):
    provider = ScriptedProvider([
        tool_step(("getSalesSummary", "{}")),
        final_step(valid_answer(sources=[{"type": "rule", "detail": "no data returned"}])),
    ])

    result = await ask(provider, registry, AgentSettings(strict_sources=True))

    assert not any(a.step == "source_check" for a in result.audit)
