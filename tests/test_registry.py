"""Tool catalogue visibility and the never-raising executor."""

from copilot_config import NEIGHBORHOOD_TOOL
from orchestrator.registry import TOOL_SPECS, spec_name

from conftest import WEEK


def names(specs):
    return [spec_name(s) for s in specs]


def test_catalogue_without_neighborhood_context(registry):
    visible = names(registry.list_available(False))

    assert NEIGHBORHOOD_TOOL not in visible
    assert visible == ["getSalesSummary", "getHourlySales", "getTopItems", "getInventoryStatus", "getStaffingSignals"]


def test_catalogue_with_neighborhood_context_has_every_tool_once(registry):
    visible = names(registry.list_available(True))

    assert sorted(visible) == sorted(set(visible))
    assert visible == names(TOOL_SPECS)
    assert len(visible) == 6


def test_list_available_returns_a_copy(registry):
    registry.list_available(True).clear()

    assert len(registry.list_available(True)) == 6


def test_every_spec_has_a_handler(registry):
    assert set(names(TOOL_SPECS)) == set(registry.handlers)


def test_execute_known_tool(registry):
    out = registry.execute("getSalesSummary", dict(WEEK))

    assert out["total_revenue"] == 4446.25


def test_execute_unknown_tool_returns_error_payload(registry):
    out = registry.execute("getWeatherForecast", {})

    assert out["error"] == "Unknown tool: getWeatherForecast"


def test_execute_unknown_tool_suggests_close_name(registry):
    out = registry.execute("getSaleSummary", dict(WEEK))

    assert out["error"] == "Unknown tool: getSaleSummary"
    assert out["did_you_mean"] == "getSalesSummary"


def test_execute_missing_arguments_reports_tool_failure(registry):
    out = registry.execute("getSalesSummary", {})

    assert out["error"].startswith("Tool getSalesSummary failed:")
    assert "startDate" in out["error"]


def test_execute_bad_date_reports_tool_failure(registry):
    out = registry.execute("getStaffingSignals", {"startDate": "last week", "endDate": "2026-02-05"})

    assert out["error"].startswith("Tool getStaffingSignals failed:")


def test_execute_hidden_tool_counts_as_unknown(registry):
    allowed = names(registry.list_available(False))
    out = registry.execute(NEIGHBORHOOD_TOOL, dict(WEEK), allowed=allowed)

    assert out["error"] == f"Unknown tool: {NEIGHBORHOOD_TOOL}"


def test_execute_handler_exception_is_caught(registry, monkeypatch):
    from tools import ops

    def boom(data):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(ops, "get_inventory_status", boom)

    assert registry.execute("getInventoryStatus", {}) == {"error": "Tool getInventoryStatus failed: disk on fire"}
