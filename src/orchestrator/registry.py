"""
src/orchestrator/registry.py

Tool registry: the OpenAI function specs we expose to the model and the
name -> handler table that executes them against the business data.
"""


import logging
from types import MappingProxyType
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional
from rapidfuzz import fuzz, process, utils

from copilot_config import NEIGHBORHOOD_TOOL
from context.loader import BusinessData
from tools import neighborhood, ops, sales
from tools.arguments import DateRangeArgs, TopItemsArgs


log = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Any]

SUGGESTION_CUTOFF = 80


# -------- Tool specs -----------------------------------------------------------
_DATE_RANGE = {
    "startDate": {"type": "string", "description": "Start date inclusive (YYYY-MM-DD)"},
    "endDate": {"type": "string", "description": "End date inclusive (YYYY-MM-DD)"},
}


def _tool_spec(name: str, description: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
    """Build an OpenAI function spec."""

    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": parameters.get("properties", {}),
                "required": parameters.get("required", []),
            },
        },
    }

TOOL_SPECS: List[Dict[str, Any]] = [
    _tool_spec(
        "getSalesSummary",
        "Get total revenue, order count, and average order value for a date range.",
        {"properties": dict(_DATE_RANGE), "required": ["startDate", "endDate"]},
    ),
    _tool_spec(
        "getHourlySales",
        "Get revenue and order count bucketed by hour (6–21) across a date range. Useful for finding peak hours.",
        {"properties": dict(_DATE_RANGE), "required": ["startDate", "endDate"]},
    ),
    _tool_spec(
        "getTopItems",
        "Get top-selling items by revenue or quantity for a date range.",
        {
            "properties": {
                **_DATE_RANGE,
                "limit": {"type": "number", "description": "Number of items to return (default 5)"},
                "sortBy": {
                    "type": "string",
                    "enum": ["revenue", "qty"],
                    "description": "Sort by revenue or quantity (default revenue)",
                },
            },
            "required": ["startDate", "endDate"],
        },
    ),
    _tool_spec(
        "getInventoryStatus",
        "Get current inventory levels for all tracked items, including low-stock alerts and days-until-stockout estimates.",
        {"properties": {}, "required": []},
    ),
    _tool_spec(
        "getStaffingSignals",
        "Get staffing coverage vs. peak traffic signals for a date range. Identifies potential under- or over-staffing.",
        {"properties": dict(_DATE_RANGE), "required": ["startDate", "endDate"]},
    ),
    _tool_spec(
        NEIGHBORHOOD_TOOL,
        "Get external neighborhood signals: weather forecasts, nearby events, and recent review sentiment "
        "for a date range. Only available when neighborhood context is enabled.",
        {"properties": dict(_DATE_RANGE), "required": ["startDate", "endDate"]},
    ),
]


def spec_name(spec: Dict[str, Any]) -> str:

    return spec["function"]["name"]


# -------- Registry -------------------------------------------------------------
class ToolRegistry:
    """
    Fixed catalogue of data tools. Build once at start-up and share between requests;
    neither the specs nor the handler table change afterwards.
    """

    def __init__(self, data: BusinessData):

        self.data = data
        self.handlers: Mapping[str, Handler] = MappingProxyType({
            "getSalesSummary": lambda a: sales.get_sales_summary(data, DateRangeArgs.model_validate(a)),
            "getHourlySales": lambda a: sales.get_hourly_sales(data, DateRangeArgs.model_validate(a)),
            "getTopItems": lambda a: sales.get_top_items(data, TopItemsArgs.model_validate(a)),
            "getInventoryStatus": lambda a: ops.get_inventory_status(data),
            "getStaffingSignals": lambda a: ops.get_staffing_signals(data, DateRangeArgs.model_validate(a)),
            NEIGHBORHOOD_TOOL: lambda a: neighborhood.get_neighborhood_context(data, DateRangeArgs.model_validate(a)),
        })

    def list_available(self, neighborhood_context_enabled: bool) -> List[Dict[str, Any]]:
        """
        Specs the model may see this turn. With the flag off the neighborhood tool is
        left out entirely, so the model is never offered it.
        """

        if neighborhood_context_enabled:
            return list(TOOL_SPECS)

        return [s for s in TOOL_SPECS if spec_name(s) != NEIGHBORHOOD_TOOL]

    def suggest(self, name: str, candidates: Optional[Collection[str]] = None) -> Optional[str]:
        """Closest known tool name for a misspelt one, or None."""

        pool = list(candidates if candidates is not None else self.handlers)
        match = process.extractOne(name, pool, scorer=fuzz.WRatio, processor=utils.default_process, score_cutoff=SUGGESTION_CUTOFF)

        return match[0] if match else None

    def execute(self, name: str, args: Dict[str, Any], *, allowed: Optional[Collection[str]] = None) -> Any:
        """
        Run a tool and return its payload. Never raises: unknown names and handler
        failures come back as {"error": ...} so the model can correct itself.

        Args:
            name: Tool name as sent by the model.
            args: Parsed arguments (already {} if the model sent garbage).
            allowed: Optional set of names visible this turn; anything else counts as unknown.
        """

        handler = self.handlers.get(name)

        if handler is None or (allowed is not None and name not in allowed):
            payload: Dict[str, Any] = {"error": f"Unknown tool: {name}"}
            suggestion = self.suggest(name, allowed)
            if suggestion and suggestion != name:
                payload["did_you_mean"] = suggestion
            return payload

        try:
            return handler(args)
        except Exception as e:
            log.warning("tool %s failed: %s", name, e)
            return {"error": f"Tool {name} failed: {e}"}
