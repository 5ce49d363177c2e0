"""
src/tools/ops.py - operations tools (inventory & staffing)

Provides:
- get_inventory_status(data): stock levels, low-stock flags and days-until-stockout
- get_staffing_signals(data, args): staff coverage at the daily peak hour

Design notes:
* Read-only: nothing here mutates BusinessData, so concurrent requests can share it.
* Inventory status is recomputed (stock <= reorder point -> "low"); the stored flag is ignored.
* Staffing heuristic: orders per staff member at the peak hour.
    > 10  -> understaffed
    < 5   -> overstaffed
    else  -> adequate
"""


from __future__ import annotations
from typing import Any, Dict, List

from context.loader import BusinessData
from context.selectors import filter_by_range, find_shift_for_hour, round2
from tools.arguments import DateRangeArgs


UNDERSTAFFED_ORDERS_PER_STAFF = 10
OVERSTAFFED_ORDERS_PER_STAFF = 5


# --- Helpers -------------------------------------------------------------------
def _assess(orders_per_staff: float) -> str:

    if orders_per_staff > UNDERSTAFFED_ORDERS_PER_STAFF:
        return "understaffed"
    if orders_per_staff < OVERSTAFFED_ORDERS_PER_STAFF:
        return "overstaffed"

    return "adequate"


# --- Public API ----------------------------------------------------------------
def get_inventory_status(data: BusinessData) -> Dict[str, Any]:
    """
    Current inventory for all tracked items.

    Returns:
        {
          "total_items": <int>,
          "low_stock_count": <int>,
          "items": [{"item", "category", "current_stock", "unit", "reorder_point",
                     "daily_usage", "status", "days_until_stockout"}, ...],
          "low_stock_alerts": ["Oat Milk: 3 gallons remaining (~1.5 days)", ...]
        }
    """

    items: List[Dict[str, Any]] = []

    for inv in data.inventory:
        usage = inv.get("daily_usage", 0)
        items.append({
            "item": inv["item"],
            "category": inv["category"],
            "current_stock": inv["current_stock"],
            "unit": inv["unit"],
            "reorder_point": inv["reorder_point"],
            "daily_usage": usage,
            "status": "low" if inv["current_stock"] <= inv["reorder_point"] else "ok",
            "days_until_stockout": round2(inv["current_stock"] / usage) if usage > 0 else None,
        })

    low = [i for i in items if i["status"] == "low"]

    return {
        "total_items": len(items),
        "low_stock_count": len(low),
        "items": items,
        "low_stock_alerts": [
            f"{i['item']}: {i['current_stock']} {i['unit']} remaining (~{i['days_until_stockout']} days)"
            for i in low
        ],
    }

def get_staffing_signals(data: BusinessData, args: DateRangeArgs) -> Dict[str, Any]:
    """
    Staffing coverage vs. peak traffic, one signal per day in range.

    If no shift covers the peak hour we assume a single person on shift.

    Args:
        data: The loaded business data.
        args: Validated date range.

    Returns:
        {"period", "days", "understaffed_days", "signals": [...], "summary": "<sentence>"}
        or, for an empty range, {"period", "days": 0, "signals": [], "note": "..."}
    """

    days = filter_by_range(data.staffing, args.start, args.end)

    if not days:
        return {
            "period": args.period(),
            "days": 0,
            "signals": [],
            "note": "No staffing data found for this date range.",
        }

    signals = []
    for day in days:
        shift = find_shift_for_hour(day.get("shifts", []), day["peak_hour"])
        staff_at_peak = shift["staff_count"] if shift else 1
        orders_per_staff = round2(day["peak_hour_orders"] / staff_at_peak)
        signals.append({
            "date": day["date"],
            "day_of_week": day["day_of_week"],
            "peak_hour": day["peak_hour"],
            "peak_orders": day["peak_hour_orders"],
            "staff_at_peak": staff_at_peak,
            "orders_per_staff": orders_per_staff,
            "assessment": _assess(orders_per_staff),
            "total_labor_hours": day["total_labor_hours"],
        })

    understaffed = sum(1 for s in signals if s["assessment"] == "understaffed")

    if understaffed:
        summary = f"{understaffed} of {len(days)} days show potential understaffing during peak hours."
    else:
        summary = "Staffing appears adequate for all peak periods."

    return {
        "period": args.period(),
        "days": len(days),
        "understaffed_days": understaffed,
        "signals": signals,
        "summary": summary,
    }
