"""
src/tools/sales.py - sales tools

This module provides:
- get_sales_summary(data, args): revenue, orders, average order value for a date range
- get_hourly_sales(data, args): revenue/orders bucketed by opening hour (6–21), plus the peak
- get_top_items(data, args): best sellers by revenue or quantity

Key ideas explained:

1) Date ranges
   Every tool takes an inclusive ISO range. Rows are filtered by comparing the
   'date' strings directly, which is safe because ISO dates sort lexically.

2) Empty ranges are not errors
   If nothing falls inside the range we still return a well-formed payload
   (zeros and a note). The model is told to broaden the range and add a warning.

3) Rounding
   Money and averages are rounded half-up to 2 decimals (see selectors.round2).
"""


from __future__ import annotations
from typing import Any, Dict, List

from context.loader import BusinessData
from context.selectors import filter_by_range, round2
from tools.arguments import DateRangeArgs, TopItemsArgs


FIRST_HOUR = 6
LAST_HOUR = 21


# --- Public API ----------------------------------------------------------------
def get_sales_summary(data: BusinessData, args: DateRangeArgs) -> Dict[str, Any]:
    """
    Total revenue, order count and average order value for a date range.

    Args:
        data: The loaded business data.
        args: Validated date range.

    Returns:
        {
          "period": {"start": ..., "end": ...},
          "days": <int>,
          "total_revenue": <float>,
          "order_count": <int>,
          "avg_order_value": <float>,
          "daily_avg_revenue": <float>
        }
        plus a "note" when the range holds no data.
    """

    days = filter_by_range(data.sales, args.start, args.end)

    if not days:
        return {
            "period": args.period(),
            "days": 0,
            "total_revenue": 0,
            "order_count": 0,
            "avg_order_value": 0,
            "daily_avg_revenue": 0,
            "note": "No data found for this date range.",
        }

    total_revenue = round2(sum(d["total_revenue"] for d in days))
    order_count = sum(d["order_count"] for d in days)

    return {
        "period": args.period(),
        "days": len(days),
        "total_revenue": total_revenue,
        "order_count": order_count,
        "avg_order_value": round2(total_revenue / order_count) if order_count else 0,
        "daily_avg_revenue": round2(total_revenue / len(days)),
    }

def get_hourly_sales(data: BusinessData, args: DateRangeArgs) -> Dict[str, Any]:
    """
    Aggregate revenue and orders per hour across the range and find the peak hour.

    Averages are per day in range (at least 1, so an empty range gives zeros).
    The peak is the earliest hour with the highest total order count.
    """

    days = filter_by_range(data.sales, args.start, args.end)
    buckets: Dict[int, Dict[str, float]] = {
        h: {"revenue": 0.0, "orders": 0} for h in range(FIRST_HOUR, LAST_HOUR + 1)
    }

    for day in days:
        for h in day.get("hourly", []):
            if h["hour"] in buckets:
                buckets[h["hour"]]["revenue"] += h["revenue"]
                buckets[h["hour"]]["orders"] += h["orders"]

    divisor = max(len(days), 1)
    hourly = [
        {
            "hour": hour,
            "total_revenue": round2(b["revenue"]),
            "total_orders": b["orders"],
            "avg_revenue": round2(b["revenue"] / divisor),
            "avg_orders": round2(b["orders"] / divisor),
        }
        for hour, b in sorted(buckets.items())
    ]

    peak = hourly[0]
    for h in hourly[1:]:
        if h["total_orders"] > peak["total_orders"]:
            peak = h

    return {
        "period": args.period(),
        "days": len(days),
        "hourly": hourly,
        "peak_hour": peak["hour"],
        "peak_avg_orders": peak["avg_orders"],
        "peak_avg_revenue": peak["avg_revenue"],
    }

def get_top_items(data: BusinessData, args: TopItemsArgs) -> Dict[str, Any]:
    """
    Return the top `limit` items in the range, sorted by revenue or quantity.

    Args:
        data: The loaded business data.
        args: Date range plus limit (default 5) and sort_by ("revenue" | "qty").

    Returns:
        {"period": ..., "days": <int>, "sortedBy": "revenue", "items": [{"name", "category", "qty", "revenue"}, ...]}
    """

    days = filter_by_range(data.sales, args.start, args.end)
    agg: Dict[str, Dict[str, Any]] = {}

    for day in days:
        for it in day.get("items", []):
            entry = agg.setdefault(it["name"], {"category": it["category"], "qty": 0, "revenue": 0.0})
            entry["qty"] += it["qty"]
            entry["revenue"] += it["revenue"]

    items: List[Dict[str, Any]] = [
        {"name": name, "category": d["category"], "qty": d["qty"], "revenue": round2(d["revenue"])}
        for name, d in agg.items()
    ]
    key = "qty" if args.sort_by == "qty" else "revenue"
    items.sort(key=lambda x: x[key], reverse=True)

    return {
        "period": args.period(),
        "days": len(days),
        "sortedBy": args.sort_by,
        "items": items[: args.limit],
    }
