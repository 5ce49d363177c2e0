"""
src/tools/neighborhood.py - external neighborhood signals

Provides:
- get_neighborhood_context(data, args): weather, nearby events and review sentiment for a date range

Only offered to the model when the user has Neighborhood Context switched on
(see orchestrator.registry.ToolRegistry.list_available).
"""


from __future__ import annotations
from typing import Any, Dict

from context.loader import BusinessData
from context.selectors import average, filter_by_range
from tools.arguments import DateRangeArgs


RAINY_CONDITIONS = {"Rain", "Light Rain"}
SENTIMENTS = ("positive", "neutral", "negative")


def get_neighborhood_context(data: BusinessData, args: DateRangeArgs) -> Dict[str, Any]:
    """
    Summarise weather, events and reviews for the range.

    Averages (high temperature, rating) are None when the range holds no rows.

    Returns:
        {
          "period": {...},
          "weather": {"days", "rainy_days", "avg_high_f", "daily": [...]},
          "events": {"count", "events": [...]},
          "reviews": {"count", "avg_rating", "sentiment": {"positive", "neutral", "negative"}, "reviews": [...]}
        }
    """

    weather = filter_by_range(data.weather, args.start, args.end)
    events = filter_by_range(data.events, args.start, args.end)
    reviews = filter_by_range(data.reviews, args.start, args.end)

    return {
        "period": args.period(),
        "weather": {
            "days": len(weather),
            "rainy_days": sum(1 for w in weather if w.get("condition") in RAINY_CONDITIONS),
            "avg_high_f": average([w["high_f"] for w in weather]),
            "daily": weather,
        },
        "events": {
            "count": len(events),
            "events": events,
        },
        "reviews": {
            "count": len(reviews),
            "avg_rating": average([r["rating"] for r in reviews]),
            "sentiment": {s: sum(1 for r in reviews if r.get("sentiment") == s) for s in SENTIMENTS},
            "reviews": reviews,
        },
    }
