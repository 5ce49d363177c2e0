"""
src/context/selectors.py
"""


import math
from typing import Any, Dict, List, Optional


def round2(n: float) -> float:
    """Round half-up to 2 decimals (so 0.125 -> 0.13, unlike round())."""

    return math.floor(n * 100 + 0.5) / 100

def filter_by_range(rows: List[Dict[str, Any]], start_date: str, end_date: str) -> List[Dict[str, Any]]:
    """Rows whose ISO 'date' falls in [start_date, end_date]. ISO strings compare lexically."""

    return [r for r in rows if start_date <= r.get("date", "") <= end_date]

def shift_hours(shift: Dict[str, Any]) -> tuple:
    """'06:00'/'12:00' -> (6, 12)."""

    return int(shift["start"].split(":")[0]), int(shift["end"].split(":")[0])

def find_shift_for_hour(shifts: List[Dict[str, Any]], hour: int) -> Optional[Dict[str, Any]]:

    for s in shifts:
        start, end = shift_hours(s)
        if start <= hour < end:
            return s

    return None

def average(values: List[float]) -> Optional[float]:

    if not values:
        return None

    return round2(sum(values) / len(values))
