"""
src/context/loader.py

Loads the canned business data (sales, inventory, staffing, weather, events, reviews).
"""


import json
from pathlib import Path
from typing import Any, Dict, List

from copilot_config import DATA_DIR


DATA_FILES = {
    "sales": "sales.json",
    "inventory": "inventory.json",
    "staffing": "staffing.json",
    "weather": "weather.json",
    "events": "events.json",
    "reviews": "reviews.json",
}


class BusinessData:
    """Read-only snapshot of the fixture files. Loaded once and shared between requests."""

    def __init__(self, data: Dict[str, List[Dict[str, Any]]]):

        self.sales = data.get("sales", [])
        self.inventory = data.get("inventory", [])
        self.staffing = data.get("staffing", [])
        self.weather = data.get("weather", [])
        self.events = data.get("events", [])
        self.reviews = data.get("reviews", [])


def load_business_data(data_dir: Path = DATA_DIR) -> BusinessData:

    data_dir = Path(data_dir)

    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    data: Dict[str, List[Dict[str, Any]]] = {}

    for key, filename in DATA_FILES.items():
        path = data_dir / filename
        if not path.exists():
            raise ValueError(f"Data directory {data_dir} missing '{filename}'")
        with path.open("r", encoding="utf-8") as f:
            data[key] = json.load(f)

    return BusinessData(data)
