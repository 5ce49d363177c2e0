"""
src/copilot_config.py
"""


import os
import sys
import logging
from enum import Enum
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Trend(str, Enum):

    UP = "up"
    DOWN = "down"
    FLAT = "flat"

class Confidence(str, Enum):

    LOW = "low"
    MED = "med"
    HIGH = "high"

class SourceType(str, Enum):

    TABLE = "table"         # Internal data tools
    CONTEXT = "context"     # Neighborhood context tool
    RULE = "rule"           # Heuristics applied by the model


# Defaults
DEFAULT_MODEL: str = "gpt-4o"
DEFAULT_TEMPERATURE: float = 0.2
DEFAULT_MAX_TOOL_ROUNDS: int = 8
DEFAULT_ROUND_TIMEOUT_S: float = 60.0
DEFAULT_PORT: int = 3001
DATA_DIR: Path = Path(__file__).resolve().parents[1] / "data"

NEIGHBORHOOD_TOOL: str = "getNeighborhoodContext"


class AgentSettings(BaseModel):
    """Runtime knobs handed to the orchestrator. Nothing in the core reads the environment."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tool_rounds: int = Field(default=DEFAULT_MAX_TOOL_ROUNDS, ge=1)
    round_timeout_s: Optional[float] = Field(default=DEFAULT_ROUND_TIMEOUT_S, gt=0)
    strict_sources: bool = False
    data_dir: Path = DATA_DIR


def _env_flag(name: str, default: bool = False) -> bool:

    raw = os.getenv(name)

    if raw is None:
        return default

    return raw.strip().lower() in ("1", "true", "yes", "on")

def _env_timeout(name: str, default: float) -> Optional[float]:
    """Seconds from the environment; empty or 0 turns the timeout off."""

    raw = os.getenv(name)

    if raw is None:
        return default

    seconds = float(raw) if raw.strip() else 0.0

    return seconds if seconds > 0 else None

def load_settings() -> AgentSettings:
    """
    Build settings from the environment (and a local .env file if present).
    """

    load_dotenv()

    return AgentSettings(
        model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        temperature=float(os.getenv("OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE)),
        max_tool_rounds=int(os.getenv("COPILOT_MAX_TOOL_ROUNDS", DEFAULT_MAX_TOOL_ROUNDS)),
        round_timeout_s=_env_timeout("COPILOT_ROUND_TIMEOUT", DEFAULT_ROUND_TIMEOUT_S),
        strict_sources=_env_flag("COPILOT_STRICT_SOURCES"),
        data_dir=Path(os.getenv("COPILOT_DATA_DIR", str(DATA_DIR))),
    )

def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Send log records to stdout. Level defaults to $LOG_LEVEL or INFO."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler], force=True)

    return logging.getLogger("copilot")
# EOF
