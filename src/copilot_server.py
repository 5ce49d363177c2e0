"""
src/copilot_server.py

HTTP wrapper around the orchestrator.
- GET  /api/health
- POST /api/chat  {message, neighborhoodContextEnabled} -> CopilotOutput | {error}
"""


import os
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from copilot_config import DEFAULT_PORT, AgentSettings, configure_logging, load_settings
from context.loader import load_business_data
from orchestrator import router
from orchestrator.errors import AgentError
from orchestrator.llm_openai import OpenAIProvider
from orchestrator.models import ModelProvider
from orchestrator.registry import ToolRegistry


log = logging.getLogger(__name__)

app = FastAPI(
    title="Seller Ops Copilot API",
    version="0.1.0",
    description="Seller analytics chat assistant over canned business data",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("FRONTEND_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


class ChatRequest(BaseModel):

    message: Any = None
    neighborhoodContextEnabled: Any = False


# -------------------------------------------------
# Dependencies (overridable in tests)
# -------------------------------------------------
@lru_cache()
def get_settings() -> AgentSettings:

    return load_settings()

@lru_cache()
def get_registry() -> ToolRegistry:
    """Business data is loaded once and shared read-only by every request."""

    return ToolRegistry(load_business_data(get_settings().data_dir))

@lru_cache()
def _openai_provider(model: str, temperature: float) -> OpenAIProvider:

    return OpenAIProvider(model=model, temperature=temperature)

def get_provider(settings: AgentSettings = Depends(get_settings)) -> Optional[ModelProvider]:
    """None when no API key is configured."""

    if not os.getenv("OPENAI_API_KEY"):
        return None

    return _openai_provider(settings.model, settings.temperature)


# -------------------------------------------------
# Routes
# -------------------------------------------------
@app.get("/api/health")
def health() -> dict:

    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

@app.post("/api/chat")
async def chat(
    req: ChatRequest,
    provider: Optional[ModelProvider] = Depends(get_provider),
    registry: ToolRegistry = Depends(get_registry),
    settings: AgentSettings = Depends(get_settings),
):
    if not isinstance(req.message, str) or not req.message.strip():
        return JSONResponse(status_code=400, content={"error": "message is required"})

    if provider is None:
        return JSONResponse(
            status_code=500,
            content={"error": "OPENAI_API_KEY is not set. Copy .env.example to .env and add your key."},
        )

    enabled = bool(req.neighborhoodContextEnabled)
    log.info("question=%r neighborhood=%s", req.message, enabled)

    try:
        result = await router.run(
            req.message,
            neighborhood_context_enabled=enabled,
            provider=provider,
            registry=registry,
            settings=settings,
        )
    except AgentError as e:
        log.error("agent error: %s", e)
        return JSONResponse(status_code=500, content={"error": str(e)})

    log.info("answer delivered metrics=%d actions=%d rounds=%d", len(result.output.metrics), len(result.output.actions), result.rounds)

    return result.output.model_dump(mode="json", exclude_none=True)


def main() -> None:

    configure_logging()
    port = int(os.getenv("PORT", DEFAULT_PORT))
    if not os.getenv("OPENAI_API_KEY"):
        log.warning("OPENAI_API_KEY not set - POST /api/chat will fail")
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":

    main()
