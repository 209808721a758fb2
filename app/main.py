from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from agent.agent import build_agent
from agent.core.memory import session_store
from agent.schemas import ChatRequest, ChatResponse, Turn
from config.settings import get_settings


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("besty")

app = FastAPI(title="Besty AI Guest Messaging Agent", version="1.0.0")

# CORS: allow the local frontend outside production
if not settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.state.agent = build_agent(settings)
app.state.sessions = session_store


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _now_ms() -> int:
    return int(time.time() * 1000)


@app.get("/api/health")
def health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok" if app.state.agent else "error",
        "model": settings.gemini_model,
        "configured": settings.configured,
    }


@app.post("/api/chat")
async def chat(request: Request):
    agent = app.state.agent
    if agent is None:
        return _error(
            503,
            "Service unavailable",
            "AI agent not configured. Please check GEMINI_API_KEY environment variable.",
        )

    sessions = app.state.sessions
    try:
        req = ChatRequest.model_validate(await request.json())

        # Prior turns only; the current message is sent to the model separately.
        history = sessions.history_as_lines(req.session_id)
        logger.info(
            "Incoming chat: session_id=%s history_turns=%s message_len=%s",
            req.session_id,
            len(history),
            len(req.message),
        )

        sessions.set_context(req.session_id, req.context())
        sessions.append(req.session_id, Turn(role="guest", text=req.message, ts=_now_ms()))

        result = await agent.process(req, history)
        sessions.append(req.session_id, Turn(role="agent", text=result.reply, ts=_now_ms()))

        logger.info(
            "Agent responded: session_id=%s escalate=%s intent=%s confidence=%.2f",
            req.session_id,
            result.escalate,
            result.internal.detected_intent,
            result.confidence,
        )
        response = ChatResponse(
            session_id=req.session_id,
            agent=result,
            messages=sessions.turns(req.session_id),
        )
        return JSONResponse(content=response.to_wire())
    except Exception as e:
        logger.warning("Error processing chat: %s", e)
        return _error(400, "Failed to process message", str(e) or "Unknown error")


@app.post("/api/reset")
async def reset(request: Request):
    try:
        body = await request.json()
    except Exception:
        body = None

    session_id = body.get("sessionId") if isinstance(body, dict) else None
    if not isinstance(session_id, str) or not session_id.strip():
        return _error(400, "sessionId required")

    try:
        app.state.sessions.reset(session_id)
    except Exception as e:
        logger.exception("Failed to reset session %s: %s", session_id, e)
        return _error(500, "Failed to reset session")

    logger.info("Session reset: session_id=%s", session_id)
    return {"success": True, "sessionId": session_id}


def run() -> None:
    settings = get_settings()
    logger.info("Besty AI server on http://%s:%s (model: %s)", settings.host, settings.port, settings.gemini_model)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
