"""
FastAPI HTTP Interface
======================
Exposes the drink ordering agent over HTTP.

Endpoints:
  POST /session                    → create a new thread id
  POST /chats/message/{thread_id}  → run one turn, returns the TurnResult payload
  GET  /history/{thread_id}        → conversation history for a thread
  GET  /health                     → liveness check

Run:
    uvicorn api:app --reload --port 8000

Example cURL flow:

    # 1. Create a thread
    curl -X POST http://localhost:8000/session

    # 2. Order
    curl -X POST http://localhost:8000/chats/message/<id> \\
         -H "Content-Type: application/json" \\
         -d '{"query": "I want a latte"}'

Failed turns answer with a generic error body, never a partial payload:
    { "detail": "...", "error": "model_call_failed" | "step_budget_exceeded" | ... }
"""
import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from barista import OrderSession, TurnResult
from barista.errors import (
    CheckpointError,
    ExtractionError,
    ModelCallError,
    StepBudgetExceeded,
    TurnError,
)

logger = logging.getLogger(__name__)

_session: OrderSession | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the checkpoint and order databases on startup, close them on shutdown.

    Paths come from CHECKPOINT_DB_PATH and ORDERS_DB_PATH.
    """
    global _session
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    _session = OrderSession()
    await _session.start()
    yield
    await _session.stop()
    _session = None


app = FastAPI(
    title="Drink Ordering Agent",
    description="Conversational barista that builds and places drink orders.",
    lifespan=lifespan,
)


# ── Request / Response models ──────────────────────────────────────────────────

class ChatRequest(BaseModel):
    query: str = Field(min_length=1)


class SessionResponse(BaseModel):
    thread_id: str


class HistoryMessage(BaseModel):
    role: str    # "user" | "assistant"
    content: str


class HistoryResponse(BaseModel):
    thread_id: str
    messages: list[HistoryMessage]


# ── Error mapping ──────────────────────────────────────────────────────────────

_STATUS_BY_ERROR: dict[type[TurnError], int] = {
    ModelCallError:     502,
    ExtractionError:    502,
    StepBudgetExceeded: 500,
    CheckpointError:    503,
}

_GENERIC_DETAIL = "Sorry, something went wrong while handling your order. Please try again."


@app.exception_handler(TurnError)
async def turn_error_handler(request: Request, exc: TurnError):
    status = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500
    )
    logger.error("[api] %s on %s: %s", exc.kind, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": _GENERIC_DETAIL, "error": exc.kind})


def _get_session() -> OrderSession:
    if not _session:
        raise HTTPException(status_code=503, detail="Agent not initialized.")
    return _session


# ── Endpoints ──────────────────────────────────────────────────────────────────

@app.post("/session", response_model=SessionResponse)
async def create_session():
    """Create a new conversation thread id to pass with every message."""
    return SessionResponse(thread_id=str(uuid.uuid4()))


@app.post("/chats/message/{thread_id}", response_model=TurnResult)
async def chat(thread_id: str, request: ChatRequest):
    """
    Send one customer message to the agent.

    Response:
      { message, current_order: { drink, size, milk, syrup, sweetener, toppings, quantity },
        suggestions: [...], progress: "in_progress" | "completed" }
    """
    if not thread_id.strip():
        raise HTTPException(status_code=400, detail="thread_id is required.")
    return await _get_session().chat(thread_id, request.query)


@app.get("/history/{thread_id}", response_model=HistoryResponse)
async def get_history(thread_id: str):
    """Conversation history for a thread. Tool messages are excluded."""
    turns = await _get_session().get_history(thread_id)
    return HistoryResponse(
        thread_id=thread_id,
        messages=[HistoryMessage(**t) for t in turns],
    )


@app.get("/health")
async def health():
    return {"status": "ok", "agent_ready": _session is not None}
