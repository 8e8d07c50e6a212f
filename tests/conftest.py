"""
pytest configuration for the barista agent test suite.

Sets PYTHONPATH so tests can import from the project root.
Prevents LangChain from making real LLM calls during unit tests: every test
that runs the graph injects a scripted fake model built with fake_llm().

asyncio_mode = "auto" (set in pyproject.toml) means all async test functions
are collected as asyncio tests — no @pytest.mark.asyncio needed.
"""
import json
import os
import sys
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

# Ensure the project root is on sys.path so `import barista` and `import api` work
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Tests use mocked models and should not need real keys
os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "groq")


# ── Scripted model helpers ───────────────────────────────────────────────────

LATTE_ORDER = {
    "drink": "Latte",
    "size": "Grande",
    "mil": "Oat Milk",
    "syrup": "Vanilla Syrup",
    "sweeteners": "None",
    "toppings": "Whipped Cream",
    "quantity": 1,
}


def reply(message: str, progress: str = "in_progress", suggestions=None, **order) -> AIMessage:
    """A final assistant message carrying a well-formed ```json block."""
    payload = {
        "message": message,
        "current_order": {
            "drink": None, "size": None, "milk": None, "syrup": None,
            "sweetener": None, "toppings": None, "quantity": 1,
            **order,
        },
        "suggestions": suggestions or [],
        "progress": progress,
    }
    return AIMessage(content=f"{message}\n\n```json\n{json.dumps(payload)}\n```")


def order_call(order: dict | None = None, call_id: str | None = None) -> AIMessage:
    """An assistant message requesting create_order."""
    return AIMessage(
        content="",
        tool_calls=[{
            "name": "create_order",
            "args": {"order": order if order is not None else dict(LATTE_ORDER)},
            "id": call_id or f"call_{uuid.uuid4().hex[:8]}",
        }],
    )


def fake_llm(*responses) -> MagicMock:
    """
    A chat model stand-in: bind_tools() returns itself and ainvoke() replays
    `responses` in order (an Exception instance is raised instead). Pass a
    single callable to compute every response.
    """
    llm = MagicMock()
    llm.bind_tools.return_value = llm
    if len(responses) == 1 and callable(responses[0]) and not isinstance(responses[0], AIMessage):
        llm.ainvoke = AsyncMock(side_effect=responses[0])
    else:
        llm.ainvoke = AsyncMock(side_effect=list(responses))
    return llm


@pytest.fixture
def thread_id() -> str:
    return str(uuid.uuid4())
