"""
Order State
===========
Defines the shared state TypedDict that flows through every node in the graph.

add_messages is a reducer: new messages are APPENDED to the list rather than
replacing it, so the LLM sees the full conversation history at every step.

`steps` is the round counter for the current turn. The session resets it to 0
with every new human message; the agent node increments it and refuses to run
once it reaches the step budget.
"""
import os
from typing import Annotated, Sequence

from langchain_core.messages import BaseMessage
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

DEFAULT_MAX_STEPS = 15


class OrderState(TypedDict):
    messages: Annotated[Sequence[BaseMessage], add_messages]
    thread_id: str
    steps: int


def get_max_steps() -> int:
    """AGENT_MAX_STEPS env var, else DEFAULT_MAX_STEPS."""
    value = int(os.getenv("AGENT_MAX_STEPS", DEFAULT_MAX_STEPS))
    if value < 1:
        raise ValueError(f"AGENT_MAX_STEPS must be >= 1, got {value}")
    return value


def recursion_limit_for(max_steps: int) -> int:
    """
    LangGraph superstep limit that sits above the step budget.

    Each round is two supersteps (agent + tools); the final agent step is one
    more. The counter in the agent node must always trip first.
    """
    return 2 * max_steps + 5
