"""
Routing Functions
=================
Pure functions that read OrderState and return a destination node name.
LangGraph calls these at conditional edges to decide where execution goes next.

Pure functions = easy to unit-test without spinning up the full graph.

Graph routing map:
  agent → route_after_agent → "tools" | END
  tools → agent (plain edge)
"""
from typing import Literal

from langgraph.graph import END

from .state import OrderState


def has_pending_tool_calls(message) -> bool:
    return bool(getattr(message, "tool_calls", None) or getattr(message, "invalid_tool_calls", None))


def route_after_agent(state: OrderState) -> Literal["tools", "__end__"]:
    """
    After the agent thinks, decide what happens next:
      - No tool calls          → END (final answer for this turn)
      - Any tool call pending  → "tools" (execute and loop back to the agent)

    Malformed calls count as pending: the dispatcher still has to answer them.
    """
    messages = state["messages"]
    if not messages:
        return END

    if has_pending_tool_calls(messages[-1]):
        return "tools"

    return END
