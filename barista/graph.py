"""
Graph Construction
==================
Assembles the ordering state machine from nodes, edges, and routing functions.

Architecture:

    START
      │
      ▼
    agent ──────────── no tool calls ──────────► END (final answer)
      │ tool calls                      ▲
      ▼                                 │
    tools ───────────────────────────► agent     (one round)

The agent node counts rounds in `steps` and raises StepBudgetExceeded once
the budget is spent, so a model that keeps asking for tools cannot spin.

Dependency injection:
  build_graph() takes the tool registry, the checkpointer and (optionally) the
  chat model. The caller owns their lifecycles; graph.py has no knowledge of
  which checkpoint backend or order store sits behind them.

  SQLite (durable, default in production):
      async with sqlite_checkpointer() as cp:
          graph = build_graph(registry, checkpointer=cp)

  Memory (ephemeral, default for tests):
      graph = build_graph(registry, checkpointer=memory_checkpointer())
"""
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph

from .dispatch import create_tools_node
from .nodes import create_agent_node
from .prompts import SYSTEM_PROMPT
from .providers import build_llm
from .routing import route_after_agent
from .state import OrderState, get_max_steps
from .tools import ToolRegistry


def build_graph(
    registry: ToolRegistry,
    checkpointer: BaseCheckpointSaver | None = None,
    llm=None,
    max_steps: int | None = None,
    system_prompt: str = SYSTEM_PROMPT,
):
    """
    Build and compile the ordering graph.

    Args:
        registry:      Tools the model may call; their schemas are bound to the LLM.
        checkpointer:  Any LangGraph checkpoint backend. If None, falls back to
                       an in-process MemorySaver (conversations are lost on restart).
        llm:           Chat model. Built from the environment via build_llm() if None.
        max_steps:     Round budget per turn. Defaults to get_max_steps().
        system_prompt: Instructions placed in front of the message log.

    Returns:
        A compiled CompiledStateGraph ready for ainvoke() / aget_state() calls.
    """
    if llm is None:
        llm = build_llm()
    llm_with_tools = llm.bind_tools(registry.as_langchain_tools())

    if checkpointer is None:
        checkpointer = MemorySaver()

    if max_steps is None:
        max_steps = get_max_steps()

    workflow = StateGraph(OrderState)

    workflow.add_node("agent", create_agent_node(llm_with_tools, max_steps, system_prompt))
    workflow.add_node("tools", create_tools_node(registry))

    workflow.set_entry_point("agent")

    workflow.add_conditional_edges(
        "agent",
        route_after_agent,
        {"tools": "tools", END: END},
    )
    workflow.add_edge("tools", "agent")

    return workflow.compile(checkpointer=checkpointer)
