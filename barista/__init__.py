"""
barista — Drink Ordering Agent Package
======================================

Package layout:

    state.py          OrderState TypedDict, step budget helpers
    log.py            MessageLog (append-only view of a thread's messages)
    menu.py           Read-only drink catalog and its prompt summaries
    schemas.py        Order / CreateOrderArgs (tool) and TurnResult (reply payload)
    prompts.py        SYSTEM_PROMPT (catalog, tool workflow, output contract)
    orders.py         Order persistence: SQLite and in-memory stores
    tools.py          ToolSpec, ToolRegistry, the create_order tool
    dispatch.py       Tool dispatcher and the graph's tools node
    providers.py      LLM provider detection and construction
    nodes.py          The agent node (one model call per round)
    routing.py        Pure routing function for the agent's conditional edge
    checkpointing.py  SQLite + memory checkpointers, ConversationStore
    extraction.py     ```json block → TurnResult
    errors.py         Fatal per-turn exceptions
    graph.py          build_graph() — assembles and compiles the StateGraph
    session.py        OrderSession — high-level chat interface

Entry points for external callers:
"""
from .checkpointing import ConversationStore, get_db_path, memory_checkpointer, sqlite_checkpointer
from .errors import CheckpointError, ExtractionError, ModelCallError, StepBudgetExceeded, TurnError
from .extraction import extract_turn_result
from .graph import build_graph
from .log import MessageLog
from .schemas import CurrentOrder, Order, TurnResult
from .session import OrderSession
from .state import OrderState

__all__ = [
    "OrderSession",
    "build_graph",
    "OrderState",
    "MessageLog",
    "ConversationStore",
    "sqlite_checkpointer",
    "memory_checkpointer",
    "get_db_path",
    "extract_turn_result",
    "Order",
    "CurrentOrder",
    "TurnResult",
    "TurnError",
    "ModelCallError",
    "StepBudgetExceeded",
    "ExtractionError",
    "CheckpointError",
]
