"""
Order Session
=============
High-level interface for running ordering turns.

Responsibilities:
  - Open the checkpointer and the order store and hold them for the session's
    lifetime (AsyncExitStack), then build the graph around them
  - Serialise turns per thread id with an asyncio.Lock
  - Run one turn: load the thread, append the human message, drive the
    agent ⇄ tools loop, extract the TurnResult from the final message

Checkpointer modes:
  SQLite (default, durable)
    OrderSession(db_path="agent_checkpoints.db")
    Conversations survive process restarts.

  In-memory (ephemeral)
    OrderSession(in_memory=True)
    Use for CLI demos and unit tests. Orders go to an InMemoryOrderStore too,
    unless an order_store is passed in.

Different thread ids run concurrently; two turns on the same thread id never
overlap, so their checkpoint writes cannot interleave.
"""
import asyncio
import logging
import sqlite3
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

from langchain_core.messages import HumanMessage
from langgraph.errors import GraphRecursionError

from .checkpointing import (
    ConversationStore,
    get_db_path,
    memory_checkpointer,
    sqlite_checkpointer,
    thread_config,
)
from .errors import CheckpointError, ExtractionError, StepBudgetExceeded
from .extraction import extract_turn_result
from .graph import build_graph
from .log import MessageLog, message_text
from .orders import InMemoryOrderStore, OrderStore, sqlite_order_store
from .schemas import TurnResult
from .state import get_max_steps, recursion_limit_for
from .tools import build_registry

logger = logging.getLogger(__name__)


class OrderSession:
    """
    Manages the resources behind every ordering conversation.

    Args:
        db_path:        SQLite checkpoint database. Defaults to CHECKPOINT_DB_PATH
                        or "agent_checkpoints.db".
        orders_db_path: SQLite order database. Defaults to ORDERS_DB_PATH or "orders.db".
        in_memory:      Use MemorySaver and an InMemoryOrderStore. Nothing survives
                        the process.
        order_store:    Explicit order store; overrides the two options above.
        llm:            Explicit chat model; built from the environment if None.
        max_steps:      Round budget per turn; AGENT_MAX_STEPS or 15 if None.

    Usage:
        session = OrderSession()
        await session.start()
        result = await session.chat(thread_id, "I want a latte")
        await session.stop()
    """

    def __init__(
        self,
        db_path: str | None = None,
        orders_db_path: str | None = None,
        in_memory: bool = False,
        order_store: OrderStore | None = None,
        llm=None,
        max_steps: int | None = None,
    ):
        self._db_path        = db_path
        self._orders_db_path = orders_db_path
        self._in_memory      = in_memory
        self._order_store    = order_store
        self._llm            = llm
        self._max_steps      = max_steps if max_steps is not None else get_max_steps()
        self._graph          = None
        self._store: ConversationStore | None = None
        # Entries live only while a turn on that thread is running or waiting.
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        # Connections opened in start() are closed, in reverse order, in stop().
        self._exit_stack = AsyncExitStack()

    @property
    def order_store(self) -> OrderStore | None:
        return self._order_store

    @property
    def max_steps(self) -> int:
        return self._max_steps

    async def start(self) -> None:
        """Open the checkpointer and order store, then build the graph."""
        # ── Checkpointer ──────────────────────────────────────────────────
        if self._in_memory:
            checkpointer = memory_checkpointer()
            logger.info("[session] Using in-memory checkpointer (ephemeral)")
        else:
            path = self._db_path or get_db_path()
            checkpointer = await self._exit_stack.enter_async_context(
                sqlite_checkpointer(path)
            )
            logger.info("[session] Using SQLite checkpointer at: %s", path)

        # ── Order store ───────────────────────────────────────────────────
        if self._order_store is None:
            if self._in_memory:
                self._order_store = InMemoryOrderStore()
            else:
                self._order_store = await self._exit_stack.enter_async_context(
                    sqlite_order_store(self._orders_db_path)
                )

        # ── Graph ─────────────────────────────────────────────────────────
        registry = build_registry(self._order_store)
        self._graph = build_graph(
            registry,
            checkpointer=checkpointer,
            llm=self._llm,
            max_steps=self._max_steps,
        )
        self._store = ConversationStore(self._graph)

        logger.info(
            "[session] Ready. tools=%s max_steps=%d",
            registry.names(), self._max_steps,
        )

    async def stop(self) -> None:
        """Close every connection opened by start()."""
        await self._exit_stack.aclose()

    # ── State helpers ───────────────────────────────────────────────────────

    @asynccontextmanager
    async def _thread_lock(self, thread_id: str) -> AsyncIterator[None]:
        """Hold the thread's lock; drop it once no turn holds or awaits it."""
        lock = self._locks.setdefault(thread_id, asyncio.Lock())
        self._lock_users[thread_id] = self._lock_users.get(thread_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[thread_id] -= 1
            if not self._lock_users[thread_id]:
                del self._lock_users[thread_id]
                del self._locks[thread_id]

    def _require_started(self) -> None:
        if self._graph is None:
            raise RuntimeError("OrderSession.start() must be awaited before use")

    async def load(self, thread_id: str) -> MessageLog:
        self._require_started()
        return await self._store.load(thread_id)

    async def get_history(self, thread_id: str) -> list[dict]:
        """
        Return the conversation as { role: "user"|"assistant", content: str }
        dicts. Tool traffic is excluded.
        """
        return (await self.load(thread_id)).history()

    # ── Main chat interface ─────────────────────────────────────────────────

    async def chat(self, thread_id: str, query: str) -> TurnResult:
        """
        Run one turn for `thread_id` and return its structured payload.

        Raises (all TurnError subclasses, fatal for the turn):
            ModelCallError, StepBudgetExceeded, ExtractionError, CheckpointError
        """
        if not thread_id:
            raise ValueError("thread_id is required")
        if not query or not query.strip():
            raise ValueError("query is required")
        self._require_started()

        async with self._thread_lock(thread_id):
            prior = await self._store.load(thread_id)
            logger.info(
                "[session] Turn on thread %s (%d prior messages)", thread_id, len(prior),
            )

            config = thread_config(thread_id)
            config["recursion_limit"] = recursion_limit_for(self._max_steps)

            try:
                result = await self._graph.ainvoke(
                    {
                        "messages": [HumanMessage(content=query)],
                        "thread_id": thread_id,
                        "steps": 0,
                    },
                    config=config,
                )
            except GraphRecursionError as exc:
                logger.error("[session] Recursion limit hit on thread %s", thread_id)
                raise StepBudgetExceeded(self._max_steps, thread_id) from exc
            except sqlite3.Error as exc:
                logger.error("[session] Checkpoint write failed on thread %s: %s", thread_id, exc)
                raise CheckpointError(f"Could not persist conversation {thread_id!r}: {exc}") from exc

            log = MessageLog(result["messages"])
            logger.info(
                "[session] Thread %s finished after %d round(s), %d tool result(s)",
                thread_id, result.get("steps", 0),
                len(log.tool_results()) - len(prior.tool_results()),
            )

            final = log.last_assistant()
            if final is None:
                raise ExtractionError("turn ended without an assistant message")
            return extract_turn_result(message_text(final))
