"""
Checkpointing
=============
Manages the LangGraph checkpoint backend that makes multi-turn ordering
conversations durable, and the ConversationStore view on top of it.

Two backends:

  SQLite (default)
  ─────────────────
  Uses AsyncSqliteSaver from langgraph.checkpoint.sqlite.aio. Conversations
  survive process restarts. The DB file path is controlled by the
  CHECKPOINT_DB_PATH env var, defaulting to "agent_checkpoints.db" in the
  current working directory.

  Memory (in-process only)
  ────────────────────────
  Uses MemorySaver. Lost on process exit. Appropriate for tests and one-shot
  CLI sessions where durability is not required.

The graph writes a checkpoint after every superstep, so a crash mid-turn loses
at most the in-flight round. ConversationStore gives callers the
load(thread_id) / append(thread_id, messages) view of those checkpoints.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from langchain_core.messages import BaseMessage
from langgraph.checkpoint.memory import MemorySaver
from langgraph.checkpoint.sqlite.aio import AsyncSqliteSaver

from .errors import CheckpointError
from .log import MessageLog

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "agent_checkpoints.db"


def get_db_path() -> str:
    """
    Return the SQLite database file path.

    Resolution order:
      1. CHECKPOINT_DB_PATH environment variable
      2. DEFAULT_DB_PATH ("agent_checkpoints.db" in the cwd)
    """
    return os.getenv("CHECKPOINT_DB_PATH", DEFAULT_DB_PATH)


@asynccontextmanager
async def sqlite_checkpointer(
    db_path: str | None = None,
) -> AsyncIterator[AsyncSqliteSaver]:
    """
    Async context manager that opens an AsyncSqliteSaver and runs setup().

    setup() is idempotent — it creates the checkpoint tables if they don't
    exist yet, and is safe to call on every startup.

    Args:
        db_path: Path to the SQLite file. Defaults to get_db_path().
                 Pass ":memory:" for a fully in-process SQLite.
    """
    path = db_path if db_path is not None else get_db_path()
    logger.info("[checkpointing] Opening SQLite checkpointer at: %s", path)

    async with AsyncSqliteSaver.from_conn_string(path) as checkpointer:
        await checkpointer.setup()
        logger.info("[checkpointing] SQLite checkpointer ready")
        yield checkpointer


def memory_checkpointer() -> MemorySaver:
    """Return an in-memory MemorySaver. State is lost when the process exits."""
    return MemorySaver()


def thread_config(thread_id: str) -> dict:
    return {"configurable": {"thread_id": thread_id}}


class ConversationStore:
    """
    Per-thread message logs, read from and written to a compiled graph's
    checkpointer.

    Each thread id is independent. Failures of the underlying backend are
    raised as CheckpointError.
    """

    def __init__(self, graph):
        self._graph = graph

    async def load(self, thread_id: str) -> MessageLog:
        """Return the thread's log, or an empty one for an unseen thread."""
        try:
            snapshot = await self._graph.aget_state(thread_config(thread_id))
        except Exception as exc:
            logger.error("[checkpointing] Failed to load thread %s: %s", thread_id, exc)
            raise CheckpointError(f"Could not load conversation {thread_id!r}: {exc}") from exc
        return MessageLog(snapshot.values.get("messages", []))

    async def append(self, thread_id: str, messages: Iterable[BaseMessage]) -> None:
        """
        Append messages to the thread's log and persist them before returning.

        Turns run by OrderSession persist through the graph's checkpointer and
        never call this. It exists for writing to a thread from outside the
        graph: seeding a conversation, importing history, fixtures.

        The write is recorded as coming from the agent node, so a log ending in
        an assistant message without tool calls resumes as a finished turn.
        """
        messages = list(messages)
        if not messages:
            return
        try:
            await self._graph.aupdate_state(
                thread_config(thread_id),
                {"messages": messages, "thread_id": thread_id},
                as_node="agent",
            )
        except Exception as exc:
            logger.error("[checkpointing] Failed to append to thread %s: %s", thread_id, exc)
            raise CheckpointError(f"Could not persist conversation {thread_id!r}: {exc}") from exc
        logger.debug("[checkpointing] Appended %d message(s) to thread %s", len(messages), thread_id)
