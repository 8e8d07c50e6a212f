"""
Message Log
===========
Append-only view over one conversation's messages.

LangGraph merges new messages into state with the add_messages reducer; this
type is what callers get back when they load a thread. It never reorders or
edits what it holds — new turns are appended.
"""
from typing import Iterable, Iterator

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage


def message_text(message: BaseMessage) -> str:
    """
    Return the plain text of a message.

    Some providers return content as a list of blocks
    ([{"type": "text", "text": ...}, ...]) instead of a string.
    """
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class MessageLog:
    """Ordered, append-only record of human, assistant and tool messages."""

    def __init__(self, messages: Iterable[BaseMessage] = ()):
        self._messages: list[BaseMessage] = list(messages)

    def append(self, messages: Iterable[BaseMessage]) -> None:
        """Extend the in-memory view only; persisting goes through ConversationStore."""
        self._messages.extend(messages)

    def all(self) -> tuple[BaseMessage, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[BaseMessage]:
        return iter(tuple(self._messages))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MessageLog):
            return NotImplemented
        return self._messages == other._messages

    def last_assistant(self) -> AIMessage | None:
        for msg in reversed(self._messages):
            if isinstance(msg, AIMessage):
                return msg
        return None

    def history(self) -> list[dict]:
        """
        User-facing turns as { role: "user"|"assistant", content: str } dicts.

        Tool traffic and assistant messages that only carry tool calls are
        internal to the agent loop and are left out.
        """
        turns = []
        for msg in self._messages:
            if isinstance(msg, HumanMessage):
                turns.append({"role": "user", "content": message_text(msg)})
            elif isinstance(msg, AIMessage) and msg.content and not msg.tool_calls:
                turns.append({"role": "assistant", "content": message_text(msg)})
        return turns

    def tool_results(self) -> list[ToolMessage]:
        return [m for m in self._messages if isinstance(m, ToolMessage)]
