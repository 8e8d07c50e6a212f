"""
Tool Dispatcher
===============
Executes the tool calls carried by one AIMessage and answers each of them.

Contract:
  - exactly one ToolMessage per tool call, in the order the model issued them
  - every ToolMessage carries the tool_call_id it answers
  - nothing here raises: unknown tools, invalid arguments and handler
    exceptions all become ToolMessages with status="error", so the model can
    read what went wrong and recover in the next agent round

Malformed calls the provider could not parse (AIMessage.invalid_tool_calls)
are answered the same way, after the valid ones. AIMessage keeps the two kinds
in separate lists, so their relative issue order is not available here.
Providers reject the next request if any issued id is left without a
ToolMessage.
"""
import logging

from langchain_core.messages import AIMessage, ToolMessage
from pydantic import ValidationError

from .state import OrderState
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


def _error(tool_call_id: str, name: str, content: str) -> ToolMessage:
    return ToolMessage(content=content, tool_call_id=tool_call_id, name=name, status="error")


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


async def run_tool_call(registry: ToolRegistry, tool_call: dict) -> ToolMessage:
    """Validate and execute a single tool call. Always returns a ToolMessage."""
    name = tool_call.get("name") or "unknown"
    # Providers may omit the id; ToolMessage requires a string.
    call_id = tool_call.get("id") or ""

    spec = registry.get(name)
    if spec is None:
        logger.warning("[tools] Unknown tool requested: %s", name)
        return _error(
            call_id, name,
            f"Error: tool '{name}' is unknown. Available tools: {', '.join(registry.names())}.",
        )

    try:
        args = spec.args_schema.model_validate(tool_call.get("args") or {})
    except ValidationError as exc:
        summary = _validation_summary(exc)
        logger.info("[tools] Rejected arguments for %s: %s", name, summary)
        return _error(call_id, name, f"Error: invalid arguments for tool '{name}': {summary}")

    try:
        result = await spec.handler(args)
    except Exception as exc:
        logger.exception("[tools] Tool %s raised", name)
        return _error(call_id, name, f"Error: tool '{name}' failed: {exc}")

    return ToolMessage(content=str(result), tool_call_id=call_id, name=name)


async def dispatch_tool_calls(registry: ToolRegistry, message: AIMessage) -> list[ToolMessage]:
    results = []
    for tool_call in message.tool_calls:
        results.append(await run_tool_call(registry, tool_call))

    for bad in message.invalid_tool_calls:
        name = bad.get("name") or "unknown"
        logger.warning("[tools] Malformed tool call from model: %s (%s)", name, bad.get("error"))
        results.append(_error(
            bad.get("id") or "",
            name,
            f"Error: could not parse the arguments for tool '{name}': {bad.get('error') or 'invalid JSON'}",
        ))

    return results


def create_tools_node(registry: ToolRegistry):
    """
    Factory for the graph's tools node: answers every pending call on the
    latest AIMessage.
    """
    async def tools_node(state: OrderState) -> dict:
        last = state["messages"][-1]
        if not isinstance(last, AIMessage):
            return {"messages": []}

        results = await dispatch_tool_calls(registry, last)
        logger.info(
            "[tools] Answered %d tool call(s): %s",
            len(results), [r.name for r in results],
        )
        return {"messages": results}

    return tools_node
