"""
Graph Nodes
===========
The agent node: one model call per round.

The tools node lives in dispatch.py, next to the dispatcher it wraps.

Design principle: nodes are pure state transformers.
They read OrderState, return a dict of updated fields, and never call
graph.invoke() themselves — routing is handled by separate routing functions.
"""
import logging

from langchain_core.messages import SystemMessage

from .errors import ModelCallError, StepBudgetExceeded
from .prompts import SYSTEM_PROMPT
from .state import OrderState

logger = logging.getLogger(__name__)


def create_agent_node(llm_with_tools, max_steps: int, system_prompt: str = SYSTEM_PROMPT):
    """
    Factory that returns the agent node bound to a specific LLM + tools.

    The agent node sees the full conversation history behind the system prompt
    and produces exactly one AIMessage, which may request tools.

    Raises (fatal for the turn):
        StepBudgetExceeded — `steps` already reached max_steps
        ModelCallError     — the model call itself failed
    """
    async def agent_node(state: OrderState) -> dict:
        steps = state.get("steps") or 0
        if steps >= max_steps:
            logger.error(
                "[agent] Step budget of %d exhausted on thread %s",
                max_steps, state.get("thread_id"),
            )
            raise StepBudgetExceeded(max_steps, state.get("thread_id"))

        messages = [SystemMessage(content=system_prompt)] + list(state["messages"])

        try:
            response = await llm_with_tools.ainvoke(messages)
        except Exception as exc:
            logger.error("[agent] Model call failed on round %d: %s", steps + 1, exc)
            raise ModelCallError(f"Language model call failed: {exc}") from exc

        if response.tool_calls:
            logger.info(
                "[agent] Round %d: model requested %s",
                steps + 1, [tc["name"] for tc in response.tool_calls],
            )
        else:
            logger.info("[agent] Round %d: model answered directly", steps + 1)

        return {"messages": [response], "steps": steps + 1}

    return agent_node
