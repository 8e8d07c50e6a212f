"""
Tool Registry
=============
Typed tool specs the agent can call, and the fixed registry built from them.

Each ToolSpec pairs a pydantic argument schema with an async handler that only
ever receives already-validated arguments. Validation, unknown-tool handling
and exception capture live in dispatch.py — handlers stay small.

The model sees the tools through as_langchain_tools(), which only exists so
bind_tools() can publish the JSON schemas. Execution never goes through
LangChain's tool runner.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from langchain_core.tools import StructuredTool
from pydantic import BaseModel

from .orders import OrderStore
from .schemas import CreateOrderArgs

logger = logging.getLogger(__name__)

# The model reads these strings to decide what to tell the customer.
# Keep the wording stable.
ORDER_CREATED = "Order created successfully"
ORDER_FAILED = "Failed to create the order"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Awaitable[str]]

    def as_langchain_tool(self) -> StructuredTool:
        async def _unsupported(**kwargs) -> str:
            raise RuntimeError(f"{self.name} is executed by the dispatcher, not LangChain")

        return StructuredTool.from_function(
            coroutine=_unsupported,
            name=self.name,
            description=self.description,
            args_schema=self.args_schema,
        )


class ToolRegistry:
    """Name → ToolSpec mapping. Lookups of unknown names return None."""

    def __init__(self, specs: list[ToolSpec] | None = None):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool {spec.name!r} is already registered")
        self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def names(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def as_langchain_tools(self) -> list[StructuredTool]:
        return [spec.as_langchain_tool() for spec in self._specs.values()]


# ── create_order ────────────────────────────────────────────────────────────

def create_order_tool(order_store: OrderStore) -> ToolSpec:
    """
    Build the create_order spec bound to an order store.

    Persistence failures are reported to the model as ORDER_FAILED rather than
    raised, so the agent can apologise to the customer and keep going.
    """
    async def create_order(args: CreateOrderArgs) -> str:
        order = args.order
        try:
            order_id = await order_store.create(order)
        except Exception:
            logger.exception("[tools] create_order failed to persist %s", order.model_dump())
            return ORDER_FAILED
        logger.info("[tools] create_order stored order %s", order_id)
        return ORDER_CREATED

    return ToolSpec(
        name="create_order",
        description="Creates a new order in the database",
        args_schema=CreateOrderArgs,
        handler=create_order,
    )


def build_registry(order_store: OrderStore) -> ToolRegistry:
    return ToolRegistry([create_order_tool(order_store)])
