"""
Order Store
===========
Persistence collaborator behind the create_order tool.

Two backends, mirroring the checkpointer setup:

  SQLite (default)
  ─────────────────
  SqliteOrderStore writes to an `orders` table through aiosqlite. The file path
  is controlled by the ORDERS_DB_PATH env var, defaulting to "orders.db".
  Open it with the sqlite_order_store() async context manager so the
  connection is released on shutdown.

  Memory
  ──────
  InMemoryOrderStore keeps orders in a list. Used by tests and the CLI demo.

Stored columns use `milk` and `sweetener`; the translation from the tool's
wire names (`mil`, `sweeteners`) happens here and nowhere else.
"""
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Protocol

import aiosqlite

from .schemas import Order

logger = logging.getLogger(__name__)

DEFAULT_ORDERS_DB_PATH = "orders.db"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS orders (
    order_id   TEXT PRIMARY KEY,
    drink      TEXT NOT NULL,
    size       TEXT,
    milk       TEXT,
    syrup      TEXT,
    sweetener  TEXT,
    toppings   TEXT,
    quantity   INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL
)
"""


def get_orders_db_path() -> str:
    """ORDERS_DB_PATH env var, else DEFAULT_ORDERS_DB_PATH."""
    return os.getenv("ORDERS_DB_PATH", DEFAULT_ORDERS_DB_PATH)


class OrderStore(Protocol):
    async def create(self, order: Order) -> str:
        """Persist the order and return its id. Raises on failure."""
        ...


def _row(order_id: str, order: Order) -> dict:
    return {
        "order_id":   order_id,
        "drink":      order.drink,
        "size":       order.size,
        "milk":       order.mil,
        "syrup":      order.syrup,
        "sweetener":  order.sweeteners,
        "toppings":   order.toppings,
        "quantity":   order.quantity,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


class InMemoryOrderStore:
    """Keeps created orders in process memory. Lost on exit."""

    def __init__(self):
        self.orders: list[dict] = []

    async def create(self, order: Order) -> str:
        order_id = str(uuid.uuid4())
        self.orders.append(_row(order_id, order))
        return order_id


class SqliteOrderStore:
    """Writes orders to SQLite over an already-open aiosqlite connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def setup(self) -> None:
        await self.conn.execute(_CREATE_TABLE)
        await self.conn.commit()

    async def create(self, order: Order) -> str:
        order_id = str(uuid.uuid4())
        row = _row(order_id, order)
        await self.conn.execute(
            "INSERT INTO orders (order_id, drink, size, milk, syrup, sweetener, toppings, quantity, created_at) "
            "VALUES (:order_id, :drink, :size, :milk, :syrup, :sweetener, :toppings, :quantity, :created_at)",
            row,
        )
        await self.conn.commit()
        logger.info("[orders] Stored order %s (%dx %s)", order_id, order.quantity, order.drink)
        return order_id

    async def list_orders(self) -> list[dict]:
        self.conn.row_factory = aiosqlite.Row
        async with self.conn.execute("SELECT * FROM orders ORDER BY created_at") as cursor:
            rows = await cursor.fetchall()
        return [dict(r) for r in rows]


@asynccontextmanager
async def sqlite_order_store(db_path: str | None = None) -> AsyncIterator[SqliteOrderStore]:
    """
    Open a SqliteOrderStore, create the orders table if needed, and close the
    connection on exit.

    Args:
        db_path: Path to the SQLite file. Defaults to get_orders_db_path().
                 ":memory:" works for tests.
    """
    path = db_path if db_path is not None else get_orders_db_path()
    logger.info("[orders] Opening SQLite order store at: %s", path)

    async with aiosqlite.connect(path) as conn:
        store = SqliteOrderStore(conn)
        await store.setup()
        yield store
