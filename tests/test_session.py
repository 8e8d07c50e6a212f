"""
Tests for barista/session.py — full turns through the real graph
=================================================================
The graph, dispatcher and checkpointer are real; only the chat model is
scripted (see conftest.fake_llm).

Covers:
  - Greeting turn: a drink is recorded, nothing is persisted
  - Confirmed order: create_order runs once, progress becomes "completed"
  - Persistence failure: the model is told, progress stays "in_progress"
  - A model that always calls tools is stopped by the step budget
  - Model / extraction / checkpoint failures abort the turn
  - Multi-turn memory, same-thread serialisation, cross-thread concurrency
  - SQLite lifecycle: conversations and orders survive a restart
  - Per-thread locks are released once no turn needs them
  - Replay: the same query over the same stored log reaches the model identically
"""
import asyncio
import shutil
import sqlite3
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from barista.errors import CheckpointError, ExtractionError, ModelCallError, StepBudgetExceeded
from barista.orders import InMemoryOrderStore, sqlite_order_store
from barista.session import OrderSession
from barista.tools import ORDER_CREATED, ORDER_FAILED

from conftest import LATTE_ORDER, fake_llm, order_call, reply

COMPLETE_ORDER = {
    "drink": "Latte", "size": "Grande", "milk": "Oat Milk", "syrup": "Vanilla Syrup",
    "sweetener": "None", "toppings": "Whipped Cream", "quantity": 1,
}


async def _started(llm, **kwargs) -> OrderSession:
    session = OrderSession(in_memory=True, llm=llm, **kwargs)
    await session.start()
    return session


# ── Happy paths ──────────────────────────────────────────────────────────────

class TestOrderingTurns:
    async def test_latte_request_records_drink(self, thread_id):
        llm = fake_llm(reply(
            "Great choice! What size would you like?",
            suggestions=["Tall", "Grande", "Venti"],
            drink="Latte",
        ))
        session = await _started(llm)

        result = await session.chat(thread_id, "I want a latte")

        assert result.current_order.drink == "Latte"
        assert result.current_order.size is None
        assert result.progress == "in_progress"
        assert result.suggestions == ["Tall", "Grande", "Venti"]
        assert session.order_store.orders == []
        await session.stop()

    async def test_confirmed_order_is_created_once(self, thread_id):
        llm = fake_llm(
            order_call(call_id="call_order_1"),
            reply("Your latte is on its way! ☕", progress="completed", **COMPLETE_ORDER),
        )
        session = await _started(llm)

        result = await session.chat(thread_id, "Yes, that's right")

        assert result.progress == "completed"
        assert result.current_order.milk == "Oat Milk"
        assert len(session.order_store.orders) == 1

        log = await session.load(thread_id)
        tool_results = log.tool_results()
        assert len(tool_results) == 1
        assert tool_results[0].content == ORDER_CREATED
        assert tool_results[0].tool_call_id == "call_order_1"
        # The second model call saw the tool result
        second_call = llm.ainvoke.call_args_list[1][0][0]
        assert isinstance(second_call[-1], ToolMessage)
        await session.stop()

    async def test_persistence_failure_is_reported_to_model(self, thread_id):
        failing = AsyncMock()
        failing.create.side_effect = ConnectionError("db down")
        llm = fake_llm(
            order_call(),
            reply("Sorry, I couldn't place your order.", **COMPLETE_ORDER),
        )
        session = await _started(llm, order_store=failing)

        result = await session.chat(thread_id, "Yes please")

        assert result.progress == "in_progress"
        log = await session.load(thread_id)
        assert log.tool_results()[0].content == ORDER_FAILED
        await session.stop()

    async def test_invalid_arguments_let_model_retry(self, thread_id):
        bad = {**LATTE_ORDER, "quantity": 11}
        llm = fake_llm(
            order_call(bad),
            order_call(),
            reply("Done!", progress="completed", **COMPLETE_ORDER),
        )
        session = await _started(llm)

        result = await session.chat(thread_id, "Eleven lattes, no wait, one")

        assert result.progress == "completed"
        assert [o["quantity"] for o in session.order_store.orders] == [1]
        statuses = [m.status for m in (await session.load(thread_id)).tool_results()]
        assert statuses == ["error", "success"]
        await session.stop()

    async def test_history_excludes_tool_traffic(self, thread_id):
        llm = fake_llm(order_call(), reply("Done!", progress="completed", **COMPLETE_ORDER))
        session = await _started(llm)
        await session.chat(thread_id, "Yes")

        history = await session.get_history(thread_id)

        assert [h["role"] for h in history] == ["user", "assistant"]
        assert history[0]["content"] == "Yes"
        await session.stop()

    async def test_second_turn_sees_first(self, thread_id):
        llm = fake_llm(reply("What size?", drink="Latte"), reply("Which milk?", drink="Latte", size="Tall"))
        session = await _started(llm)

        await session.chat(thread_id, "I want a latte")
        result = await session.chat(thread_id, "Tall")

        assert result.current_order.size == "Tall"
        sent = llm.ainvoke.call_args_list[1][0][0]
        assert [m.content for m in sent if isinstance(m, HumanMessage)] == ["I want a latte", "Tall"]
        await session.stop()


# ── Fatal turn errors ────────────────────────────────────────────────────────

class TestTurnFailures:
    async def test_model_that_always_calls_tools_hits_budget(self, thread_id):
        llm = fake_llm(lambda messages: order_call())
        session = await _started(llm, max_steps=3)

        with pytest.raises(StepBudgetExceeded) as exc_info:
            await session.chat(thread_id, "Yes")

        assert exc_info.value.max_steps == 3
        assert llm.ainvoke.await_count == 3
        await session.stop()

    async def test_budget_resets_each_turn(self, thread_id):
        llm = fake_llm(
            order_call(), reply("ok"),
            order_call(), reply("ok again"),
        )
        session = await _started(llm, max_steps=2)

        await session.chat(thread_id, "first")
        result = await session.chat(thread_id, "second")

        assert result.message == "ok again"
        await session.stop()

    async def test_model_error_aborts_turn(self, thread_id):
        session = await _started(fake_llm(RuntimeError("quota exceeded")))

        with pytest.raises(ModelCallError):
            await session.chat(thread_id, "hi")
        await session.stop()

    async def test_reply_without_block_raises_extraction_error(self, thread_id):
        session = await _started(fake_llm(AIMessage(content="Sure! What size?")))

        with pytest.raises(ExtractionError):
            await session.chat(thread_id, "I want a latte")
        await session.stop()

    async def test_checkpoint_write_failure(self, thread_id):
        session = await _started(fake_llm(reply("hi")))
        broken = MagicMock()
        broken.ainvoke = AsyncMock(side_effect=sqlite3.OperationalError("database is locked"))

        with patch.object(session, "_graph", broken):
            with pytest.raises(CheckpointError):
                await session.chat(thread_id, "hi")
        await session.stop()


# ── Input validation / lifecycle ─────────────────────────────────────────────

class TestSessionLifecycle:
    async def test_chat_before_start_raises(self):
        session = OrderSession(in_memory=True, llm=fake_llm())
        with pytest.raises(RuntimeError):
            await session.chat("t", "hi")

    @pytest.mark.parametrize("thread_id, query", [("", "hi"), ("t", ""), ("t", "   ")])
    async def test_empty_inputs_rejected(self, thread_id, query):
        session = await _started(fake_llm())
        with pytest.raises(ValueError):
            await session.chat(thread_id, query)
        await session.stop()

    async def test_in_memory_uses_memory_order_store(self):
        session = await _started(fake_llm())
        assert isinstance(session.order_store, InMemoryOrderStore)
        await session.stop()

    async def test_max_steps_from_env(self, monkeypatch):
        monkeypatch.setenv("AGENT_MAX_STEPS", "4")
        assert OrderSession(in_memory=True, llm=fake_llm()).max_steps == 4

    async def test_sqlite_conversation_and_orders_survive_restart(self, tmp_path, thread_id):
        db = str(tmp_path / "checkpoints.db")
        orders_db = str(tmp_path / "orders.db")

        llm = fake_llm(order_call(), reply("Done!", progress="completed", **COMPLETE_ORDER))
        session = OrderSession(db_path=db, orders_db_path=orders_db, llm=llm)
        await session.start()
        await session.chat(thread_id, "Yes")
        await session.stop()

        restarted = OrderSession(db_path=db, orders_db_path=orders_db, llm=fake_llm())
        await restarted.start()
        history = await restarted.get_history(thread_id)
        await restarted.stop()

        assert [h["role"] for h in history] == ["user", "assistant"]
        async with sqlite_order_store(orders_db) as store:
            rows = await store.list_orders()
        assert len(rows) == 1
        assert rows[0]["drink"] == "Latte"


# ── Concurrency ──────────────────────────────────────────────────────────────

class TestConcurrency:
    async def test_same_thread_turns_do_not_overlap(self, thread_id):
        active = 0
        peak = 0

        async def slow_reply(messages):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return reply("ok")

        session = await _started(fake_llm(slow_reply))

        await asyncio.gather(
            session.chat(thread_id, "one"),
            session.chat(thread_id, "two"),
        )

        assert peak == 1
        log = await session.load(thread_id)
        assert len(log) == 4
        await session.stop()

    async def test_different_threads_run_independently(self):
        session = await _started(fake_llm(lambda messages: reply("ok")))

        results = await asyncio.gather(
            session.chat("thread-a", "hi"),
            session.chat("thread-b", "hello"),
        )

        assert [r.message for r in results] == ["ok", "ok"]
        assert len(await session.load("thread-a")) == 2
        assert len(await session.load("thread-b")) == 2
        await session.stop()

    async def test_thread_locks_released_after_turns(self, thread_id):
        async def slow_reply(messages):
            await asyncio.sleep(0.01)
            return reply("ok")

        session = await _started(fake_llm(slow_reply))

        await asyncio.gather(
            session.chat(thread_id, "one"),
            session.chat(thread_id, "two"),
            session.chat("other-thread", "three"),
        )

        assert session._locks == {}
        assert session._lock_users == {}
        await session.stop()

    async def test_thread_lock_released_after_failed_turn(self, thread_id):
        session = await _started(fake_llm(RuntimeError("quota exceeded")))

        with pytest.raises(ModelCallError):
            await session.chat(thread_id, "hi")

        assert session._locks == {}
        await session.stop()


# ── Replay ───────────────────────────────────────────────────────────────────

class TestReplay:
    async def test_same_query_sees_same_prior_log_after_restart(self, tmp_path, thread_id):
        """
        Two fresh sessions over copies of one checkpoint file load the same
        prior log and send the model identical conversations.
        """
        db = tmp_path / "checkpoints.db"
        session = OrderSession(db_path=str(db), order_store=InMemoryOrderStore(), llm=fake_llm(
            reply("What size?", drink="Latte"),
        ))
        await session.start()
        await session.chat(thread_id, "I want a latte")
        await session.stop()

        replica = tmp_path / "replica.db"
        shutil.copyfile(db, replica)

        sent = []
        priors = []
        for path in (db, replica):
            llm = fake_llm(reply("Which milk?", drink="Latte", size="Tall"))
            fresh = OrderSession(db_path=str(path), order_store=InMemoryOrderStore(), llm=llm)
            await fresh.start()
            priors.append(await fresh.load(thread_id))
            result = await fresh.chat(thread_id, "Tall")
            await fresh.stop()

            assert result.current_order.size == "Tall"
            sent.append([(type(m), m.content) for m in llm.ainvoke.call_args[0][0]])

        assert priors[0] == priors[1]
        assert len(priors[0]) == 2
        assert sent[0] == sent[1]
        assert [c for t, c in sent[0] if t is HumanMessage] == ["I want a latte", "Tall"]
