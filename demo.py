"""
Interactive CLI Demo
=====================
Order a drink from the barista agent in your terminal.

Usage:
    python demo.py

Suggested conversation:
    "I want a latte"              ← agent asks for size, milk, ...
    "Grande, oat milk, vanilla syrup, no sweetener, whipped cream"
    "yes"                         ← agent calls create_order, progress → completed

Type 'quit' to exit, 'new' to start a fresh thread, 'orders' to list the
orders placed during this run.
"""
import asyncio
import logging
import os
import uuid

from barista import OrderSession, TurnError


def _print_result(result) -> None:
    print(result.message)
    order = result.current_order.model_dump()
    known = {k: v for k, v in order.items() if v is not None}
    print(f"\n  [order: {known}]")
    print(f"  [progress: {result.progress}]")
    if result.suggestions:
        print(f"  [suggestions: {' | '.join(result.suggestions)}]")


async def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING"))

    print("\n" + "=" * 60)
    print("  Barista Ordering Agent")
    print("=" * 60)
    print("\nType 'quit' to exit, 'new' to start a fresh thread, 'orders' to list orders.\n")

    # in_memory=True: demo conversations and orders are ephemeral.
    session = OrderSession(in_memory=True)
    await session.start()
    thread_id = str(uuid.uuid4())

    print(f"Thread: {thread_id[:8]}...\n")
    print("Agent: Hi! ☕ What can I get started for you today?\n")

    try:
        while True:
            try:
                user_input = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n\nGoodbye!")
                break

            if not user_input:
                continue

            command = user_input.lower()
            if command == "quit":
                print("\nAgent: Thanks for stopping by. Goodbye!")
                break

            if command == "new":
                thread_id = str(uuid.uuid4())
                print(f"\n[New thread: {thread_id[:8]}...]\n")
                continue

            if command == "orders":
                for row in session.order_store.orders:
                    print(f"  {row['quantity']}x {row['drink']} ({row['size']}, {row['milk']})")
                print()
                continue

            print("\nAgent: ", end="", flush=True)
            try:
                result = await session.chat(thread_id, user_input)
            except TurnError as exc:
                print(f"Sorry, something went wrong ({exc.kind}). Please try again.\n")
                continue

            _print_result(result)
            print()

    finally:
        await session.stop()


if __name__ == "__main__":
    asyncio.run(main())
