"""
Turn Errors
===========
Fatal conditions for a single conversation turn.

Recoverable failures (unknown tool, bad tool arguments, a tool handler that
blows up) never show up here: the dispatcher folds them into ToolMessages and
the loop continues. Everything below aborts the turn and is surfaced to the
caller, which presents a generic failure instead of a partial payload.
"""


class TurnError(RuntimeError):
    """Base class for every fatal per-turn condition."""

    kind = "turn_failed"


class ModelCallError(TurnError):
    """The language model call failed (network, quota, malformed provider response)."""

    kind = "model_call_failed"


class StepBudgetExceeded(TurnError):
    """The agent kept requesting tools past the configured round budget."""

    kind = "step_budget_exceeded"

    def __init__(self, max_steps: int, thread_id: str | None = None):
        self.max_steps = max_steps
        self.thread_id = thread_id
        super().__init__(
            f"Agent exceeded its step budget of {max_steps} rounds"
            + (f" on thread {thread_id!r}" if thread_id else "")
        )


class ExtractionError(TurnError):
    """The final assistant message did not carry a parseable structured block."""

    kind = "extraction_failed"

    def __init__(self, reason: str, text: str = ""):
        self.reason = reason
        self.text = text
        snippet = text if len(text) <= 200 else text[:200] + "..."
        super().__init__(f"{reason}: {snippet!r}")


class CheckpointError(TurnError):
    """Conversation state could not be read from or written to the checkpointer."""

    kind = "checkpoint_failed"
