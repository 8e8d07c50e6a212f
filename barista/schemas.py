"""
Schemas
=======
Pydantic models for the two structured boundaries of the agent:

  Order / CreateOrderArgs   what the model must send to the create_order tool
  CurrentOrder / TurnResult what every final assistant message must embed

The tool schema keeps the field names the model has always been given,
including `mil` and `sweeteners`. Renaming them here without changing the
prompt would desynchronise the model from the tool arguments.
"""
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MIN_QUANTITY = 1
MAX_QUANTITY = 10

Progress = Literal["in_progress", "completed"]


class Order(BaseModel):
    """A fully specified drink order, as passed to create_order."""

    drink: str = Field(description="The name of the drink ordered (e.g. Latte, Cappuccino)")
    size: str = Field(description="The size of the drink (e.g. Tall, Grande, Venti)")
    mil: str = Field(description="The milk for the drink (e.g. Whole Milk, Oat Milk)")
    syrup: str = Field(description="The syrup added to the drink (e.g. Vanilla Syrup)")
    sweeteners: str = Field(description="The sweetener(s) chosen (e.g. Raw Sugar, Stevia, None)")
    toppings: str = Field(description="The topping(s) selected (e.g. Whipped Cream, None)")
    quantity: int = Field(
        ge=MIN_QUANTITY,
        le=MAX_QUANTITY,
        description=f"How many of this drink, between {MIN_QUANTITY} and {MAX_QUANTITY}",
    )


class CreateOrderArgs(BaseModel):
    order: Order = Field(description="The confirmed order to create in the database")


# ── Turn payload ─────────────────────────────────────────────────────────────

_UNKNOWN_MARKERS = frozenset({"", "null", "none", "unknown", "n/a", "tbd"})


class CurrentOrder(BaseModel):
    """
    The order as it stands after a turn. Fields the customer has not chosen
    yet are None and serialise as null — they are never omitted.

    The model sometimes mirrors the tool field names, so `mil` and
    `sweeteners` are accepted as aliases of `milk` and `sweetener`.
    """

    model_config = ConfigDict(populate_by_name=True)

    drink: str | None = None
    size: str | None = None
    milk: str | None = Field(default=None, validation_alias=AliasChoices("milk", "mil"))
    syrup: str | None = None
    sweetener: str | None = Field(
        default=None, validation_alias=AliasChoices("sweetener", "sweeteners")
    )
    toppings: str | None = None
    quantity: int = MIN_QUANTITY

    @field_validator("drink", "size", "milk", "syrup", "sweetener", "toppings", mode="before")
    @classmethod
    def _normalize_unknown(cls, value):
        if value is None:
            return None
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        if isinstance(value, str) and value.strip().lower() in _UNKNOWN_MARKERS:
            return None
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, value):
        return MIN_QUANTITY if value is None else value


class TurnResult(BaseModel):
    """The machine-readable payload every turn returns."""

    message: str
    current_order: CurrentOrder = Field(default_factory=CurrentOrder)
    suggestions: list[str] = Field(default_factory=list)
    progress: Progress = "in_progress"

    @field_validator("current_order", mode="before")
    @classmethod
    def _empty_order(cls, value):
        return {} if value is None else value

    @field_validator("suggestions", mode="before")
    @classmethod
    def _null_suggestions(cls, value):
        return [] if value is None else value

    @field_validator("progress", mode="before")
    @classmethod
    def _normalize_progress(cls, value):
        if value is None:
            return "in_progress"
        if isinstance(value, str):
            return value.strip().lower().replace(" ", "_").replace("-", "_")
        return value
