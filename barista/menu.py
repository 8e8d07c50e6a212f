"""
Menu Catalog
============
Read-only catalog of drinks and the options they can be customised with.

The catalog only feeds the system prompt: the agent reads these summaries to
know which drinks exist and which modifications each one accepts. Nothing in
the agent loop mutates it.
"""
from pydantic import BaseModel, ConfigDict


class Drink(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    support_milk: bool
    support_sweeteners: bool
    support_syrup: bool
    support_topping: bool
    support_size: bool


class MenuOption(BaseModel):
    """A size, milk, syrup, sweetener or topping."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str


DRINKS: tuple[Drink, ...] = (
    Drink(
        name="Espresso",
        description="Strong concentrated coffee shot.",
        support_milk=False,
        support_sweeteners=True,
        support_syrup=True,
        support_topping=False,
        support_size=False,
    ),
    Drink(
        name="Latte",
        description="Espresso with steamed milk, smooth and creamy.",
        support_milk=True,
        support_sweeteners=True,
        support_syrup=True,
        support_topping=True,
        support_size=True,
    ),
    Drink(
        name="Cappuccino",
        description="Espresso with steamed milk and a deep layer of foam.",
        support_milk=True,
        support_sweeteners=True,
        support_syrup=True,
        support_topping=True,
        support_size=True,
    ),
    Drink(
        name="Cold Brew",
        description="Smooth, cold-steeped coffee served over ice.",
        support_milk=True,
        support_sweeteners=True,
        support_syrup=True,
        support_topping=False,
        support_size=True,
    ),
    Drink(
        name="Frappuccino",
        description="Blended iced coffee drink with flavors and toppings.",
        support_milk=True,
        support_sweeteners=True,
        support_syrup=True,
        support_topping=True,
        support_size=True,
    ),
)

SIZES: tuple[MenuOption, ...] = (
    MenuOption(name="Tall", description="12 fl oz (small)"),
    MenuOption(name="Grande", description="16 fl oz (medium)"),
    MenuOption(name="Venti", description="20 fl oz (large for hot, 24 fl oz for cold)"),
    MenuOption(name="Trenta", description="31 fl oz (cold drinks only)"),
)

MILKS: tuple[MenuOption, ...] = (
    MenuOption(name="Whole Milk", description="Rich, full-bodied dairy milk."),
    MenuOption(name="2% Milk", description="Reduced fat milk option."),
    MenuOption(name="Nonfat Milk", description="Fat-free dairy milk."),
    MenuOption(name="Oat Milk", description="Smooth, plant-based oat milk."),
    MenuOption(name="Soy Milk", description="Plant-based soy milk."),
    MenuOption(name="Almond Milk", description="Nutty, plant-based almond milk."),
    MenuOption(name="Coconut Milk", description="Creamy, tropical plant-based milk."),
)

SYRUPS: tuple[MenuOption, ...] = (
    MenuOption(name="Vanilla Syrup", description="Classic sweet vanilla flavor."),
    MenuOption(name="Caramel Syrup", description="Rich caramel sweetness."),
    MenuOption(name="Hazelnut Syrup", description="Nutty, sweet hazelnut flavor."),
    MenuOption(name="Mocha Syrup", description="Chocolate syrup for coffee drinks."),
    MenuOption(name="Pumpkin Spice Syrup", description="Seasonal pumpkin spice flavor."),
)

SWEETENERS: tuple[MenuOption, ...] = (
    MenuOption(name="Classic Syrup", description="Standard liquid sweetener."),
    MenuOption(name="Raw Sugar", description="Natural cane sugar."),
    MenuOption(name="Stevia", description="Zero-calorie natural sweetener."),
    MenuOption(name="Honey", description="Natural honey sweetener."),
    MenuOption(name="Splenda", description="Low-calorie artificial sweetener."),
)

TOPPINGS: tuple[MenuOption, ...] = (
    MenuOption(name="Whipped Cream", description="Fluffy whipped topping."),
    MenuOption(name="Caramel Drizzle", description="Sweet caramel sauce topping."),
    MenuOption(name="Mocha Drizzle", description="Chocolate drizzle topping."),
    MenuOption(name="Cinnamon Powder", description="Warm spice powder."),
    MenuOption(name="Vanilla Bean Powder", description="Sweet vanilla topping."),
    MenuOption(name="Caramel Crunch", description="Crunchy caramelized sugar bits."),
)


# ── Summaries ────────────────────────────────────────────────────────────────

def _can(flag: bool, yes: str, no: str) -> str:
    return yes if flag else no


def summarize_drink(drink: Drink) -> str:
    """One-line natural language description of a drink and what it supports."""
    return " ".join([
        f"A drink named {drink.name}.",
        f"It is described as: {drink.description}",
        _can(drink.support_milk, "It can be made with milk.", "It cannot be made with milk."),
        _can(drink.support_sweeteners, "It can be made with sweeteners.", "It cannot contain sweeteners."),
        _can(drink.support_syrup, "It can be made with syrup.", "It cannot be made with syrup."),
        _can(drink.support_topping, "It can be made with topping.", "It cannot be made with topping."),
        _can(drink.support_size, "It can be made in different sizes.", "It cannot be made in different sizes."),
    ])


def summarize_options(label: str, options: tuple[MenuOption, ...]) -> str:
    lines = [f"Available {label} are:"]
    lines.extend(f"- {opt.name}: {opt.description}" for opt in options)
    return "\n".join(lines)


def find_drink(name: str) -> Drink | None:
    wanted = name.strip().lower()
    return next((d for d in DRINKS if d.name.lower() == wanted), None)
