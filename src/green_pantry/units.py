"""Unit conversion between heterogeneous quantity/unit pairs.

Every unit belongs to a class with a base unit:

- mass: g, kg, mg, oz, lb -> grams (g)
- volume: ml, l, cup, tbsp, tsp, fl oz -> milliliters (ml)
- count: pc, piece, each, dozen -> pieces (pc)

Some ingredients carry their own table, checked before the generic ones.
A clove only exists for garlic, a sprig only for herbs.
"""

from dataclasses import dataclass

from .categories import normalize_name


class UnsupportedConversion(ValueError):
    """Raised when no table bridges the source and target units."""


@dataclass(frozen=True)
class UnitTable:
    """Conversion factors relative to a base unit."""

    base_unit: str
    factors: dict[str, float]


@dataclass(frozen=True)
class BaseQuantity:
    quantity: float
    base_unit: str


@dataclass(frozen=True)
class Quantity:
    quantity: float
    unit: str


MASS = UnitTable(
    base_unit="g",
    factors={"g": 1.0, "kg": 1000.0, "mg": 0.001, "oz": 28.35, "lb": 453.592},
)
VOLUME = UnitTable(
    base_unit="ml",
    factors={
        "ml": 1.0,
        "l": 1000.0,
        "cup": 240.0,
        "tbsp": 15.0,
        "tsp": 5.0,
        "fl oz": 29.5735,
    },
)
COUNT = UnitTable(base_unit="pc", factors={"pc": 1.0, "dozen": 12.0})

GENERIC_TABLES: tuple[UnitTable, ...] = (MASS, VOLUME, COUNT)

# (name keywords, table) pairs; first whole-word match wins.
ITEM_OVERRIDES: list[tuple[tuple[str, ...], UnitTable]] = [
    (("garlic",), UnitTable(base_unit="clove", factors={"clove": 1.0, "bulb": 10.0, "head": 10.0})),
    (("egg",), UnitTable(base_unit="pc", factors={"pc": 1.0, "egg": 1.0, "dozen": 12.0, "tray": 30.0})),
    (("rice",), UnitTable(base_unit="g", factors={"cup": 185.0})),
    (
        ("basil", "parsley", "cilantro", "mint", "herb", "malunggay"),
        UnitTable(base_unit="leaf", factors={"leaf": 1.0, "sprig": 5.0, "bunch": 50.0}),
    ),
]

_ALIASES = {
    "": "pc",
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "kilo": "kg",
    "kilos": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "milligram": "mg",
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "floz": "fl oz",
    "fl. oz": "fl oz",
    "pcs": "pc",
    "piece": "pc",
    "pieces": "pc",
    "each": "pc",
    "ea": "pc",
    "leaves": "leaf",
}


def normalize_unit(unit: str | None) -> str:
    """Canonical spelling of a unit: lowercase, singular, aliased."""
    cleaned = (unit or "").strip().lower().rstrip(".")
    if cleaned in _ALIASES:
        return _ALIASES[cleaned]
    if cleaned.endswith("es") and cleaned[:-2] in _known_units():
        return cleaned[:-2]
    if cleaned.endswith("s") and cleaned[:-1] in _known_units():
        return cleaned[:-1]
    return cleaned


def _known_units() -> set[str]:
    known: set[str] = set()
    for table in GENERIC_TABLES:
        known.update(table.factors)
    for _, table in ITEM_OVERRIDES:
        known.update(table.factors)
    return known


def _name_words(item_name: str) -> set[str]:
    """Words of a name, with plural endings also stripped."""
    words = set()
    for word in normalize_name(item_name).split():
        words.add(word)
        if word.endswith("es"):
            words.add(word[:-2])
        if word.endswith("s"):
            words.add(word[:-1])
    return words


def _override_for(item_name: str) -> UnitTable | None:
    words = _name_words(item_name)
    for keywords, table in ITEM_OVERRIDES:
        if words.intersection(keywords):
            return table
    return None


def _candidate_tables(item_name: str) -> list[UnitTable]:
    override = _override_for(item_name)
    tables = [override] if override is not None else []
    tables.extend(GENERIC_TABLES)
    return tables


def to_base(quantity: float, unit: str | None, item_name: str) -> BaseQuantity:
    """Convert a quantity to the base unit of its class.

    Raises:
        UnsupportedConversion: If the unit is unknown for this item
    """
    normalized = normalize_unit(unit)
    for table in _candidate_tables(item_name):
        factor = table.factors.get(normalized)
        if factor is not None:
            return BaseQuantity(quantity=quantity * factor, base_unit=table.base_unit)
    raise UnsupportedConversion(f'Unrecognized unit "{unit}" for item "{item_name}"')


def from_base(quantity: float, base_unit: str, target_unit: str | None, item_name: str) -> Quantity:
    """Convert a base-unit quantity back to ``target_unit``.

    Raises:
        UnsupportedConversion: If ``target_unit`` is not in a table with ``base_unit``
    """
    normalized = normalize_unit(target_unit)
    for table in _candidate_tables(item_name):
        if table.base_unit != base_unit:
            continue
        factor = table.factors.get(normalized)
        if factor is not None:
            return Quantity(quantity=quantity / factor, unit=target_unit or normalized)
    raise UnsupportedConversion(
        f'Cannot convert from "{base_unit}" to "{target_unit}" for item "{item_name}"'
    )


def convert(quantity: float, unit: str | None, target_unit: str | None, item_name: str) -> Quantity:
    """Convert directly between two units of the same class."""
    base = to_base(quantity, unit, item_name)
    return from_base(base.quantity, base.base_unit, target_unit, item_name)
