"""Keyword-based food categorization.

Tables are ordered lists of ``(category, keywords)`` pairs tested in
priority order. The first category with a keyword contained in the item
name wins; anything unmatched is ``Other``.
"""

import re

OTHER = "Other"

CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    (
        "Vegetables",
        (
            "lettuce",
            "tomato",
            "potato",
            "onion",
            "kangkong",
            "pechay",
            "carrot",
            "cabbage",
            "eggplant",
            "ampalaya",
            "sitaw",
            "garlic",
            "spinach",
            "vegetable",
        ),
    ),
    ("Fruits", ("apple", "banana", "orange", "mango", "calamansi", "grape", "fruit")),
    ("Dairy", ("milk", "cheese", "yogurt", "butter", "cream", "dairy")),
    ("Grains", ("bread", "rice", "pasta", "noodle", "pandesal", "grain")),
    (
        "Meat & Fish",
        (
            "chicken",
            "beef",
            "pork",
            "fish",
            "bangus",
            "tilapia",
            "shrimp",
            "sausage",
            "longganisa",
            "meat",
        ),
    ),
]

# Waste of these items is penalized in the Green Score.
HIGH_IMPACT_KEYWORDS: tuple[str, ...] = (
    "meat",
    "beef",
    "pork",
    "chicken",
    "poultry",
    "turkey",
    "duck",
)

_NON_WORD = re.compile(r"[^a-z0-9 ]+")


def normalize_name(name: str) -> str:
    """Lowercase a name and collapse punctuation and whitespace."""
    return " ".join(_NON_WORD.sub(" ", name.lower()).split())


def categorize(
    name: str,
    table: list[tuple[str, tuple[str, ...]]] | None = None,
) -> str:
    """Return the first category whose keywords match ``name``."""
    normalized = normalize_name(name)
    for category, keywords in table if table is not None else CATEGORY_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return category
    return OTHER


def is_high_impact(name: str, keywords: tuple[str, ...] = HIGH_IMPACT_KEYWORDS) -> bool:
    """Whether an item name matches a high-impact (meat/poultry) keyword."""
    normalized = normalize_name(name)
    return any(keyword in normalized for keyword in keywords)
