"""Sandwich Model — the shared state every operation edits."""

from collections import Counter
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from sandwich_lang.models.ingredient import Ingredient

BG_COLORS = ["#00000000"]


class Position(str, Enum):
    TOP = "top"
    BEFORE = "before"
    AFTER = "after"


class Relative(BaseModel):
    """Where an added ingredient goes: on top, or next to an anchor."""

    position: Position = Position.TOP
    anchor: Optional[Ingredient] = None

    @classmethod
    def top(cls) -> "Relative":
        return cls()

    @classmethod
    def before(cls, anchor: Ingredient) -> "Relative":
        return cls(position=Position.BEFORE, anchor=anchor.leaf())

    @classmethod
    def after(cls, anchor: Ingredient) -> "Relative":
        return cls(position=Position.AFTER, anchor=anchor.leaf())


class Sandwich(BaseModel):
    """
    Ordered ingredients (bottom first). Treated as a value: operations
    return edited copies instead of mutating.
    """

    ingredients: List[Ingredient] = []
    ensured: List[Ingredient] = []          # set semantics, unique by name
    complete: bool = False
    background_color: str = BG_COLORS[0]

    def names(self) -> List[str]:
        return [i.name for i in self.ingredients]

    def counts(self) -> Counter:
        return Counter(self.names())

    def contains(self, ingredient: Ingredient) -> bool:
        return any(i.name == ingredient.name for i in self.ingredients)

    def __str__(self) -> str:
        return "[" + ", ".join(self.names()) + "]"
