"""Ingredient Model — a node of the food taxonomy."""

from typing import List, Optional

from pydantic import BaseModel


class Ingredient(BaseModel):
    """
    Leaves are orderable sandwich components, inner nodes are categories.
    Two ingredients are the same ingredient when their names match.
    """

    name: str
    morpheme: str                           # one syllable of the path word
    children: Optional[List["Ingredient"]] = None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Ingredient):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def leaf(self) -> "Ingredient":
        """A childless copy, which is what travels inside sandwiches."""
        return Ingredient(name=self.name, morpheme=self.morpheme)

    def includes(self, other: "Ingredient") -> bool:
        """Category membership: true for the node itself and all descendants."""
        if self == other:
            return True
        return any(child.includes(other) for child in self.children or [])


Ingredient.model_rebuild()
