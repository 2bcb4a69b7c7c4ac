"""Personality Model — one agent's dispositions, skills and memory."""

from typing import Dict, List, Set

from pydantic import BaseModel, Field

from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import LexedWord, Meaning
from sandwich_lang.models.sandwich import Sandwich

SKILLS = ("adposition", "conjunction", "numbers", "adverbs")


class Language(BaseModel):
    """
    Grammar skills. As personality state each field is the probability a
    construct is understood/produced; as a parse report each field counts
    how often the construct was exercised.
    """

    adposition: float = 0.0
    conjunction: float = 0.0
    numbers: float = 0.0
    adverbs: float = 0.0

    def __add__(self, other: "Language") -> "Language":
        return Language(**{
            skill: getattr(self, skill) + getattr(other, skill)
            for skill in SKILLS
        })

    def used(self) -> List[str]:
        return [skill for skill in SKILLS if getattr(self, skill) > 0]


class Preference(BaseModel):
    """An allergy or a favorite, with how strongly it's felt."""

    ingredient: Ingredient
    severity: float = Field(ge=0.0, le=1.0, default=0.5)


class Personality(BaseModel):
    """
    Created once per agent, persisted between runs, mutated every turn.
    Fields marked exclude=True are per-turn caches and never persisted.
    """

    laziness: float = Field(ge=0.0, le=1.0, default=0.5)
    forgetfulness: float = Field(ge=0.0, le=1.0, default=0.1)
    politeness: float = Field(ge=0.0, le=1.0, default=0.5)
    shyness: float = Field(ge=0.0, le=1.0, default=0.1)
    spite: float = Field(ge=0.0, le=1.0, default=0.1)
    planned: float = Field(ge=0.0, le=1.0, default=0.5)
    spontaneity: float = Field(ge=0.0, le=1.0, default=0.2)
    order_sensitivity: float = Field(ge=0.0, le=1.0, default=0.5)
    stress: float = Field(ge=0.0, le=1.0, default=0.2)

    allergies: List[Preference] = []
    favorites: List[Preference] = []

    language: Language = Language(
        adposition=0.1, conjunction=0.1, numbers=0.1, adverbs=0.1
    )
    idle_turns: Dict[str, int] = {}

    inventory: Dict[str, int] = {}
    history: List[Sandwich] = []            # sandwiches eaten, newest last
    meaning_cloud: Dict[str, List[Meaning]] = {}

    last_lex: List[LexedWord] = Field(default=[], exclude=True)
    refused: Set[str] = Field(default=set(), exclude=True)
    unlimited_stock: bool = Field(default=False, exclude=True)

    def stock(self, name: str) -> float:
        if self.unlimited_stock:
            return float("inf")
        return self.inventory.get(name, 0)

    def take(self, name: str) -> bool:
        """Use one unit of an ingredient. False when there is none left."""
        if self.unlimited_stock:
            return True
        if self.inventory.get(name, 0) <= 0:
            return False
        self.inventory[name] -= 1
        return True

    def restock(self, names: List[str], amount: int) -> None:
        self.inventory = {name: amount for name in names}

    def remember(self, sandwich: Sandwich, limit: int = 10) -> None:
        self.history = (self.history + [sandwich])[-limit:]
