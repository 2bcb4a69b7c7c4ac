"""Sandwich language data models."""

from sandwich_lang.models.config import AgentConfig
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import (
    DictionaryEntry,
    LexedWord,
    Meaning,
    WordFunction,
    WordRole,
)
from sandwich_lang.models.message import Message
from sandwich_lang.models.personality import Language, Personality, Preference
from sandwich_lang.models.sandwich import Position, Relative, Sandwich
from sandwich_lang.models.transcript import NegotiationOutcome, TurnRecord

__all__ = [
    "AgentConfig",
    "DictionaryEntry",
    "Ingredient",
    "Language",
    "LexedWord",
    "Meaning",
    "Message",
    "NegotiationOutcome",
    "Personality",
    "Position",
    "Preference",
    "Relative",
    "Sandwich",
    "TurnRecord",
    "WordFunction",
    "WordRole",
]
