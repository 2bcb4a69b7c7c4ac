"""Lexicon Model — dictionary entries and what a word was taken to mean."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class WordFunction(str, Enum):
    """Grammatical category of a word."""
    GREETING = "Greeting"
    AFFIRMATION = "Affirmation"
    NEGATION = "Negation"
    DESIRE = "Desire"
    HAVE = "Have"
    BEFORE = "Before"
    AFTER = "After"
    AND = "And"
    EVER = "Ever"
    NUMBER = "Number"
    QUESTION = "Question"
    # Lexical function: carries meaning beyond grammar.
    INGREDIENT = "Ingredient"


class WordRole(str, Enum):
    """Syntactic category, analogous to part of speech."""
    SPECIAL = "Special"                     # greetings, affirmations
    VERB = "Verb"
    NOUN = "Noun"                           # ingredients
    PREPOSITION = "Preposition"             # *after* x
    ADVERB = "Adverb"                       # never, not
    ADJECTIVE = "Adjective"                 # numbers
    NOUN_CONJUNCTION = "NounConjunction"    # x *and* y


class DictionaryEntry(BaseModel):
    """One sense of a surface word."""

    model_config = {"frozen": True}

    function: WordFunction
    role: WordRole
    definition: str                         # English gloss, or ingredient name


class Meaning(BaseModel):
    """A weighted candidate sense inside a meaning cloud."""

    entry: DictionaryEntry
    weight: float = Field(gt=0, default=1.0)


class LexedWord(BaseModel):
    """The sense a word was read with during one parse."""

    word: str
    entry: Optional[DictionaryEntry] = None
