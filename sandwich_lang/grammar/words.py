"""
Words of the machine language.

A word is a run of two-letter syllables, each one consonant and one vowel
in either order. A phrase is words separated by single spaces.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel

from sandwich_lang.models.lexicon import DictionaryEntry, WordFunction, WordRole

CONSONANTS = "ptkhmnwls"
VOWELS = "aioue"


class Syllable(BaseModel):
    model_config = {"frozen": True}

    first: str
    second: str

    def __str__(self) -> str:
        return self.first + self.second

    @property
    def consonant(self) -> str:
        return self.first if self.first in CONSONANTS else self.second

    @property
    def vowel(self) -> str:
        return self.first if self.first in VOWELS else self.second


class Word(BaseModel):
    model_config = {"frozen": True}

    syllables: Tuple[Syllable, ...]

    def __str__(self) -> str:
        return "".join(str(s) for s in self.syllables)


class AnnotatedWord(BaseModel):
    """A word after lexical lookup; role/entry are None when unknown."""

    word: Word
    role: Optional[WordRole] = None
    entry: Optional[DictionaryEntry] = None

    @property
    def function(self) -> Optional[WordFunction]:
        return self.entry.function if self.entry else None

    def __str__(self) -> str:
        return str(self.word)


def syllable(pair: str) -> Syllable:
    """Read one CV or VC syllable."""
    if len(pair) != 2:
        raise ValueError(f"Syllable must be two letters, got {pair!r}")
    a, b = pair
    if (a in CONSONANTS and b in VOWELS) or (a in VOWELS and b in CONSONANTS):
        return Syllable(first=a, second=b)
    raise ValueError(f"Not a CV or VC syllable: {pair!r}")


def word(text: str) -> Word:
    """Split a token into syllables. Raises ValueError if it can't be."""
    if not text or len(text) % 2:
        raise ValueError(f"Not decomposable into syllables: {text!r}")
    return Word(syllables=tuple(syllable(text[i:i + 2]) for i in range(0, len(text), 2)))


def phrase(text: str) -> List[Word]:
    """Tokenize a phrase. A single trailing newline is tolerated."""
    if text.endswith("\n"):
        text = text[:-1]
    if not text:
        raise ValueError("Empty phrase")
    return [word(token) for token in text.split(" ")]


def render(words: List[AnnotatedWord]) -> str:
    return " ".join(str(w) for w in words)


def subtitles(words: List[AnnotatedWord]) -> str:
    """English glosses of the words, for display."""
    return " ".join(w.entry.definition if w.entry else "?" for w in words)


def syllable_pairs(words: List[AnnotatedWord]) -> List[Tuple[str, str]]:
    """(consonant, vowel) letters of every syllable, for tone synthesis."""
    return [
        (s.consonant, s.vowel)
        for w in words
        for s in w.word.syllables
    ]
