"""
Presentation — what an agent shows and says while it negotiates.

The display gets a Render snapshot of the current sandwich and subtitles;
only the latest snapshot matters. The audio side turns each syllable of a
phrase into a pair of tones: one for the consonant, one for the vowel.
"""

from typing import List, Optional, Protocol, Tuple

from loguru import logger
from pydantic import BaseModel

from sandwich_lang.grammar.words import CONSONANTS, VOWELS, AnnotatedWord, syllable_pairs
from sandwich_lang.models.sandwich import BG_COLORS, Sandwich

CONSONANT_BASE_HZ = 1200.0
CONSONANT_STEP_HZ = 130.0
VOWEL_BASE_HZ = 690.0
VOWEL_STEP_HZ = 80.0
SYLLABLE_SECONDS = 0.25


class Render(BaseModel):
    ingredients: List[str] = []
    subtitles: str = ""
    background: str = BG_COLORS[0]

    @classmethod
    def of(cls, sandwich: Sandwich, subtitles: str = "") -> "Render":
        return cls(
            ingredients=sandwich.names(),
            subtitles=subtitles,
            background=sandwich.background_color,
        )


class DisplaySlot:
    """Single-slot display buffer: a new frame overwrites an unread one."""

    def __init__(self):
        self._latest: Optional[Render] = None

    def show(self, render: Render) -> None:
        self._latest = render

    def take(self) -> Optional[Render]:
        render, self._latest = self._latest, None
        return render

    @property
    def latest(self) -> Optional[Render]:
        return self._latest


class AudioSink(Protocol):
    def say(self, phrase: str, pitch: float, duration: float) -> None: ...


class NullAudio:
    """Audio output that only logs."""

    def say(self, phrase: str, pitch: float, duration: float) -> None:
        logger.debug(f"audio_say | phrase={phrase!r} pitch={pitch:.2f} duration={duration:.2f}")


def syllable_tones(consonant: str, vowel: str, pitch: float = 1.0) -> Tuple[float, float]:
    """(consonant Hz, vowel Hz) for one syllable."""
    return (
        (CONSONANT_BASE_HZ + CONSONANT_STEP_HZ * CONSONANTS.index(consonant)) * pitch,
        (VOWEL_BASE_HZ + VOWEL_STEP_HZ * VOWELS.index(vowel)) * pitch,
    )


def phrase_tones(
    words: List[AnnotatedWord], pitch: float = 1.0
) -> List[Tuple[float, float, float]]:
    """(consonant Hz, vowel Hz, seconds) for every syllable of a phrase."""
    return [
        syllable_tones(c, v, pitch) + (SYLLABLE_SECONDS,)
        for c, v in syllable_pairs(words)
    ]


def phrase_duration(words: List[AnnotatedWord]) -> float:
    return SYLLABLE_SECONDS * len(syllable_pairs(words))
