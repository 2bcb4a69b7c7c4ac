"""
Learning — how an agent gets better at its own language.

Two loops run side by side:

Skill learning (grammar):
- A construct that was used successfully grows its skill weight with
  diminishing returns: skill += ln(skill * 100) / 100 * delta, capped at 1.
- Constructs left unused decay logarithmically with the turns they sat idle.

Vocabulary learning (meaning clouds):
- Every heard word owns a weighted distribution over dictionary entries,
  uniform at first.
- An affirmation multiplies the weight of the sense each word of the
  previous utterance was read with.
"""

import math
import random
from typing import Iterable, List

from sandwich_lang.models.lexicon import DictionaryEntry, LexedWord, Meaning
from sandwich_lang.models.personality import SKILLS, Language, Personality

SKILL_FLOOR = 0.05                          # ln(skill * 100) is undefined at 0
DECAY_DIVISOR = 1000.0
REINFORCEMENT_RATE = 1.0
MAX_WEIGHT = 1e6


# --- Skill learning ---

def upgrade(skill: float, delta: float) -> float:
    """One diminishing-returns step for a single skill weight."""
    base = max(skill, SKILL_FLOOR)
    return min(1.0, base + math.log(base * 100) / 100 * delta)


def apply_upgrade(personality: Personality, delta: Language) -> Language:
    """Reinforce every skill the delta reports as used."""
    language = personality.language
    for skill in delta.used():
        setattr(language, skill, upgrade(getattr(language, skill), getattr(delta, skill)))
        personality.idle_turns[skill] = 0
    return language


def decay_skills(personality: Personality, used: Iterable[str] = ()) -> Language:
    """Passive forgetting for skills not exercised this turn."""
    used = set(used)
    language = personality.language
    for skill in SKILLS:
        if skill in used:
            continue
        idle = personality.idle_turns.get(skill, 0) + 1
        personality.idle_turns[skill] = idle
        value = getattr(language, skill) - math.log1p(idle) / DECAY_DIVISOR
        setattr(language, skill, max(0.0, value))
    return language


def roll(rng: random.Random, probability: float) -> bool:
    """One Bernoulli trial."""
    return rng.random() < probability


# --- Vocabulary learning ---

def candidates(
    personality: Personality, word: str, entries: List[DictionaryEntry]
) -> List[Meaning]:
    """The word's meaning cloud, seeded uniformly on first hearing."""
    cloud = personality.meaning_cloud.get(word)
    if cloud is None:
        cloud = [Meaning(entry=entry) for entry in entries]
        personality.meaning_cloud[word] = cloud
    return cloud


def sample_meaning(
    personality: Personality,
    word: str,
    entries: List[DictionaryEntry],
    rng: random.Random,
) -> DictionaryEntry:
    cloud = candidates(personality, word, entries)
    return rng.choices(cloud, weights=[m.weight for m in cloud])[0].entry


def reinforce_meanings(
    personality: Personality,
    lex: List[LexedWord],
    rate: float = REINFORCEMENT_RATE,
) -> int:
    """
    Strengthen the sense each word was read with. Returns how many
    meanings were reinforced.
    """
    reinforced = 0
    for lexed in lex:
        if lexed.entry is None:
            continue
        for meaning in personality.meaning_cloud.get(lexed.word, []):
            if meaning.entry == lexed.entry:
                meaning.weight = min(MAX_WEIGHT, meaning.weight * (1 + rate))
                reinforced += 1
    return reinforced
