"""Tests for skill and vocabulary learning."""

import random

from sandwich_lang.learning.engine import (
    apply_upgrade,
    candidates,
    decay_skills,
    reinforce_meanings,
    roll,
    upgrade,
)
from sandwich_lang.models.lexicon import DictionaryEntry, LexedWord, WordFunction, WordRole
from sandwich_lang.models.personality import Language, Personality

WANT = DictionaryEntry(function=WordFunction.DESIRE, role=WordRole.VERB, definition="want")
HAVE = DictionaryEntry(function=WordFunction.HAVE, role=WordRole.VERB, definition="have")


class TestSkillLearning:
    def test_success_strictly_increases_until_capped(self):
        skill = 0.3
        for _ in range(200):
            nxt = upgrade(skill, 1.0)
            assert nxt > skill or nxt == 1.0
            assert nxt <= 1.0
            skill = nxt
        assert skill == 1.0

    def test_zero_skill_can_still_be_learned(self):
        assert upgrade(0.0, 1.0) > 0.0

    def test_apply_upgrade_touches_only_used_skills(self):
        personality = Personality(language=Language(adposition=0.3, adverbs=0.3))
        personality.idle_turns = {"adposition": 4, "adverbs": 4}
        apply_upgrade(personality, Language(adposition=1))
        assert personality.language.adposition > 0.3
        assert personality.language.adverbs == 0.3
        assert personality.idle_turns["adposition"] == 0
        assert personality.idle_turns["adverbs"] == 4

    def test_unused_skills_decay(self):
        personality = Personality(language=Language(adposition=0.5, conjunction=0.5, numbers=0.5, adverbs=0.5))
        decay_skills(personality, used=["numbers"])
        assert personality.language.numbers == 0.5
        assert personality.language.adposition < 0.5
        assert personality.idle_turns["adposition"] == 1

    def test_decay_grows_with_idleness_and_floors_at_zero(self):
        personality = Personality(language=Language(adverbs=0.01))
        first = 0.01 - decay_skills(personality).adverbs
        second = decay_skills(personality).adverbs
        assert first > 0
        for _ in range(50):
            decay_skills(personality)
        assert personality.language.adverbs == 0.0
        assert second < 0.01

    def test_roll_extremes(self):
        rng = random.Random(0)
        assert not any(roll(rng, 0.0) for _ in range(100))
        assert all(roll(rng, 1.0) for _ in range(100))


class TestVocabularyLearning:
    def test_cloud_is_seeded_once(self):
        personality = Personality()
        cloud = candidates(personality, "ta", [WANT, HAVE])
        cloud[0].weight = 5.0
        assert candidates(personality, "ta", [WANT, HAVE, WANT])[0].weight == 5.0

    def test_reinforce_only_the_sense_used(self):
        personality = Personality()
        candidates(personality, "ta", [WANT, HAVE])
        count = reinforce_meanings(personality, [
            LexedWord(word="ta", entry=WANT),
            LexedWord(word="ki", entry=None),
        ])
        assert count == 1
        assert [m.weight for m in personality.meaning_cloud["ta"]] == [2.0, 1.0]
