"""Tests for syllables, words and phrases."""

import pytest

from sandwich_lang.grammar import words as w


class TestSyllables:
    def test_cv_and_vc(self):
        assert str(w.syllable("ta")) == "ta"
        assert str(w.syllable("ip")) == "ip"
        assert w.syllable("ip").consonant == "p"
        assert w.syllable("ip").vowel == "i"

    def test_rejects_non_syllables(self):
        for bad in ["tt", "aa", "t", "xa", "tab"]:
            with pytest.raises(ValueError):
                w.syllable(bad)


class TestWords:
    def test_word_splits_into_syllables(self):
        word = w.word("saweta")
        assert [str(s) for s in word.syllables] == ["sa", "we", "ta"]
        assert str(word) == "saweta"

    def test_odd_length_rejected(self):
        with pytest.raises(ValueError):
            w.word("sawet")

    def test_phrase_tolerates_trailing_newline(self):
        assert [str(x) for x in w.phrase("saweta ta\n")] == ["saweta", "ta"]

    def test_empty_phrase_rejected(self):
        with pytest.raises(ValueError):
            w.phrase("")

    def test_syllable_pairs_are_consonant_then_vowel(self, lexicon):
        words = [lexicon.annotated("ip"), lexicon.annotated("ta")]
        assert w.syllable_pairs(words) == [("p", "i"), ("t", "a")]

    def test_render_and_subtitles(self, lexicon):
        words = [lexicon.annotated("lo"), lexicon.annotated("tutu")]
        assert w.render(words) == "lo tutu"
        assert w.subtitles(words) == "hello ?"
