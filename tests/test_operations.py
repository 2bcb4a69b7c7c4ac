"""Tests for the operation algebra."""

from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import DictionaryEntry, LexedWord, Meaning, WordFunction, WordRole
from sandwich_lang.models.personality import Language, Personality
from sandwich_lang.models.sandwich import Relative, Sandwich
from sandwich_lang.operations.ops import (
    Add,
    Affirm,
    CheckFor,
    Compound,
    Ensure,
    Finish,
    Negate,
    Persist,
    Remove,
    RemoveAll,
    Repeat,
    dump_operation,
    load_operation,
)

BOTTOM = Ingredient(name="white-bread-bottom", morpheme="li")
TOP = Ingredient(name="white-bread-top", morpheme="lu")
CHEESE = Ingredient(name="cheddar", morpheme="pe")
LETTUCE = Ingredient(name="lettuce", morpheme="ta")


def _plenty() -> Personality:
    return Personality(unlimited_stock=True)


class TestAdd:
    def test_add_takes_from_stock(self):
        personality = Personality(inventory={"cheddar": 1})
        start = Sandwich(ingredients=[BOTTOM])

        once = Add(ingredient=CHEESE).apply(start, personality)
        assert once.names() == ["white-bread-bottom", "cheddar"]
        assert personality.inventory["cheddar"] == 0

        twice = Add(ingredient=CHEESE).apply(once, personality)
        assert twice.names() == once.names()
        assert "cheddar" in personality.refused
        assert Add(ingredient=CHEESE).respond(personality) == Remove(ingredient=CHEESE)

    def test_apply_does_not_mutate(self):
        start = Sandwich(ingredients=[BOTTOM])
        Add(ingredient=CHEESE).apply(start, _plenty())
        assert start.names() == ["white-bread-bottom"]

    def test_add_is_not_idempotent(self):
        sandwich = Sandwich(ingredients=[BOTTOM])
        op = Add(ingredient=CHEESE)
        sandwich = op.apply(op.apply(sandwich, _plenty()), _plenty())
        assert sandwich.counts()["cheddar"] == 2

    def test_positional(self):
        sandwich = Sandwich(ingredients=[BOTTOM, TOP])
        before = Add(ingredient=CHEESE, relative=Relative.before(TOP)).apply(sandwich, _plenty())
        after = Add(ingredient=CHEESE, relative=Relative.after(TOP)).apply(sandwich, _plenty())
        assert before.names() == ["white-bread-bottom", "cheddar", "white-bread-top"]
        assert after.names() == ["white-bread-bottom", "white-bread-top", "cheddar"]
        assert Add(ingredient=CHEESE, relative=Relative.after(TOP)).skills().adposition == 1

    def test_missing_anchor_is_noop(self):
        sandwich = Sandwich(ingredients=[BOTTOM])
        personality = Personality(inventory={"cheddar": 1})
        op = Add(ingredient=CHEESE, relative=Relative.after(LETTUCE))
        assert op.apply(sandwich, personality) == sandwich
        assert personality.inventory["cheddar"] == 1


class TestRemoval:
    def test_remove_absent_is_noop(self):
        sandwich = Sandwich(ingredients=[BOTTOM, TOP])
        assert Remove(ingredient=CHEESE).apply(sandwich, _plenty()) == sandwich

    def test_remove_first_match_only(self):
        sandwich = Sandwich(ingredients=[BOTTOM, CHEESE, CHEESE])
        assert Remove(ingredient=CHEESE).apply(sandwich, _plenty()).counts()["cheddar"] == 1

    def test_remove_all(self):
        sandwich = Sandwich(ingredients=[BOTTOM, CHEESE, LETTUCE, CHEESE])
        result = RemoveAll(ingredient=CHEESE).apply(sandwich, _plenty())
        assert result.names() == ["white-bread-bottom", "lettuce"]


class TestReverse:
    def test_reverse_involution(self):
        sandwich = Sandwich(ingredients=[BOTTOM, CHEESE])
        for op in [
            Add(ingredient=LETTUCE),
            Remove(ingredient=CHEESE),
            Persist(operation=Add(ingredient=LETTUCE)),
            Persist(operation=Remove(ingredient=CHEESE)),
        ]:
            twice = op.reverse().reverse()
            assert twice.apply(sandwich, _plenty()) == op.apply(sandwich, _plenty())

    def test_affirm_negate_are_foils(self):
        assert Affirm().reverse() == Negate()
        assert Negate().reverse() == Affirm()

    def test_compound_reverses_in_reverse_order(self):
        op = Compound(first=Add(ingredient=CHEESE), second=Add(ingredient=LETTUCE))
        assert op.reverse() == Compound(
            first=Remove(ingredient=LETTUCE), second=Remove(ingredient=CHEESE)
        )


class TestComposites:
    def test_repeat(self):
        result = Repeat(count=3, operation=Add(ingredient=CHEESE)).apply(Sandwich(), _plenty())
        assert result.counts()["cheddar"] == 3

    def test_compound_applies_in_order(self):
        op = Compound(first=Add(ingredient=CHEESE), second=Add(ingredient=LETTUCE))
        assert op.apply(Sandwich(), _plenty()).names() == ["cheddar", "lettuce"]
        assert op.skills() == Language(conjunction=1)

    def test_skills_sum_over_nesting(self):
        op = Repeat(count=2, operation=Persist(operation=Remove(ingredient=CHEESE)))
        assert op.skills() == Language(numbers=1, adverbs=2)
        assert op.is_persistent()

    def test_wire_form_survives_nesting(self):
        op = Compound(
            first=Repeat(count=2, operation=Add(ingredient=CHEESE, relative=Relative.after(BOTTOM))),
            second=Persist(operation=Remove(ingredient=LETTUCE)),
        )
        assert load_operation(dump_operation(op)) == op


class TestNonEditing:
    def test_ensure_is_idempotent(self):
        once = Ensure(ingredient=CHEESE).apply(Sandwich(), _plenty())
        twice = Ensure(ingredient=CHEESE).apply(once, _plenty())
        assert [i.name for i in twice.ensured] == ["cheddar"]
        assert twice.ingredients == []

    def test_check_for_responds_with_stock(self):
        assert CheckFor(ingredient=CHEESE).respond(Personality(inventory={"cheddar": 2})) == Ensure(ingredient=CHEESE)
        assert CheckFor(ingredient=CHEESE).respond(Personality()) == Negate()

    def test_finish_completes(self):
        assert Finish().apply(Sandwich(), _plenty()).complete

    def test_affirm_reinforces_last_reading(self):
        entry = DictionaryEntry(function=WordFunction.DESIRE, role=WordRole.VERB, definition="want")
        other = DictionaryEntry(function=WordFunction.HAVE, role=WordRole.VERB, definition="have")
        personality = Personality(
            meaning_cloud={"ta": [Meaning(entry=entry), Meaning(entry=other)]},
        )
        personality.last_lex = [LexedWord(word="ta", entry=entry)]
        Affirm().apply(Sandwich(), personality)
        weights = {m.entry.definition: m.weight for m in personality.meaning_cloud["ta"]}
        assert weights == {"want": 2.0, "have": 1.0}
