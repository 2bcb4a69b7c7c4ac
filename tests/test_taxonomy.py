"""Tests for the ingredient taxonomy and lexicon."""

import random

import pytest

from sandwich_lang.grammar.words import word
from sandwich_lang.lexicon.dictionary import Lexicon, NotFound
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import WordFunction, WordRole
from sandwich_lang.taxonomy.tree import IngredientTree, TaxonomyError


def _tiny_tree() -> IngredientTree:
    return IngredientTree(Ingredient.model_validate({
        "name": "ingredient",
        "morpheme": "sa",
        "children": [
            {"name": "base", "morpheme": "po", "children": [
                {"name": "bread", "morpheme": "ke", "children": [
                    {"name": "bread-bottom", "morpheme": "li"},
                    {"name": "bread-top", "morpheme": "lu"},
                ]},
            ]},
            {"name": "cheese", "morpheme": "wa"},
        ],
    }))


class TestIngredientTree:
    def test_every_leaf_word_reads_back(self, tree):
        for leaf, _ in tree.leaves():
            assert tree.ingredient_for(word(tree.word_for(leaf))) == leaf

    def test_word_is_morpheme_path(self, tree):
        assert tree.word_for(tree.find("lettuce")) == "saweta"
        assert tree.word_for(Ingredient(name="nothing", morpheme="xx")) is None

    def test_unknown_syllable_stops_at_ancestor(self, tree):
        assert tree.ingredient_for(word("sawekeke")).name == "vegetable"

    def test_random_picks(self, tree):
        rng = random.Random(2)
        bottom, top = tree.random_base(rng)
        assert bottom.name.endswith("bottom") and top.name.endswith("top")
        filling = tree.random_filling(rng)
        assert filling.is_leaf and not tree.is_base(filling)

    def test_missing_base_is_fatal(self):
        with pytest.raises(TaxonomyError):
            IngredientTree(Ingredient(name="ingredient", morpheme="sa", children=[
                Ingredient(name="cheese", morpheme="wa"),
            ]))

    def test_load_failure_is_fatal(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(TaxonomyError):
            IngredientTree.load(path)

    def test_one_filling_sandwich(self):
        t = _tiny_tree()
        rng = random.Random(3)
        for _ in range(20):
            sandwich = t.random_sandwich(rng, 1)
            assert sandwich.names() == ["bread-bottom", "cheese", "bread-top"]

    def test_random_sandwich_shape(self, tree):
        rng = random.Random(11)
        for _ in range(20):
            sandwich = tree.random_sandwich(rng, 4)
            bottom, top = sandwich.ingredients[0], sandwich.ingredients[-1]
            assert bottom.name.endswith("bottom")
            assert top.name.endswith("top")
            assert len(sandwich.ingredients) == 6
            assert not any(tree.is_base(i) for i in sandwich.ingredients[1:-1])

    def test_exclude_whole_category(self, tree):
        rng = random.Random(5)
        meat = tree.find("meat")
        for _ in range(20):
            sandwich = tree.random_sandwich(rng, 5, exclude=[meat])
            assert not any(meat.includes(i) for i in sandwich.ingredients)

    def test_include_always_used(self, tree):
        rng = random.Random(8)
        hummus = tree.find("hummus")
        for _ in range(10):
            assert tree.random_sandwich(rng, 2, include=[hummus]).contains(hummus)


class TestLexicon:
    def test_ingredient_nouns_are_generated(self, lexicon):
        entry = lexicon.lookup("saweta")
        assert entry.function == WordFunction.INGREDIENT
        assert entry.role == WordRole.NOUN
        assert entry.definition == "lettuce"

    def test_first_word_in_class_is_stable(self, lexicon):
        word, entry = lexicon.entry_for_function(WordFunction.NUMBER)
        assert word == "ko"
        assert entry.definition == "four"

    def test_number_words(self, lexicon):
        assert str(lexicon.word_for_number(2)) == "no"
        assert lexicon.largest_number() == 5
        with pytest.raises(NotFound):
            lexicon.word_for_number(9)

    def test_missing_function_raises(self, tree):
        empty = Lexicon({}, tree)
        with pytest.raises(NotFound):
            empty.word_for_function(WordFunction.GREETING)

    def test_unknown_ingredient_raises(self, lexicon):
        with pytest.raises(NotFound):
            lexicon.word_for_ingredient(Ingredient(name="anchovy", morpheme="an"))

    def test_unique_entries_cover_every_word(self, lexicon):
        assert len(lexicon.unique_entries()) == len(lexicon)
