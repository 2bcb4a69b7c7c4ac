"""Shared fixtures: the bundled taxonomy and lexicon."""

import pytest

from sandwich_lang.lexicon.dictionary import Lexicon
from sandwich_lang.taxonomy.tree import IngredientTree


@pytest.fixture(scope="session")
def tree() -> IngredientTree:
    return IngredientTree.load()


@pytest.fixture(scope="session")
def lexicon(tree) -> Lexicon:
    return Lexicon.load(tree)
