"""
Lexicon — surface words to dictionary entries, and back.

Built once from the static word list plus one synthesized Noun entry per
leaf ingredient, then shared read-only by every component that needs it.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from sandwich_lang.grammar import words as w
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import DictionaryEntry, WordFunction, WordRole
from sandwich_lang.taxonomy.tree import IngredientTree, TaxonomyError

DEFAULT_PATH = Path(__file__).resolve().parent.parent / "data" / "dictionary.yml"

NUMBER_VALUES = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}


class NotFound(LookupError):
    """A word, entry or ingredient the lexicon doesn't know."""
    pass


class Lexicon:
    """
    Word list lookups. When several words share a function the
    lexicographically-first one is used, so encoding is reproducible.
    """

    def __init__(self, words: Dict[str, DictionaryEntry], ingredients: IngredientTree):
        self.ingredients = ingredients
        self._words: Dict[str, DictionaryEntry] = dict(words)
        for ingredient, word in ingredients.leaves():
            self._words[word] = DictionaryEntry(
                function=WordFunction.INGREDIENT,
                role=WordRole.NOUN,
                definition=ingredient.name,
            )

    @classmethod
    def load(
        cls,
        ingredients: IngredientTree,
        path: Optional[Union[str, Path]] = None,
    ) -> "Lexicon":
        path = Path(path) if path else DEFAULT_PATH
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            words = {
                str(word): DictionaryEntry.model_validate(entry)
                for word, entry in data.items()
            }
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise TaxonomyError(f"Failed to load dictionary from {path}: {e}") from e
        return cls(words, ingredients)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return word in self._words

    def lookup(self, word: str) -> Optional[DictionaryEntry]:
        return self._words.get(word)

    def entries(self) -> List[Tuple[str, DictionaryEntry]]:
        return sorted(self._words.items())

    def unique_entries(self) -> List[DictionaryEntry]:
        """Every distinct entry once, in word order."""
        seen = []
        for _, entry in self.entries():
            if entry not in seen:
                seen.append(entry)
        return seen

    def entry_for_function(self, function: WordFunction) -> Tuple[str, DictionaryEntry]:
        for word, entry in self.entries():
            if entry.function == function:
                return word, entry
        raise NotFound(f"No word with function {function.value}")

    # --- Encoding helpers ---

    def annotated(self, text: str) -> w.AnnotatedWord:
        entry = self.lookup(text)
        return w.AnnotatedWord(
            word=w.word(text),
            role=entry.role if entry else None,
            entry=entry,
        )

    def word_for_function(self, function: WordFunction) -> w.AnnotatedWord:
        text, _ = self.entry_for_function(function)
        return self.annotated(text)

    def word_for_ingredient(self, ingredient: Ingredient) -> w.AnnotatedWord:
        text = self.ingredients.word_for(ingredient)
        if text is None:
            raise NotFound(f"No word for ingredient {ingredient.name}")
        return w.AnnotatedWord(
            word=w.word(text),
            role=WordRole.NOUN,
            entry=DictionaryEntry(
                function=WordFunction.INGREDIENT,
                role=WordRole.NOUN,
                definition=ingredient.name,
            ),
        )

    def word_for_number(self, n: int) -> w.AnnotatedWord:
        for text, entry in self.entries():
            if entry.function == WordFunction.NUMBER and number_value(entry) == n:
                return self.annotated(text)
        raise NotFound(f"No word for the number {n}")

    def largest_number(self) -> int:
        values = [
            number_value(entry) for _, entry in self.entries()
            if entry.function == WordFunction.NUMBER
        ]
        return max((v for v in values if v), default=0)


def number_value(entry: DictionaryEntry) -> Optional[int]:
    """Numeric value of a Number entry's gloss ("two" or "2")."""
    gloss = entry.definition.strip().lower()
    if gloss.isdigit():
        return int(gloss)
    return NUMBER_VALUES.get(gloss)
