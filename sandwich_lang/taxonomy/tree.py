"""
Ingredient Taxonomy — the fixed tree of everything that can go on a sandwich.

An ingredient's word is the concatenation of morphemes along its path from
the root, so words and ingredients map onto each other both ways.

Behavioral Contract:
- A taxonomy without a "base" category of (bottom, top) bread pairs is
  malformed and refused at load time.
- Reading a word never fails: unknown syllables leave the walk at the
  nearest ancestor.
"""

import random
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import yaml
from pydantic import ValidationError

from sandwich_lang.grammar.words import Word
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.sandwich import BG_COLORS, Sandwich

DEFAULT_PATH = Path(__file__).resolve().parent.parent / "data" / "ingredients.yml"
BASE = "base"


class TaxonomyError(Exception):
    """Raised when the ingredient taxonomy can't be used."""
    pass


class IngredientTree:
    """Read-only view over the loaded taxonomy."""

    def __init__(self, root: Ingredient):
        self.root = root
        self._bases = self._find_bases()

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "IngredientTree":
        """Load the taxonomy YAML. Any problem is fatal."""
        path = Path(path) if path else DEFAULT_PATH
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
            root = Ingredient.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise TaxonomyError(f"Failed to load ingredients from {path}: {e}") from e
        return cls(root)

    def _find_bases(self) -> List[Tuple[Ingredient, Ingredient]]:
        base = next(
            (c for c in self.root.children or [] if c.name == BASE), None
        )
        if base is None or not base.children:
            raise TaxonomyError("Taxonomy has no 'base' category")
        pairs = []
        for bread in base.children:
            if not bread.children or len(bread.children) < 2:
                raise TaxonomyError(
                    f"Base '{bread.name}' must list a bottom and a top"
                )
            bottom, top = bread.children[0], bread.children[1]
            pairs.append((bottom.leaf(), top.leaf()))
        return pairs

    # --- Queries ---

    def walk(self) -> Iterator[Tuple[Ingredient, str]]:
        """Every node with its word, depth first."""
        stack = [(self.root, self.root.morpheme)]
        while stack:
            node, word = stack.pop()
            yield node, word
            for child in reversed(node.children or []):
                stack.append((child, word + child.morpheme))

    def leaves(self) -> List[Tuple[Ingredient, str]]:
        """All orderable ingredients (breads included) with their words."""
        return [(node.leaf(), word) for node, word in self.walk() if node.is_leaf]

    def fillings(self) -> List[Ingredient]:
        """Leaves outside the base category."""
        return [
            node for node, _ in self.leaves()
            if not self.is_base(node)
        ]

    def find(self, name: str) -> Optional[Ingredient]:
        for node, _ in self.walk():
            if node.name == name:
                return node.leaf() if node.is_leaf else node
        return None

    def is_base(self, ingredient: Ingredient) -> bool:
        return any(ingredient in pair for pair in self._bases)

    def includes(self, category: Ingredient, ingredient: Ingredient) -> bool:
        """Whether ingredient falls under category (looked up by name)."""
        node = next((n for n, _ in self.walk() if n.name == category.name), None)
        return node is not None and node.includes(ingredient)

    # --- Sampling ---

    def random_filling(self, rng: random.Random) -> Ingredient:
        """A uniformly random filling (never a bread)."""
        fillings = self.fillings()
        if not fillings:
            raise TaxonomyError("Taxonomy has no fillings")
        return rng.choice(fillings)

    def random_base(self, rng: random.Random) -> Tuple[Ingredient, Ingredient]:
        """A random (bottom, top) bread pair."""
        return rng.choice(self._bases)

    def random_sandwich(
        self,
        rng: random.Random,
        fillings: int,
        exclude: Sequence[Ingredient] = (),
        include: Sequence[Ingredient] = (),
    ) -> Sandwich:
        """
        Bottom bread, then `fillings` random fillings, then top bread.
        A repeated filling survives half the time; ingredients in `exclude`
        never appear and ingredients in `include` are always used.
        """
        bottom, top = self.random_base(rng)

        def excluded(i: Ingredient) -> bool:
            return any(e.includes(i) for e in exclude)

        pool = [i for i in self.fillings() if not excluded(i)]
        chosen: List[Ingredient] = [
            i.leaf() for i in include if i.is_leaf and not excluded(i)
        ][:fillings]
        attempts = fillings * 20
        while pool and len(chosen) < fillings and attempts > 0:
            attempts -= 1
            candidate = rng.choice(pool)
            if candidate in chosen and not rng.random() < 0.5:
                continue
            chosen.append(candidate)
        rng.shuffle(chosen)
        return Sandwich(
            ingredients=[bottom] + chosen + [top],
            background_color=rng.choice(BG_COLORS),
        )

    # --- Words ---

    def word_for(self, ingredient: Ingredient) -> Optional[str]:
        """Morphemes along the path to the ingredient, or None if absent."""
        return self._word_for(self.root, ingredient.name, "")

    def _word_for(self, node: Ingredient, name: str, so_far: str) -> Optional[str]:
        so_far = so_far + node.morpheme
        if node.name == name:
            return so_far
        for child in node.children or []:
            found = self._word_for(child, name, so_far)
            if found is not None:
                return found
        return None

    def ingredient_for(self, word: Word) -> Ingredient:
        """
        Walk the tree syllable by syllable. The first syllable belongs to
        the root; a syllable no child claims leaves the walk where it is.
        """
        current = self.root
        for syl in word.syllables[1:]:
            text = str(syl)
            for child in current.children or []:
                if child.morpheme == text:
                    current = child
                    break
        return current.leaf() if current.is_leaf else current
