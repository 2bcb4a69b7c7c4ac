"""
Personality Store — one agent's personality, kept in a YAML file.

Loaded at startup and saved after every turn. A missing or unreadable
file isn't an error: the agent starts over with a fresh personality.
"""

import random
import threading
from pathlib import Path
from typing import Optional, Union

import yaml
from loguru import logger
from pydantic import ValidationError

from sandwich_lang.models.personality import Personality, Preference
from sandwich_lang.taxonomy.tree import IngredientTree

DISPOSITIONS = (
    "laziness", "forgetfulness", "politeness", "shyness", "spite",
    "planned", "spontaneity", "order_sensitivity",
)


def fresh_personality(
    tree: IngredientTree,
    rng: random.Random,
    stock: int = 10,
) -> Personality:
    """A newborn agent: random dispositions, a few likes and dislikes, full pantry."""
    personality = Personality(**{d: round(rng.random(), 3) for d in DISPOSITIONS})
    fillings = tree.fillings()
    picks = rng.sample(fillings, min(len(fillings), 3))
    if picks:
        personality.favorites = [
            Preference(ingredient=picks[0], severity=round(rng.random(), 3))
        ]
    if len(picks) > 1 and rng.random() < 0.5:
        personality.allergies = [
            Preference(ingredient=picks[1], severity=round(rng.random(), 3))
        ]
    personality.restock([node.name for node, _ in tree.leaves()], stock)
    return personality


class PersonalityStore:
    """YAML-backed personality persistence, safe to share between tasks."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Optional[Personality]:
        """The saved personality, or None when there isn't a usable one."""
        with self._lock:
            if not self.path.exists():
                return None
            try:
                with open(self.path) as f:
                    data = yaml.safe_load(f) or {}
                return Personality.model_validate(data)
            except (OSError, yaml.YAMLError, ValidationError) as e:
                logger.warning(f"personality_load_failed | path={self.path} error={e}")
                return None

    def load_or_create(
        self,
        tree: IngredientTree,
        rng: random.Random,
        stock: int = 10,
    ) -> Personality:
        personality = self.load()
        if personality is None:
            logger.warning(f"personality_fresh | path={self.path}")
            personality = fresh_personality(tree, rng, stock)
        return personality

    def save(self, personality: Personality) -> None:
        data = personality.model_dump(mode="json", exclude_none=True)
        with self._lock:
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w") as f:
                yaml.safe_dump(data, f, sort_keys=False)
            tmp.replace(self.path)
