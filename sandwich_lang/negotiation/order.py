"""
Order — one side's state for one sandwich negotiation.

The customer holds a desired sandwich and, each turn, looks at the sandwich
it got back and picks the next operation to ask for:

  1. Done if the result already has everything desired.
  2. Find the next desired ingredient (one past the last one present),
     passing over allergens it is currently trying to avoid.
  3. Forgetful machines sometimes skip one ahead.
  4. Something extra on the sandwich? Ask for it to be removed.
  5. Something earlier missing? Ask for it in the right place.
  6. An allergen on the sandwich? Ask for it to be removed.
  7. Under stress, an impulse for a favorite may change the order.
  8. Otherwise ask for the next ingredient (or ask whether they have it,
     or ask for several at once).

The server holds standing (persistent) operations and applies whatever it
understood, sometimes spitefully backwards.

Whether an operation worked is judged by imagining its effect on the last
sandwich seen and comparing with what actually came back.
"""

import random
from collections import Counter
from difflib import SequenceMatcher
from typing import List, Optional, Tuple

from loguru import logger

from sandwich_lang.learning.engine import apply_upgrade, decay_skills, roll
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import LexedWord
from sandwich_lang.models.personality import Language, Personality, Preference
from sandwich_lang.models.sandwich import Relative, Sandwich
from sandwich_lang.operations.ops import (
    Add,
    Affirm,
    CheckFor,
    Compound,
    Ensure,
    Finish,
    Negate,
    Operation,
    Persist,
    Remove,
    RemoveAll,
    Repeat,
)
from sandwich_lang.taxonomy.tree import IngredientTree

STRESS_ON_FAILURE = 0.1
STRESS_ON_SUCCESS = -0.05


class Order:
    """Per-negotiation state. Created at greeting, dropped at goodbye."""

    def __init__(
        self,
        desired: Optional[Sandwich] = None,
        rng: Optional[random.Random] = None,
        max_failures: int = 6,
        max_count: int = 5,
    ):
        self.desired = desired or Sandwich()
        self.rng = rng or random.Random()
        self.max_failures = max_failures
        self.max_count = max_count

        self.history: List[Operation] = []
        self.last_result: Optional[Sandwich] = None
        self.persistent_ops: List[Operation] = []
        self.failures = 0                   # consecutive unsuccessful operations
        self.pending_question: Optional[Ingredient] = None

    @classmethod
    def for_personality(
        cls,
        personality: Personality,
        tree: IngredientTree,
        rng: random.Random,
        min_fillings: int = 1,
        max_fillings: int = 5,
        **kwargs,
    ) -> "Order":
        """Dream up a sandwich to order: lazier machines want less."""
        span = max(0, max_fillings - min_fillings)
        fillings = min_fillings + round((1.0 - personality.laziness) * span)
        planned = [
            f.ingredient for f in personality.favorites
            if roll(rng, personality.planned * f.severity)
        ]
        desired = tree.random_sandwich(
            rng,
            fillings,
            exclude=[a.ingredient for a in personality.allergies],
            include=planned,
        )
        return cls(desired=desired, rng=rng, **kwargs)

    @property
    def gave_up(self) -> bool:
        return self.failures >= self.max_failures

    # --- Customer side ---

    def pick_op(self, personality: Personality, result: Sandwich) -> Optional[Operation]:
        """The next operation to ask for, or None when nothing is missing."""
        desired = self.desired.ingredients
        if not desired or not _missing(self.desired, result):
            return None

        rng = self.rng
        stress = personality.stress

        def shy() -> bool:
            return roll(rng, personality.shyness * (1.0 - stress))

        avoiding = [a for a in personality.allergies if roll(rng, a.severity)]

        def suppressed(x: Ingredient) -> bool:
            return any(a.ingredient.includes(x) for a in avoiding)

        present = _present(desired, result)

        next_idx = 0
        for i in range(len(desired) - 1, -1, -1):
            if present[i] and not suppressed(desired[i]):
                next_idx = i + 1
                break
        while next_idx < len(desired) and suppressed(desired[next_idx]):
            next_idx += 1

        if roll(rng, personality.forgetfulness) and next_idx + 1 < len(desired):
            logger.debug(f"order_forgot | skipped={desired[next_idx].name}")
            next_idx += 1

        # Something on the sandwich we never asked for.
        extra = _first_extra(self.desired, result)
        if extra is not None and not shy():
            op = Remove(ingredient=extra)
            if roll(rng, personality.language.adverbs):
                return Persist(operation=op)
            return op

        # Something we wanted earlier that never made it on.
        mistake = next(
            (i for i in range(min(next_idx, len(desired)))
             if not present[i] and not suppressed(desired[i])),
            None,
        )
        if mistake is not None and not shy():
            missing = desired[mistake]
            if roll(rng, personality.language.adposition):
                return Add(ingredient=missing, relative=self._placement(mistake, present))
            if not roll(rng, personality.order_sensitivity):
                return Add(ingredient=missing)

        # Allergens.
        for allergy in personality.allergies:
            allergen = next(
                (x for x in result.ingredients if allergy.ingredient.includes(x)), None
            )
            if allergen is None:
                continue
            if (
                roll(rng, allergy.severity)
                and not shy()
                and roll(rng, personality.language.adverbs)
            ):
                return Remove(ingredient=allergen)

        # Impulse: stressed machines crave a favorite.
        if personality.favorites and roll(rng, personality.spontaneity * stress):
            if not any(f.ingredient.includes(x) for f in personality.favorites for x in desired):
                next_idx = self._crave(personality.favorites, next_idx)
                desired = self.desired.ingredients
                present = _present(desired, result)

        if next_idx >= len(desired) or present[next_idx]:
            next_idx = next(
                (i for i in range(len(desired)) if not present[i] and not suppressed(desired[i])),
                None,
            )
            if next_idx is None:
                return None

        wanted = desired[next_idx]
        confirmed = any(x.name == wanted.name for x in self.desired.ensured + result.ensured)
        already_asked = bool(self.history) and self.history[-1] == CheckFor(ingredient=wanted)
        if not confirmed and not already_asked and shy():
            self.pending_question = wanted
            return CheckFor(ingredient=wanted)

        run = 1
        while (
            next_idx + run < len(desired)
            and desired[next_idx + run] == wanted
            and not present[next_idx + run]
        ):
            run += 1
        add = Add(ingredient=wanted)
        if run > 1 and roll(rng, personality.language.numbers):
            return Repeat(count=min(run, self.max_count), operation=add)
        return add

    def _placement(self, idx: int, present: List[bool]) -> Relative:
        """Position a missing ingredient next to the nearest one already there."""
        desired = self.desired.ingredients
        before = [i for i in range(idx) if present[i]]
        if before:
            return Relative.after(desired[before[-1]])
        after = [i for i in range(idx + 1, len(desired)) if present[i]]
        if after:
            return Relative.before(desired[after[0]])
        return Relative.top()

    def _crave(self, favorites: List[Preference], next_idx: int) -> int:
        favorite = self.rng.choices(
            favorites, weights=[f.severity + 1e-6 for f in favorites]
        )[0]
        if not favorite.ingredient.is_leaf:
            return next_idx
        ingredients = list(self.desired.ingredients)
        spot = self.rng.randint(1, len(ingredients) - 1) if len(ingredients) > 1 else len(ingredients)
        ingredients.insert(spot, favorite.ingredient.leaf())
        self.desired = self.desired.model_copy(update={"ingredients": ingredients})
        logger.info(f"order_impulse | craving={favorite.ingredient.name} at={spot}")
        return next_idx + 1 if spot <= next_idx else next_idx

    def archive(self, op: Operation, result: Sandwich) -> None:
        """Remember what was asked and what the sandwich looked like then."""
        self.history.append(op)
        self.last_result = result

    def retract(self) -> Operation:
        """Take back the last archived operation. An Affirm stands in for it."""
        self.history[-1] = Affirm()
        return self.history[-1]

    def imagine(self, op: Operation, sandwich: Sandwich) -> Sandwich:
        """What the operation would do with every ingredient in stock."""
        return op.apply(sandwich, Personality(unlimited_stock=True))

    def last_op_successful(self, result: Sandwich) -> bool:
        """The sandwich changed, and exactly the way the last operation meant."""
        if not self.history or self.last_result is None:
            return False
        before = self.last_result.names()
        expected = self.imagine(self.history[-1], self.last_result).names()
        actual = result.names()
        return actual != before and actual == expected

    def last_question_failed(self, result: Sandwich) -> bool:
        """A question that shouldn't change anything changed the sandwich anyway."""
        if not self.history or self.last_result is None:
            return False
        last = self.history[-1]
        if isinstance(last, (Affirm, Finish)):
            return False
        before = self.last_result.names()
        imagined = self.imagine(last, self.last_result).names()
        return imagined == before and result.names() != before

    def next_op(self, personality: Personality, result: Sandwich) -> Optional[Operation]:
        """
        One customer turn: learn from how the last operation went, then pick
        and archive the next one. None means finished (or given up).
        """
        used: List[str] = []
        polite = False
        if self.history and self.last_result is not None:
            last = self.history[-1]
            if self.last_question_failed(result):
                logger.debug(f"order_question_failed | op={last.kind}")
                self.archive(Affirm(), result)
                return self.history[-1]
            if self.last_op_successful(result):
                skills = last.skills()
                apply_upgrade(personality, skills)
                used = skills.used()
                self.failures = 0
                _adjust_stress(personality, STRESS_ON_SUCCESS)
                polite = roll(self.rng, personality.politeness)
            elif last.changes_sandwich():
                self.failures += 1
                _adjust_stress(personality, STRESS_ON_FAILURE)
        decay_skills(personality, used)

        if self.gave_up:
            logger.info(f"order_gave_up | failures={self.failures}")
            return None
        if polite:
            self.archive(Affirm(), result)
            return self.history[-1]

        op = self.pick_op(personality, result)
        if op is not None:
            self.archive(op, result)
        return op

    def hear(self, op: Operation, personality: Personality) -> None:
        """React to what the server said back."""
        if isinstance(op, (Persist, Repeat)):
            self.hear(op.operation, personality)
        elif isinstance(op, Compound):
            self.hear(op.first, personality)
            self.hear(op.second, personality)
        elif isinstance(op, (Remove, RemoveAll)):
            # They don't have it: stop wanting it.
            logger.info(f"order_unavailable | ingredient={op.ingredient.name}")
            self.desired = RemoveAll(ingredient=op.ingredient).apply(self.desired, personality)
            self.pending_question = None
        elif isinstance(op, Ensure):
            self.desired = op.apply(self.desired, personality)
            self.pending_question = None
        elif isinstance(op, Negate) and self.pending_question is not None:
            logger.info(f"order_unavailable | ingredient={self.pending_question.name}")
            self.desired = RemoveAll(ingredient=self.pending_question).apply(self.desired, personality)
            self.pending_question = None

    def score(self, result: Sandwich) -> float:
        """How close the result came to what was wanted, in [0, 1]."""
        return SequenceMatcher(None, self.desired.names(), result.names()).ratio()

    # --- Server side ---

    def serve(
        self,
        op: Operation,
        skills: Language,
        sandwich: Sandwich,
        personality: Personality,
        lex: Optional[List[LexedWord]] = None,
    ) -> Tuple[Sandwich, Optional[Operation]]:
        """Apply what was heard. Returns the new sandwich and an optional reply."""
        personality.refused.clear()
        for standing in self.persistent_ops:
            sandwich = standing.apply(sandwich, personality)

        if roll(self.rng, personality.spite * personality.stress):
            logger.info(f"order_spite | reversed={op.kind}")
            op = op.reverse()
            personality.spite = 0.0

        sandwich = op.apply(sandwich, personality)
        apply_upgrade(personality, skills)
        decay_skills(personality, skills.used())
        personality.last_lex = list(lex or [])

        self._countermand(op)
        if op.is_persistent():
            self.persistent_ops.append(op)
        self.archive(op, sandwich)
        return sandwich, op.respond(personality)

    def _countermand(self, op: Operation) -> None:
        """A new instruction cancels standing ones it contradicts."""
        inner = _unwrap(op)
        self.persistent_ops = [
            standing for standing in self.persistent_ops
            if _unwrap(standing).reverse() != inner
        ]


def _unwrap(op: Operation) -> Operation:
    return op.operation if isinstance(op, Persist) else op


def _present(desired: List[Ingredient], result: Sandwich) -> List[bool]:
    """For each desired slot, whether the result holds a matching ingredient."""
    available = result.counts()
    flags = []
    for x in desired:
        if available[x.name] > 0:
            available[x.name] -= 1
            flags.append(True)
        else:
            flags.append(False)
    return flags


def _missing(desired: Sandwich, result: Sandwich) -> Counter:
    return desired.counts() - result.counts()


def _first_extra(desired: Sandwich, result: Sandwich) -> Optional[Ingredient]:
    extra = result.counts() - desired.counts()
    return next((x for x in result.ingredients if extra[x.name] > 0), None)


def _adjust_stress(personality: Personality, delta: float) -> None:
    personality.stress = min(1.0, max(0.0, personality.stress + delta))
