"""
Operation Algebra — every utterance means an edit to the sandwich.

A machine ordering a sandwich turns what it wants into an Operation,
encodes it as words, and the other machine decodes the words back into an
Operation it applies:

    Add(lettuce, top) -> "saweta ta" -> Add(lettuce, top) -> apply

Modifiers wrap or transform the operation they govern: the negation
adverb reverses it ("ne saweta ta" -> Remove(lettuce)), "always" makes it
persistent, a number repeats it, a conjunction chains two of them.

Behavioral Contract:
- apply() never mutates the given sandwich; it returns an edited copy.
  Personality side effects are limited to those each operation declares
  (stock taken by Add, meaning reinforcement by Affirm).
- apply() is total: anything it can't do is a no-op.
- skills() reports the grammar constructs an operation exercises, summed
  over nested operations.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from sandwich_lang.grammar.words import AnnotatedWord
from sandwich_lang.learning.engine import reinforce_meanings
from sandwich_lang.lexicon.dictionary import Lexicon
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import WordFunction
from sandwich_lang.models.personality import Language, Personality
from sandwich_lang.models.sandwich import Position, Relative, Sandwich


class Operation(BaseModel):
    """Base of the closed set of sandwich edits."""

    kind: str

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        return sandwich

    def reverse(self) -> "Operation":
        return self

    def respond(self, personality: Personality) -> Optional["Operation"]:
        return None

    def question(self) -> "Operation":
        return self

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        raise NotImplementedError

    def skills(self) -> Language:
        return Language()

    def is_persistent(self) -> bool:
        return False

    def changes_sandwich(self) -> bool:
        """Whether this kind of operation is meant to edit ingredients."""
        return True


class Add(Operation):
    """Add an ingredient on top, or before/after another ingredient."""

    kind: Literal["add"] = "add"
    ingredient: Ingredient
    relative: Relative = Relative()

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        ingredients = list(sandwich.ingredients)
        rel = self.relative
        if rel.position == Position.TOP:
            idx = len(ingredients)
        else:
            anchor = rel.anchor.name if rel.anchor else None
            idx = next(
                (i for i, x in enumerate(ingredients) if x.name == anchor), None
            )
            if idx is not None and rel.position == Position.AFTER:
                idx += 1
        if idx is None:
            return sandwich
        if not personality.take(self.ingredient.name):
            personality.refused.add(self.ingredient.name)
            return sandwich
        ingredients.insert(idx, self.ingredient.leaf())
        return sandwich.model_copy(update={"ingredients": ingredients})

    def reverse(self) -> Operation:
        return Remove(ingredient=self.ingredient)

    def respond(self, personality: Personality) -> Optional[Operation]:
        # "We don't have that."
        if self.ingredient.name in personality.refused:
            return Remove(ingredient=self.ingredient)
        return None

    def question(self) -> Operation:
        return CheckFor(ingredient=self.ingredient)

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        words = []
        rel = self.relative
        if rel.position != Position.TOP and rel.anchor is not None:
            prep = WordFunction.BEFORE if rel.position == Position.BEFORE else WordFunction.AFTER
            words += [
                lexicon.word_for_ingredient(rel.anchor),
                lexicon.word_for_function(prep),
            ]
        words += [
            lexicon.word_for_ingredient(self.ingredient),
            lexicon.word_for_function(WordFunction.DESIRE),
        ]
        return words

    def skills(self) -> Language:
        if self.relative.position == Position.TOP:
            return Language()
        return Language(adposition=1)


class Remove(Operation):
    """Remove the first matching ingredient."""

    kind: Literal["remove"] = "remove"
    ingredient: Ingredient

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        ingredients = list(sandwich.ingredients)
        for i, x in enumerate(ingredients):
            if x.name == self.ingredient.name:
                del ingredients[i]
                return sandwich.model_copy(update={"ingredients": ingredients})
        return sandwich

    def reverse(self) -> Operation:
        return Add(ingredient=self.ingredient)

    def question(self) -> Operation:
        return CheckFor(ingredient=self.ingredient)

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_function(WordFunction.NEGATION)] + self.reverse().encode(lexicon)

    def skills(self) -> Language:
        return Language(adverbs=1)


class RemoveAll(Operation):
    """Remove every matching ingredient."""

    kind: Literal["remove_all"] = "remove_all"
    ingredient: Ingredient

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        ingredients = [x for x in sandwich.ingredients if x.name != self.ingredient.name]
        if len(ingredients) == len(sandwich.ingredients):
            return sandwich
        return sandwich.model_copy(update={"ingredients": ingredients})

    def reverse(self) -> Operation:
        return Ensure(ingredient=self.ingredient)

    def question(self) -> Operation:
        return CheckFor(ingredient=self.ingredient)

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return (
            [lexicon.word_for_function(WordFunction.EVER)]
            + Remove(ingredient=self.ingredient).encode(lexicon)
        )

    def skills(self) -> Language:
        return Language(adverbs=2)


class Repeat(Operation):
    """Apply an operation several times in a row."""

    kind: Literal["repeat"] = "repeat"
    count: int = Field(ge=1)
    operation: "AnyOperation"

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        for _ in range(self.count):
            sandwich = self.operation.apply(sandwich, personality)
        return sandwich

    def reverse(self) -> Operation:
        return Repeat(count=self.count, operation=self.operation.reverse())

    def respond(self, personality: Personality) -> Optional[Operation]:
        return self.operation.respond(personality)

    def question(self) -> Operation:
        return self.operation.question()

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_number(self.count)] + self.operation.encode(lexicon)

    def skills(self) -> Language:
        return Language(numbers=1) + self.operation.skills()

    def is_persistent(self) -> bool:
        return self.operation.is_persistent()

    def changes_sandwich(self) -> bool:
        return self.operation.changes_sandwich()


class Compound(Operation):
    """Two operations joined by a conjunction, applied in order."""

    kind: Literal["compound"] = "compound"
    first: "AnyOperation"
    second: "AnyOperation"

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        return self.second.apply(self.first.apply(sandwich, personality), personality)

    def reverse(self) -> Operation:
        return Compound(first=self.second.reverse(), second=self.first.reverse())

    def respond(self, personality: Personality) -> Optional[Operation]:
        return self.first.respond(personality) or self.second.respond(personality)

    def question(self) -> Operation:
        return Compound(first=self.first.question(), second=self.second.question())

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return (
            self.first.encode(lexicon)
            + [lexicon.word_for_function(WordFunction.AND)]
            + self.second.encode(lexicon)
        )

    def skills(self) -> Language:
        return Language(conjunction=1) + self.first.skills() + self.second.skills()

    def is_persistent(self) -> bool:
        return self.first.is_persistent() or self.second.is_persistent()

    def changes_sandwich(self) -> bool:
        return self.first.changes_sandwich() or self.second.changes_sandwich()


class Ensure(Operation):
    """Confirm an ingredient is (or will be) available. Idempotent."""

    kind: Literal["ensure"] = "ensure"
    ingredient: Ingredient

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        if any(x.name == self.ingredient.name for x in sandwich.ensured):
            return sandwich
        ensured = list(sandwich.ensured) + [self.ingredient.leaf()]
        return sandwich.model_copy(update={"ensured": ensured})

    def reverse(self) -> Operation:
        return RemoveAll(ingredient=self.ingredient)

    def question(self) -> Operation:
        return CheckFor(ingredient=self.ingredient)

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [
            lexicon.word_for_ingredient(self.ingredient),
            lexicon.word_for_function(WordFunction.HAVE),
        ]

    def changes_sandwich(self) -> bool:
        return False


class Persist(Operation):
    """An operation that stays in force and is re-applied every turn."""

    kind: Literal["persist"] = "persist"
    operation: "AnyOperation"

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        return self.operation.apply(sandwich, personality)

    def reverse(self) -> Operation:
        return Persist(operation=self.operation.reverse())

    def respond(self, personality: Personality) -> Optional[Operation]:
        return self.operation.respond(personality)

    def question(self) -> Operation:
        return self.operation.question()

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_function(WordFunction.EVER)] + self.operation.encode(lexicon)

    def skills(self) -> Language:
        return Language(adverbs=1) + self.operation.skills()

    def is_persistent(self) -> bool:
        return True

    def changes_sandwich(self) -> bool:
        return self.operation.changes_sandwich()


class Affirm(Operation):
    """Yes: whatever you understood last turn was right."""

    kind: Literal["affirm"] = "affirm"

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        reinforce_meanings(personality, personality.last_lex)
        return sandwich

    def reverse(self) -> Operation:
        return Negate()

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_function(WordFunction.AFFIRMATION)]

    def changes_sandwich(self) -> bool:
        return False


class Negate(Operation):
    """No. Foil of Affirm."""

    kind: Literal["negate"] = "negate"

    def reverse(self) -> Operation:
        return Affirm()

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_function(WordFunction.NEGATION)]

    def changes_sandwich(self) -> bool:
        return False


class CheckFor(Operation):
    """Do you have this ingredient?"""

    kind: Literal["check_for"] = "check_for"
    ingredient: Ingredient

    def respond(self, personality: Personality) -> Optional[Operation]:
        if personality.stock(self.ingredient.name) > 0:
            return Ensure(ingredient=self.ingredient)
        return Negate()

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [
            lexicon.word_for_function(WordFunction.QUESTION),
            lexicon.word_for_ingredient(self.ingredient),
            lexicon.word_for_function(WordFunction.HAVE),
        ]

    def changes_sandwich(self) -> bool:
        return False


class Finish(Operation):
    """Goodbye: the sandwich is done."""

    kind: Literal["finish"] = "finish"

    def apply(self, sandwich: Sandwich, personality: Personality) -> Sandwich:
        return sandwich.model_copy(update={"complete": True})

    def encode(self, lexicon: Lexicon) -> List[AnnotatedWord]:
        return [lexicon.word_for_function(WordFunction.GREETING)]

    def changes_sandwich(self) -> bool:
        return False


AnyOperation = Annotated[
    Union[
        Add, Remove, RemoveAll, Repeat, Compound, Ensure,
        Persist, Affirm, Negate, CheckFor, Finish,
    ],
    Field(discriminator="kind"),
]

for _model in (Repeat, Compound, Persist):
    _model.model_rebuild()


class OperationEnvelope(BaseModel):
    """Wrapper for (de)serializing any operation by its kind."""

    operation: AnyOperation


def dump_operation(op: Operation) -> dict:
    return op.model_dump(mode="json")


def load_operation(data: dict) -> Operation:
    return OperationEnvelope.model_validate({"operation": data}).operation
