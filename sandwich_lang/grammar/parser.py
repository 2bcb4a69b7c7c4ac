"""
Micro-Grammar — recursive descent from words to an Operation.

    Sentence     -> Greeting | Affirmation | Negation
                  | Question Conjoined | Conjoined
    Conjoined    -> Numbered [And Conjoined]
    Numbered     -> [Number] Adverbial
    Adverbial    -> Adverb Adverbial | Positional
    Positional   -> [Ingredient Preposition] Core
    Core         -> Ingredient Verb

Every rule returns the operation it built plus the grammar skills it
exercised. Conjunctions, numbers, adverbs and adpositions are each only
understood with probability equal to the listener's skill weight; a missed
construct is consumed without effect (a missed conjunction keeps just the
second conjunct). The same phrase can therefore mean different things on
different hearings.

Annotation is either a straight dictionary lookup, or a draw from the
listener's meaning cloud. Draws are repeated until some reading parses or
the retry budget runs out.
"""

import random
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

from sandwich_lang.grammar import words as w
from sandwich_lang.learning.engine import roll, sample_meaning
from sandwich_lang.lexicon.dictionary import Lexicon, NotFound, number_value
from sandwich_lang.models.ingredient import Ingredient
from sandwich_lang.models.lexicon import LexedWord, WordFunction, WordRole
from sandwich_lang.models.personality import Language, Personality
from sandwich_lang.models.sandwich import Relative
from sandwich_lang.operations.ops import (
    Add,
    Affirm,
    AnyOperation,
    Compound,
    Ensure,
    Finish,
    Negate,
    Operation,
    Persist,
    Repeat,
)

DEFAULT_RETRY_BUDGET = 30

# (operation, skills exercised, index of the next unread word)
Parsed = Tuple[Operation, Language, int]


class ParseFailed(Exception):
    """No reading of the phrase matched the grammar."""
    pass


class Unsupported(Exception):
    """A verb whose function has no operation."""
    pass


class ParseResult(BaseModel):
    operation: AnyOperation
    skills: Language
    lex: List[LexedWord]
    attempts: int = 1


class Grammar:
    """Parser bound to one lexicon and one source of randomness."""

    def __init__(
        self,
        lexicon: Lexicon,
        rng: Optional[random.Random] = None,
        retry_budget: int = DEFAULT_RETRY_BUDGET,
    ):
        self.lexicon = lexicon
        self.rng = rng or random.Random()
        self.retry_budget = retry_budget

    # --- Annotation ---

    def annotate(self, phrase: List[w.Word]) -> List[w.AnnotatedWord]:
        """Dictionary lookup. Unknown words that look like ingredients get a Noun guess."""
        root = self.lexicon.ingredients.root.morpheme
        tagged = []
        for word in phrase:
            text = str(word)
            entry = self.lexicon.lookup(text)
            role = entry.role if entry else None
            if entry is None and len(word.syllables) > 1 and text.startswith(root):
                role = WordRole.NOUN
            tagged.append(w.AnnotatedWord(word=word, role=role, entry=entry))
        return tagged

    def prob_annotate(
        self, phrase: List[w.Word], personality: Personality
    ) -> List[w.AnnotatedWord]:
        """Draw each word's sense from the listener's meaning cloud."""
        entries = self.lexicon.unique_entries()
        tagged = []
        for word in phrase:
            entry = sample_meaning(personality, str(word), entries, self.rng)
            tagged.append(w.AnnotatedWord(word=word, role=entry.role, entry=entry))
        return tagged

    # --- Entry points ---

    def parse(
        self,
        text: str,
        personality: Personality,
        probabilistic: bool = False,
    ) -> ParseResult:
        """
        Parse a phrase into an operation.

        Raises:
            ParseFailed: if the phrase isn't made of syllables, or no
                reading parsed within the retry budget.
        """
        try:
            phrase = w.phrase(text)
        except ValueError as e:
            raise ParseFailed(str(e)) from e

        budget = self.retry_budget if probabilistic else 1
        for attempt in range(1, budget + 1):
            if probabilistic:
                tagged = self.prob_annotate(phrase, personality)
            else:
                tagged = self.annotate(phrase)
            try:
                parsed = self.sentence(tagged, personality)
            except (NotFound, Unsupported) as e:
                logger.debug(f"parse_attempt_failed | text={text!r} attempt={attempt} error={e}")
                parsed = None
            if parsed is not None:
                op, skills = parsed
                lex = [LexedWord(word=str(t), entry=t.entry) for t in tagged]
                return ParseResult(operation=op, skills=skills, lex=lex, attempts=attempt)

        raise ParseFailed(f"No parse for {text!r} after {budget} attempt(s)")

    def sentence(
        self, tagged: List[w.AnnotatedWord], personality: Personality
    ) -> Optional[Tuple[Operation, Language]]:
        if not tagged:
            return None
        head = tagged[0].function
        if len(tagged) == 1:
            if head == WordFunction.GREETING:
                return Finish(), Language()
            if head == WordFunction.AFFIRMATION:
                return Affirm(), Language()
            if head == WordFunction.NEGATION:
                return Negate(), Language()

        if head == WordFunction.QUESTION:
            parsed = self.conjoined(tagged, 1, personality)
            if parsed is None or parsed[2] != len(tagged):
                return None
            op, skills, _ = parsed
            return op.question(), skills

        parsed = self.conjoined(tagged, 0, personality)
        if parsed is None or parsed[2] != len(tagged):
            return None
        return parsed[0], parsed[1]

    # --- Rules ---

    def conjoined(
        self, tagged: List[w.AnnotatedWord], i: int, personality: Personality
    ) -> Optional[Parsed]:
        first = self.numbered(tagged, i, personality)
        if first is None:
            return None
        op, skills, j = first
        if not _is(tagged, j, WordFunction.AND):
            return first

        rest = self.conjoined(tagged, j + 1, personality)
        if rest is None:
            return first
        rest_op, rest_skills, k = rest
        if roll(self.rng, personality.language.conjunction):
            return (
                Compound(first=op, second=rest_op),
                skills + rest_skills + Language(conjunction=1),
                k,
            )
        # Heard the "and", but only the last clause stuck.
        return rest_op, rest_skills, k

    def numbered(
        self, tagged: List[w.AnnotatedWord], i: int, personality: Personality
    ) -> Optional[Parsed]:
        if not _is(tagged, i, WordFunction.NUMBER):
            return self.adverbial(tagged, i, personality)
        count = number_value(tagged[i].entry)
        if not count:
            return None
        inner = self.adverbial(tagged, i + 1, personality)
        if inner is None:
            return None
        op, skills, j = inner
        if roll(self.rng, personality.language.numbers):
            return Repeat(count=count, operation=op), skills + Language(numbers=1), j
        return inner

    def adverbial(
        self, tagged: List[w.AnnotatedWord], i: int, personality: Personality
    ) -> Optional[Parsed]:
        if not _is(tagged, i, WordFunction.EVER, WordFunction.NEGATION):
            return self.positional(tagged, i, personality)
        adverb = tagged[i].function
        inner = self.adverbial(tagged, i + 1, personality)
        if inner is None:
            return None
        op, skills, j = inner
        if not roll(self.rng, personality.language.adverbs):
            return inner
        skills = skills + Language(adverbs=1)
        if adverb == WordFunction.EVER:
            return Persist(operation=op), skills, j
        return op.reverse(), skills, j

    def positional(
        self, tagged: List[w.AnnotatedWord], i: int, personality: Personality
    ) -> Optional[Parsed]:
        if not (_is_noun(tagged, i) and _is(tagged, i + 1, WordFunction.BEFORE, WordFunction.AFTER)):
            return self.core(tagged, i, Relative.top())

        core = self.core(tagged, i + 2, Relative.top())
        if core is None:
            return None
        op, skills, j = core
        if not isinstance(op, Add) or not roll(self.rng, personality.language.adposition):
            return core
        anchor = self.ingredient(tagged[i])
        if tagged[i + 1].function == WordFunction.BEFORE:
            relative = Relative.before(anchor)
        else:
            relative = Relative.after(anchor)
        return (
            Add(ingredient=op.ingredient, relative=relative),
            skills + Language(adposition=1),
            j,
        )

    def core(
        self, tagged: List[w.AnnotatedWord], i: int, relative: Relative
    ) -> Optional[Parsed]:
        if not (_is_noun(tagged, i) and i + 1 < len(tagged) and tagged[i + 1].role == WordRole.VERB):
            return None
        ingredient = self.ingredient(tagged[i])
        verb = tagged[i + 1].function
        if verb == WordFunction.DESIRE:
            return Add(ingredient=ingredient, relative=relative), Language(), i + 2
        if verb == WordFunction.HAVE:
            return Ensure(ingredient=ingredient), Language(), i + 2
        raise Unsupported(f"No operation for verb {tagged[i + 1]} ({verb})")

    def ingredient(self, noun: w.AnnotatedWord) -> Ingredient:
        """The ingredient a noun refers to, by its gloss or else by its morphemes."""
        tree = self.lexicon.ingredients
        entry = noun.entry
        if entry is not None:
            if entry.function != WordFunction.INGREDIENT:
                raise NotFound(f"{noun} is not an ingredient")
            found = tree.find(entry.definition)
            if found is not None:
                return found
        found = tree.ingredient_for(noun.word)
        if found == tree.root:
            raise NotFound(f"No ingredient for {noun}")
        return found


def _is(tagged: List[w.AnnotatedWord], i: int, *functions: WordFunction) -> bool:
    return i < len(tagged) and tagged[i].function in functions


def _is_noun(tagged: List[w.AnnotatedWord], i: int) -> bool:
    return i < len(tagged) and tagged[i].role == WordRole.NOUN
