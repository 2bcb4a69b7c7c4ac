"""
Sandwich Language API — FastAPI endpoints.

Exposes the language machinery for inspection and simulation:
- Lexicon and ingredient word lookups
- Parsing phrases and encoding operations
- The agent's current personality
- Running in-process negotiations and reading their transcripts
"""

import random
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from sandwich_lang.grammar import words as w
from sandwich_lang.grammar.parser import Grammar, ParseFailed
from sandwich_lang.lexicon.dictionary import Lexicon, NotFound
from sandwich_lang.models.config import AgentConfig
from sandwich_lang.models.personality import Personality
from sandwich_lang.operations.ops import AnyOperation
from sandwich_lang.persistence.store import fresh_personality
from sandwich_lang.runtime.agent import local_pair, run_local_negotiation
from sandwich_lang.taxonomy.tree import IngredientTree
from sandwich_lang.transcript.store import TranscriptStore


# --- Request Models ---

class ParseRequest(BaseModel):
    text: str
    probabilistic: bool = False


class EncodeRequest(BaseModel):
    operation: AnyOperation


class NegotiationRequest(BaseModel):
    seed: Optional[int] = None


# --- Application Factory ---

def create_app(
    lexicon: Optional[Lexicon] = None,
    personality: Optional[Personality] = None,
    config: Optional[AgentConfig] = None,
    transcript_store: Optional[TranscriptStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Sandwich Language API",
        description="Machines negotiating sandwiches in an evolving language",
        version="0.1.0",
    )

    cfg = config or AgentConfig()
    rng = rng or random.Random()
    lx = lexicon or Lexicon.load(
        IngredientTree.load(cfg.ingredients_path), cfg.dictionary_path
    )
    pers = personality or fresh_personality(lx.ingredients, rng, cfg.stock_per_ingredient)
    ts = transcript_store or TranscriptStore(cfg.transcript_db)
    grammar = Grammar(lx, rng, cfg.parse_retry_budget)

    app.state.config = cfg
    app.state.lexicon = lx
    app.state.personality = pers
    app.state.transcript_store = ts
    app.state.grammar = grammar

    # === LEXICON ===

    @app.get("/lexicon/{word}")
    def lookup_word(word: str):
        """Dictionary entry for a word."""
        entry = lx.lookup(word)
        if entry is None:
            raise HTTPException(404, "Word not found")
        return {"word": word, "entry": entry.model_dump(mode="json")}

    @app.get("/ingredients/{name}/word")
    def ingredient_word(name: str):
        """The morpheme-path word for an ingredient or category."""
        ingredient = lx.ingredients.find(name)
        if ingredient is None:
            raise HTTPException(404, "Ingredient not found")
        return {"ingredient": ingredient.name, "word": lx.ingredients.word_for(ingredient)}

    # === LANGUAGE ===

    @app.post("/parse")
    def parse_phrase(req: ParseRequest):
        """What the agent understands a phrase to mean."""
        try:
            result = grammar.parse(req.text, pers, probabilistic=req.probabilistic)
        except ParseFailed as e:
            raise HTTPException(422, str(e))
        return result.model_dump(mode="json")

    @app.post("/encode")
    def encode_operation(req: EncodeRequest):
        """How the agent would say an operation."""
        try:
            words = req.operation.encode(lx)
        except NotFound as e:
            raise HTTPException(404, str(e))
        return {"text": w.render(words), "subtitles": w.subtitles(words)}

    # === AGENT ===

    @app.get("/personality")
    def get_personality():
        return pers.model_dump(mode="json")

    # === NEGOTIATIONS ===

    @app.post("/negotiations")
    async def run_negotiation(req: NegotiationRequest):
        """Two fresh agents negotiate one sandwich in-process."""
        customer, server = local_pair(cfg, req.seed, transcript=ts)
        outcome = await run_local_negotiation(customer, server)
        return {
            "outcome": outcome.model_dump(mode="json"),
            "turns": [
                r.model_dump(mode="json") for r in ts.get_session(outcome.session_id)
            ],
        }

    @app.get("/transcripts")
    def recent_turns(limit: int = 50):
        return [r.model_dump(mode="json") for r in ts.query_recent(limit)]

    @app.get("/transcripts/{session_id}")
    def get_transcript(session_id: str):
        turns = ts.get_session(session_id)
        if not turns:
            raise HTTPException(404, "Session not found")
        return [r.model_dump(mode="json") for r in turns]

    return app
