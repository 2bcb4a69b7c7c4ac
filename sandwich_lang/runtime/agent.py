"""
Agent Runtime — one machine, negotiating over a channel.

An agent is either ordering (customer) or making (server) a sandwich in
any one session. Each side runs as its own coroutine; a session is a
strict alternation of one message each way:

  customer: hello                     server: hello + empty sandwich
  customer: <operation>               server: [response] + sandwich
  ...
  customer: goodbye                   server: goodbye + finished sandwich

A message the listener can't parse is answered with silence (no text).
Transport errors abort the session; the outer loop moves on.
"""

import argparse
import asyncio
import json
import random
import socket
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from loguru import logger

from sandwich_lang.grammar import words as w
from sandwich_lang.grammar.parser import Grammar, ParseFailed, ParseResult
from sandwich_lang.lexicon.dictionary import Lexicon, NotFound
from sandwich_lang.models.config import AgentConfig
from sandwich_lang.models.message import Message
from sandwich_lang.models.personality import Personality
from sandwich_lang.models.sandwich import Sandwich
from sandwich_lang.models.transcript import NegotiationOutcome, TurnRecord
from sandwich_lang.negotiation.order import Order
from sandwich_lang.operations.ops import Finish, Operation, dump_operation
from sandwich_lang.persistence.store import PersonalityStore, fresh_personality
from sandwich_lang.presentation.outputs import (
    AudioSink,
    DisplaySlot,
    NullAudio,
    Render,
    phrase_duration,
)
from sandwich_lang.runtime.config import load_config
from sandwich_lang.taxonomy.tree import IngredientTree
from sandwich_lang.transcript.store import TranscriptStore
from sandwich_lang.transport.channel import Channel, MemoryChannel, StreamChannel
from sandwich_lang.transport.codec import TransportError


class Agent:
    """A personality plus everything it needs to talk."""

    def __init__(
        self,
        personality: Personality,
        lexicon: Lexicon,
        config: Optional[AgentConfig] = None,
        rng: Optional[random.Random] = None,
        name: str = "agent",
        store: Optional[PersonalityStore] = None,
        transcript: Optional[TranscriptStore] = None,
        display: Optional[DisplaySlot] = None,
        audio: Optional[AudioSink] = None,
        pitch: float = 1.0,
    ):
        self.personality = personality
        self.lexicon = lexicon
        self.config = config or AgentConfig()
        self.rng = rng or random.Random()
        self.name = name
        self.store = store
        self.transcript = transcript
        self.display = display or DisplaySlot()
        self.audio = audio or NullAudio()
        self.pitch = pitch
        self.grammar = Grammar(lexicon, self.rng, self.config.parse_retry_budget)
        self._busy = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        rng: Optional[random.Random] = None,
        name: Optional[str] = None,
    ) -> "Agent":
        """Load data files, the saved personality (or a fresh one) and the transcript."""
        rng = rng or random.Random()
        tree = IngredientTree.load(config.ingredients_path)
        lexicon = Lexicon.load(tree, config.dictionary_path)
        store = PersonalityStore(config.personality_path)
        personality = store.load_or_create(tree, rng, config.stock_per_ingredient)
        return cls(
            personality,
            lexicon,
            config=config,
            rng=rng,
            name=name or socket.gethostname(),
            store=store,
            transcript=TranscriptStore(config.transcript_db),
        )

    @property
    def tree(self) -> IngredientTree:
        return self.lexicon.ingredients

    # --- Language ---

    def understand(self, text: Optional[str]) -> Optional[ParseResult]:
        """Parse what was heard. Silence and gibberish both give None."""
        if not text:
            return None
        try:
            return self.grammar.parse(
                text, self.personality, probabilistic=self.config.vocabulary_learning
            )
        except ParseFailed as e:
            logger.warning(f"parse_failed | agent={self.name} text={text!r} error={e}")
            return None

    def gloss(self, text: Optional[str]) -> str:
        """English subtitles for a heard phrase."""
        if not text:
            return ""
        try:
            return w.subtitles(self.grammar.annotate(w.phrase(text)))
        except ValueError:
            return text

    def speak(self, op: Optional[Operation]) -> List[w.AnnotatedWord]:
        if op is None:
            return []
        try:
            return op.encode(self.lexicon)
        except NotFound as e:
            logger.warning(f"encode_failed | agent={self.name} op={op.kind} error={e}")
            return []

    async def _say(
        self,
        channel: Channel,
        op: Optional[Operation],
        sandwich: Optional[Sandwich],
        session_id: str,
        turn: int,
        speaker: str,
    ) -> None:
        words = self.speak(op)
        text = w.render(words) if words else None
        if words:
            self.audio.say(text, self.pitch, phrase_duration(words))
        if sandwich is not None:
            self.display.show(Render.of(sandwich, w.subtitles(words)))
        await channel.send(Message(text=text, sandwich=sandwich))
        logger.info(f"turn | agent={self.name} speaker={speaker} turn={turn} text={text!r}")
        self._record(session_id, turn, speaker, text, op, sandwich)

    def _record(
        self,
        session_id: str,
        turn: int,
        speaker: str,
        text: Optional[str],
        op: Optional[Operation],
        sandwich: Optional[Sandwich],
        score: Optional[float] = None,
    ) -> None:
        if self.transcript is None:
            return
        self.transcript.append(TurnRecord(
            session_id=session_id,
            turn=turn,
            speaker=speaker,
            text=text,
            operation=dump_operation(op) if op is not None else None,
            sandwich=sandwich.model_dump(mode="json") if sandwich is not None else None,
            score=score,
            recorded_at=datetime.utcnow(),
        ))

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(self.personality)

    def restock(self) -> None:
        """Fill the pantry back up to the configured stock of every ingredient."""
        amount = self.config.stock_per_ingredient
        self.personality.restock([node.name for node, _ in self.tree.leaves()], amount)
        logger.info(f"restock | agent={self.name} amount={amount}")

    async def _pace(self) -> None:
        """Conversational pause: the shy and the polite take longer, the stressed less."""
        base = self.config.pace_seconds
        if base <= 0:
            return
        p = self.personality
        scale = max(0.1, 1.0 + p.shyness + p.politeness - p.stress)
        await asyncio.sleep(self.rng.uniform(base / 2, base * 2) * scale / 2)

    # --- Sessions ---

    async def order(
        self, channel: Channel, session_id: Optional[str] = None
    ) -> NegotiationOutcome:
        """Customer side: negotiate for a sandwich until satisfied or fed up."""
        session_id = session_id or uuid4().hex
        cfg = self.config
        order = Order.for_personality(
            self.personality,
            self.tree,
            self.rng,
            min_fillings=cfg.min_fillings,
            max_fillings=cfg.max_fillings,
            max_failures=cfg.max_failures,
            max_count=max(1, self.lexicon.largest_number()),
        )
        logger.info(f"order_start | agent={self.name} session={session_id} desired={order.desired}")

        turn = 0
        await self._say(channel, Finish(), None, session_id, turn, "customer")
        reply = await channel.recv(cfg.turn_timeout_seconds)
        result = reply.sandwich or Sandwich()

        while True:
            op = None
            if turn < cfg.max_turns:
                op = order.next_op(self.personality, result)
                if op is not None and not self.speak(op):
                    op = order.retract()
            finishing = op is None
            if finishing:
                op = Finish()
            turn += 1
            await self._pace()
            await self._say(channel, op, None, session_id, turn, "customer")

            reply = await channel.recv(cfg.turn_timeout_seconds)
            if reply.sandwich is not None:
                result = reply.sandwich
            self.display.show(Render.of(result, self.gloss(reply.text)))
            if finishing:
                break
            heard = self.understand(reply.text)
            if heard is not None:
                order.hear(heard.operation, self.personality)
            self._save()

        score = order.score(result)
        self.personality.remember(result, cfg.history_limit)
        self._save()
        self._record(session_id, turn, "judge", None, None, result, score=score)
        logger.info(
            f"order_end | agent={self.name} session={session_id} turns={turn} "
            f"score={score:.3f} gave_up={order.gave_up} result={result}"
        )
        return NegotiationOutcome(
            session_id=session_id,
            desired=order.desired,
            result=result,
            score=score,
            turns=turn,
            gave_up=order.gave_up,
        )

    async def serve(self, channel: Channel, session_id: Optional[str] = None) -> Sandwich:
        """Server side: make whatever is understood until told goodbye."""
        session_id = session_id or uuid4().hex
        order = Order(rng=self.rng, max_failures=self.config.max_failures)
        sandwich = Sandwich()
        self.restock()
        greeted = False
        turn = 0
        logger.info(f"serve_start | agent={self.name} session={session_id}")

        while True:
            message = await channel.recv(self.config.turn_timeout_seconds)
            heard = self.understand(message.text)
            await self._pace()

            if heard is None:
                await self._say(channel, None, sandwich, session_id, turn, "server")
                turn += 1
                continue

            op = heard.operation
            if isinstance(op, Finish):
                if greeted:
                    sandwich = op.apply(sandwich, self.personality)
                    await self._say(channel, Finish(), sandwich, session_id, turn, "server")
                    break
                greeted = True
                await self._say(channel, Finish(), sandwich, session_id, turn, "server")
                turn += 1
                continue

            sandwich, response = order.serve(
                op, heard.skills, sandwich, self.personality, heard.lex
            )
            await self._say(channel, response, sandwich, session_id, turn, "server")
            self._save()
            turn += 1

        self._save()
        logger.info(f"serve_end | agent={self.name} session={session_id} sandwich={sandwich}")
        return sandwich

    # --- Network ---

    async def _find_peer(self) -> Optional[StreamChannel]:
        """Try one random peer from the host list."""
        me = socket.gethostname().lower()
        peers = [p for p in self.config.peers if p.lower() != me]
        if not peers:
            return None
        host = self.rng.choice(peers)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, self.config.port),
                self.config.connect_timeout_seconds,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"peer_unreachable | host={host} error={e}")
            return None
        logger.info(f"peer_connected | host={host}")
        return StreamChannel(reader, writer, self.config.frame_size)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        channel = StreamChannel(reader, writer, self.config.frame_size)
        if self._busy.locked():
            await channel.close()
            return
        async with self._busy:
            try:
                await self.serve(channel)
            except TransportError as e:
                logger.warning(f"session_aborted | agent={self.name} role=server error={e}")
            finally:
                await channel.close()

    async def run_forever(self) -> None:
        """Listen for customers; between sessions, go find a server to order from."""
        server = await asyncio.start_server(self._handle, "0.0.0.0", self.config.port)
        logger.info(f"agent_listening | agent={self.name} port={self.config.port}")
        async with server:
            while True:
                channel = await self._find_peer()
                if channel is not None:
                    async with self._busy:
                        try:
                            await self.order(channel)
                        except TransportError as e:
                            logger.warning(f"session_aborted | agent={self.name} role=customer error={e}")
                        finally:
                            await channel.close()
                await asyncio.sleep(self.rng.uniform(1.0, 5.0))


async def run_local_negotiation(
    customer: Agent,
    server: Agent,
    session_id: Optional[str] = None,
) -> NegotiationOutcome:
    """Negotiate one sandwich between two in-process agents."""
    session_id = session_id or uuid4().hex
    customer_end, server_end = MemoryChannel.pair(customer.config.frame_size)

    async def ordering() -> NegotiationOutcome:
        try:
            return await customer.order(customer_end, session_id)
        finally:
            await customer_end.close()

    outcome, served = await asyncio.gather(
        ordering(),
        server.serve(server_end, session_id),
        return_exceptions=True,
    )
    if isinstance(outcome, BaseException):
        raise outcome
    if isinstance(served, TransportError):
        logger.warning(f"session_aborted | agent={server.name} role=server error={served}")
    elif isinstance(served, BaseException):
        raise served
    return outcome


def local_pair(
    config: AgentConfig,
    seed: Optional[int] = None,
    transcript: Optional[TranscriptStore] = None,
) -> List[Agent]:
    """Two fresh agents sharing data files and a transcript."""
    rng = random.Random(seed)
    tree = IngredientTree.load(config.ingredients_path)
    lexicon = Lexicon.load(tree, config.dictionary_path)
    transcript = transcript or TranscriptStore(config.transcript_db)
    return [
        Agent(
            fresh_personality(tree, rng, config.stock_per_ingredient),
            lexicon,
            config=config,
            rng=random.Random(rng.random()),
            name=name,
            transcript=transcript,
        )
        for name in ("customer", "server")
    ]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Machines negotiating sandwiches in their own language")
    p.add_argument("--config", type=str, help="Path to a YAML AgentConfig")
    p.add_argument("--local", type=int, default=0, help="Run this many in-process negotiations and exit")
    p.add_argument("--seed", type=int, help="Seed for in-process negotiations")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    if args.local:
        customer, server = local_pair(config, args.seed)
        for _ in range(args.local):
            outcome = asyncio.run(run_local_negotiation(customer, server))
            print(json.dumps(outcome.model_dump(mode="json"), indent=2))
        return
    agent = Agent.from_config(config)
    asyncio.run(agent.run_forever())


if __name__ == "__main__":
    main()
