"""Transcript Model — one recorded negotiation turn."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from sandwich_lang.models.sandwich import Sandwich


class TurnRecord(BaseModel):
    session_id: str
    turn: int
    speaker: str                            # "customer" | "server"
    text: Optional[str] = None
    operation: Optional[dict] = None
    sandwich: Optional[dict] = None
    score: Optional[float] = None
    recorded_at: datetime


class NegotiationOutcome(BaseModel):
    """How one negotiation ended, from the customer's side."""

    session_id: str
    desired: Sandwich
    result: Sandwich
    score: float
    turns: int
    gave_up: bool = False
