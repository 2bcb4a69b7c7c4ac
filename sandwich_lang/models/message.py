"""Wire Message — what one machine sends the other each turn."""

from typing import Optional

from pydantic import BaseModel

from sandwich_lang.models.sandwich import Sandwich


class Message(BaseModel):
    text: Optional[str] = None
    sandwich: Optional[Sandwich] = None
