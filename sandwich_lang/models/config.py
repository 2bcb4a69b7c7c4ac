"""Agent configuration."""

from typing import List, Optional

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Tunables for one agent process."""

    parse_retry_budget: int = Field(ge=1, default=30)
    frame_size: int = 4096
    port: int = 34222
    peers: List[str] = []
    connect_timeout_seconds: float = 0.3
    turn_timeout_seconds: float = 30.0
    max_turns: int = 40
    max_failures: int = 6
    pace_seconds: float = 0.0               # base conversational delay
    min_fillings: int = 1
    max_fillings: int = 5
    stock_per_ingredient: int = 10
    history_limit: int = 10
    vocabulary_learning: bool = False       # sample meanings instead of lookup
    dictionary_path: Optional[str] = None
    ingredients_path: Optional[str] = None
    personality_path: str = "personality.yml"
    transcript_db: str = ":memory:"
