"""Pydantic models for conversation history."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class ChatTurn(BaseModel):
    """One message of a conversation about a document.

    Ordering by created_at is the canonical history order.
    """

    role: Literal["human", "ai"]
    text: str
    created_at: datetime


def sort_history(history: list[ChatTurn] | None) -> list[ChatTurn]:
    """Returns the turns in canonical (created_at ascending) order."""
    return sorted(history or [], key=lambda turn: turn.created_at)
