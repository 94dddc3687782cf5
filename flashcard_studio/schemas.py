# flashcard_studio/schemas.py
from typing import List

from pydantic import BaseModel, Field, field_validator


class CardRecord(BaseModel):
    id: str
    question: str = ""
    answer: str = ""


class DeckFile(BaseModel):
    """On-disk deck: a name and an ordered list of cards"""
    name: str
    cards: List[CardRecord] = Field(default_factory=list)

    @field_validator('cards')
    def validate_unique_ids(cls, v):
        seen = set()
        for card in v:
            if card.id in seen:
                raise ValueError(f"Duplicate card id '{card.id}'.")
            seen.add(card.id)
        return v


class GeneratedCard(BaseModel):
    question: str
    answer: str


class GeneratedCards(BaseModel):
    """Shape the model is asked to answer with"""
    cards: List[GeneratedCard]
