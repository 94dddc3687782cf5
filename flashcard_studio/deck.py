"""
Deck model and editor

The DeckEditor owns the card collection and tracks whether it has changed
since the last successful load or save.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Set, Union

logger = logging.getLogger(__name__)

DEFAULT_DECK_NAME = "Untitled Deck"
CARD_FIELDS = ('question', 'answer')


def new_card_id() -> str:
    """Return a fresh collision-resistant card id"""
    return str(uuid.uuid4())


@dataclass
class Card:
    """A question/answer pair with a stable identifier"""
    id: str = field(default_factory=new_card_id)
    question: str = ""
    answer: str = ""

    def to_dict(self) -> dict:
        return {'id': self.id, 'question': self.question, 'answer': self.answer}


@dataclass
class Deck:
    """Named, ordered collection of cards"""
    name: str = DEFAULT_DECK_NAME
    cards: List[Card] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'name': self.name, 'cards': [card.to_dict() for card in self.cards]}


CardLike = Union[Card, Mapping[str, Any]]


def _read(record: CardLike, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


class DeckEditor:
    """
    Mutable deck state with dirty tracking

    Every mutating operation returns whether it changed anything and marks
    the deck dirty only when it did. Operations addressing an unknown card
    id are silent no-ops.
    """

    def __init__(self, deck: Optional[Deck] = None, file_path: Optional[str] = None):
        self.deck = deck if deck is not None else Deck()
        self.file_path = file_path
        self.dirty = False

    # Lookup
    @property
    def cards(self) -> List[Card]:
        return self.deck.cards

    def __len__(self) -> int:
        return len(self.deck.cards)

    def index_of(self, card_id: str) -> int:
        """Position of the card with this id, or -1"""
        for i, card in enumerate(self.deck.cards):
            if card.id == card_id:
                return i
        return -1

    def find(self, card_id: str) -> Optional[Card]:
        index = self.index_of(card_id)
        return self.deck.cards[index] if index >= 0 else None

    def card_at(self, position: int) -> Optional[Card]:
        """Card at a 1-based display position, or None"""
        if 1 <= position <= len(self.deck.cards):
            return self.deck.cards[position - 1]
        return None

    # Lifecycle
    def mark_dirty(self):
        self.dirty = True

    def mark_clean(self):
        """Called after a successful load or save"""
        self.dirty = False

    def new_deck(self):
        """Replace the deck with an empty, never-saved one"""
        self.deck = Deck()
        self.file_path = None
        self.mark_clean()

    def load(self, deck: Deck, file_path: Optional[str] = None):
        """Replace the deck wholesale with one read from storage"""
        self.deck = deck
        self.file_path = file_path
        self.mark_clean()

    # Editing
    def add_card(self) -> Card:
        card = Card(id=self._fresh_id(self._ids()))
        self.deck.cards.append(card)
        self.mark_dirty()
        logger.debug(f"Added card {card.id}")
        return card

    def edit_field(self, card_id: str, field_name: str, value: str) -> bool:
        if field_name not in CARD_FIELDS:
            logger.warning(f"Ignoring edit of unknown field '{field_name}'")
            return False
        card = self.find(card_id)
        if card is None:
            return False
        setattr(card, field_name, value)
        self.mark_dirty()
        return True

    def delete_card(self, card_id: str) -> bool:
        index = self.index_of(card_id)
        if index < 0:
            return False
        del self.deck.cards[index]
        self.mark_dirty()
        logger.debug(f"Deleted card {card_id}")
        return True

    def move_card(self, card_id: str, direction: int) -> bool:
        """Move a card one step up (-1) or down (+1); no-op at either end"""
        if direction not in (-1, 1):
            return False
        index = self.index_of(card_id)
        if index < 0:
            return False
        new_index = index + direction
        if new_index < 0 or new_index >= len(self.deck.cards):
            return False
        card = self.deck.cards.pop(index)
        self.deck.cards.insert(new_index, card)
        self.mark_dirty()
        return True

    def reorder_by_drag(self, dragged_id: str, target_id: str) -> bool:
        """
        Drop one card onto another

        Both positions are taken before the dragged card is removed; it is then
        reinserted at the target's old index. Dragging down lands after the
        target, dragging up lands before it.
        """
        if dragged_id == target_id:
            return False
        from_index = self.index_of(dragged_id)
        to_index = self.index_of(target_id)
        if from_index < 0 or to_index < 0:
            return False
        card = self.deck.cards.pop(from_index)
        self.deck.cards.insert(to_index, card)
        self.mark_dirty()
        return True

    def rename_deck(self, name: str) -> bool:
        self.deck.name = name
        self.mark_dirty()
        return True

    # Merging generated cards
    def replace_all(self, records: Iterable[CardLike]) -> bool:
        self.deck.cards = self._adopt(records, set())
        self.mark_dirty()
        logger.info(f"Replaced deck contents with {len(self.deck.cards)} cards")
        return True

    def append_all(self, records: Iterable[CardLike]) -> bool:
        adopted = self._adopt(records, self._ids())
        self.deck.cards.extend(adopted)
        self.mark_dirty()
        logger.info(f"Appended {len(adopted)} cards; deck now has {len(self.deck.cards)}")
        return True

    def _ids(self) -> Set[str]:
        return {card.id for card in self.deck.cards}

    @staticmethod
    def _fresh_id(taken: Set[str]) -> str:
        card_id = new_card_id()
        while card_id in taken:
            card_id = new_card_id()
        return card_id

    def _adopt(self, records: Iterable[CardLike], taken: Set[str]) -> List[Card]:
        """Copy card-like records into new Cards, re-keying missing or clashing ids"""
        taken = set(taken)
        adopted = []
        for record in records:
            card_id = _read(record, 'id')
            card_id = str(card_id) if card_id else None
            if card_id is None or card_id in taken:
                card_id = self._fresh_id(taken)
            taken.add(card_id)
            adopted.append(Card(
                id=card_id,
                question=_read(record, 'question') or "",
                answer=_read(record, 'answer') or "",
            ))
        return adopted
