"""
Study session sequencing

Builds a traversal order over card indices once per session and walks it
with a saturating cursor and a flip flag.
"""

import logging
import random
from typing import List, Optional

from flashcard_studio.errors import NoCurrentCard

logger = logging.getLogger(__name__)


def shuffle_in_place(items: List[int], rng: random.Random) -> None:
    """Fisher-Yates shuffle; every permutation is equally likely"""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


class StudySession:
    """
    Cursor over a snapshot of card indices

    The order is computed by start() and never follows later deck edits.
    next() and previous() stop at the last and first card.
    """

    def __init__(self, shuffle_enabled: bool = False, rng: Optional[random.Random] = None):
        self.shuffle_enabled = shuffle_enabled
        self.rng = rng or random.Random()
        self.order: List[int] = []
        self.cursor = 0
        self.flipped = False

    @property
    def card_count(self) -> int:
        return len(self.order)

    @property
    def is_empty(self) -> bool:
        return not self.order

    @property
    def position(self) -> int:
        """1-based counter for display, 0 when empty"""
        return 0 if self.is_empty else self.cursor + 1

    def start(self, card_count: int, shuffle_enabled: Optional[bool] = None):
        if shuffle_enabled is not None:
            self.shuffle_enabled = shuffle_enabled

        self.order = list(range(max(card_count, 0)))
        if self.order and self.shuffle_enabled:
            shuffle_in_place(self.order, self.rng)
        self.cursor = 0
        self.flipped = False
        logger.debug(f"Study session started: {len(self.order)} cards, shuffle={self.shuffle_enabled}")

    def restart(self):
        """Start over with the same card count; reshuffles when shuffle is on"""
        self.start(len(self.order))

    def set_shuffle(self, enabled: bool):
        """Store the preference; callers start() again to rebuild the order"""
        self.shuffle_enabled = enabled

    def current(self) -> int:
        """Index into the deck's card list for the card under the cursor"""
        if self.is_empty:
            raise NoCurrentCard("Study session has no cards")
        return self.order[self.cursor]

    def flip(self) -> bool:
        self.flipped = not self.flipped
        return self.flipped

    def next(self) -> bool:
        if self.cursor < len(self.order) - 1:
            self.cursor += 1
            self.flipped = False
            return True
        return False

    def previous(self) -> bool:
        if self.cursor > 0:
            self.cursor -= 1
            self.flipped = False
            return True
        return False

    def at_end(self) -> bool:
        return self.cursor >= len(self.order) - 1
