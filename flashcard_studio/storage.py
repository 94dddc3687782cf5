"""
Deck persistence

Decks are stored as pretty-printed UTF-8 JSON files:

    {"name": "...", "cards": [{"id": "...", "question": "...", "answer": "..."}]}
"""

import json
import logging
import os
import re
import tempfile
from typing import Optional

from pydantic import ValidationError

from flashcard_studio.config import DECK_FILE_EXTENSION, DEFAULT_DECK_DIR
from flashcard_studio.deck import DEFAULT_DECK_NAME, Card, Deck
from flashcard_studio.errors import LoadError, SaveError
from flashcard_studio.schemas import DeckFile

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r'[^a-zA-Z0-9 ]')


def load_deck(path: str) -> Deck:
    """
    Read a deck file

    Raises:
        LoadError: If the file is missing, unreadable or not a valid deck
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise LoadError(f"Deck file not found: {path}")
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid deck file: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Failed to read: {e}")

    try:
        record = DeckFile.model_validate(data)
    except ValidationError as e:
        raise LoadError(f"Invalid deck file: {e}")

    logger.info(f"Loaded deck '{record.name}' ({len(record.cards)} cards) from {path}")
    return Deck(
        name=record.name,
        cards=[Card(id=c.id, question=c.question, answer=c.answer) for c in record.cards],
    )


def _encode_deck(deck: Deck) -> bytes:
    """Serialize a deck to UTF-8 JSON, escaping text that UTF-8 cannot carry"""
    data = deck.to_dict()
    try:
        return json.dumps(data, indent=2, ensure_ascii=False).encode('utf-8')
    except UnicodeEncodeError:
        # Lone surrogates survive only as \u escapes
        return json.dumps(data, indent=2, ensure_ascii=True).encode('utf-8')


def save_deck(path: str, deck: Deck) -> None:
    """
    Write a deck file, replacing any existing one

    The deck is written to a temporary file next to the target and moved
    into place, so a failed save leaves the previous file untouched.

    Raises:
        SaveError: If the deck cannot be serialized or the file cannot be written
    """
    try:
        payload = _encode_deck(deck)
    except (TypeError, ValueError) as e:
        raise SaveError(f"Failed to save: {e}")

    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.deck-', suffix='.tmp')
        with os.fdopen(fd, 'wb') as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise SaveError(f"Failed to save: {e}")
    logger.info(f"Saved deck '{deck.name}' ({len(deck.cards)} cards) to {path}")


def default_save_directory(base_dir: Optional[str] = None) -> str:
    """Directory suggested for new decks, created if needed"""
    deck_dir = os.path.expanduser(base_dir or DEFAULT_DECK_DIR)
    try:
        os.makedirs(deck_dir, exist_ok=True)
    except OSError as e:
        raise SaveError(f"Failed to create directory: {e}")
    return deck_dir


def suggest_save_path(deck_name: str, base_dir: Optional[str] = None) -> str:
    """File path derived from the deck name with unsafe characters removed"""
    file_stem = _UNSAFE_NAME_RE.sub('', deck_name).strip() or DEFAULT_DECK_NAME
    return os.path.join(default_save_directory(base_dir), f"{file_stem}{DECK_FILE_EXTENSION}")
