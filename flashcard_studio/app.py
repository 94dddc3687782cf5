"""
Studio controller

Coordinates the deck editor, the study session and the external
collaborators (deck files, Ollama, user confirmation). Collaborator failures
are caught here and returned as status dicts; nothing raised by a
collaborator escapes a controller action.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from flashcard_studio import storage
from flashcard_studio.client import OllamaClient
from flashcard_studio.config import StudioConfig
from flashcard_studio.deck import Card, DeckEditor
from flashcard_studio.errors import (
    ConnectivityError,
    EmptyInput,
    GenerationError,
    LoadError,
    SaveError,
)
from flashcard_studio.study import StudySession

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str, Sequence[str]], str]

REPLACE_ALL = "Replace All"
ADD_TO_EXISTING = "Add to Existing"
SAVE_FIRST = "Save First"
DISCARD = "Discard"


def _ok(message: str, **extra) -> Dict[str, Any]:
    return {'success': True, 'message': message, **extra}


def _fail(error: str, **extra) -> Dict[str, Any]:
    return {'success': False, 'error': error, **extra}


def validate_source_text(text: Optional[str]) -> str:
    """Strip source text, rejecting input with nothing to generate from"""
    text = (text or "").strip()
    if not text:
        raise EmptyInput("Please enter some text first.")
    return text


class StudioController:
    """Owns the editor and study state for one running studio"""

    def __init__(
        self,
        client: Optional[OllamaClient] = None,
        confirm: Optional[ConfirmFn] = None,
        config: Optional[StudioConfig] = None,
        editor: Optional[DeckEditor] = None,
        study: Optional[StudySession] = None
    ):
        """
        Initialize controller

        Args:
            client: Generation/connectivity collaborator
            confirm: Callable asking the user to pick one of the given options;
                without one the last, non-destructive option is taken
            config: Runtime settings
            editor: Existing editor state (a fresh untitled deck otherwise)
            study: Existing study session (keeps the shuffle preference)
        """
        self.config = config or StudioConfig()
        self.client = client or OllamaClient(self.config)
        self.confirm = confirm or (lambda prompt, options: options[-1])
        self.editor = editor if editor is not None else DeckEditor()
        self.study = study if study is not None else StudySession()

        self.connected = False
        self.models: List[str] = []

    # Connectivity
    def refresh_models(self) -> Dict[str, Any]:
        """Probe Ollama and remember which models are installed"""
        try:
            models = self.client.list_available_models()
        except ConnectivityError as e:
            self.connected = False
            self.models = []
            return _fail(str(e) or "Ollama not running")

        self.connected = True
        self.models = list(models)
        plural = "" if len(self.models) == 1 else "s"
        return _ok(f"Ollama connected ({len(self.models)} model{plural})", models=self.models)

    # Generation
    def generate(self, text: str, model: Optional[str] = None) -> Dict[str, Any]:
        """Generate cards from text and merge them into the deck"""
        try:
            text = validate_source_text(text)
        except EmptyInput as e:
            return _fail(str(e))
        if not self.connected:
            return _fail("Ollama is not connected. Please start Ollama first.")

        try:
            cards = self.client.generate_cards(text, model)
        except GenerationError as e:
            logger.error(f"Generation failed: {e}")
            return _fail(str(e))

        if not cards:
            return _fail("No flashcards were generated. Try different text or regenerate.")

        mode = self._merge(cards)
        return _ok(f"Generated {len(cards)} flashcards successfully.", count=len(cards), mode=mode)

    def _merge(self, cards: List[Card]) -> str:
        existing = len(self.editor)
        if existing == 0:
            self.editor.replace_all(cards)
            return 'replace'

        choice = self.confirm(
            f"You already have {existing} cards. Replace them or add {len(cards)} new cards?",
            [REPLACE_ALL, ADD_TO_EXISTING]
        )
        if choice == REPLACE_ALL:
            self.editor.replace_all(cards)
            return 'replace'
        self.editor.append_all(cards)
        return 'append'

    # Files
    def _resolve_unsaved(self, prompt: str) -> Optional[Dict[str, Any]]:
        """Offer to save pending changes; returns a failure to abort the caller"""
        if not self.editor.dirty:
            return None
        if self.confirm(prompt, [SAVE_FIRST, DISCARD]) != SAVE_FIRST:
            return None
        if not self.editor.file_path:
            return _fail("Choose where to save this deck first.", needs_path=True)
        result = self.save()
        return None if result['success'] else result

    def new_deck(self) -> Dict[str, Any]:
        aborted = self._resolve_unsaved("Save current deck before creating a new one?")
        if aborted:
            return aborted
        self.editor.new_deck()
        return _ok("Created a new deck.")

    def open_deck(self, path: str) -> Dict[str, Any]:
        aborted = self._resolve_unsaved("Save current deck before opening another?")
        if aborted:
            return aborted
        try:
            deck = storage.load_deck(path)
        except LoadError as e:
            logger.error(f"Open failed: {e}")
            return _fail(str(e))
        self.editor.load(deck, path)
        return _ok(f"Opened '{deck.name}' ({len(deck.cards)} cards).", path=path)

    def save(self) -> Dict[str, Any]:
        if not self.editor.file_path:
            return _fail("Deck has not been saved yet; use save as.", needs_path=True)
        try:
            storage.save_deck(self.editor.file_path, self.editor.deck)
        except SaveError as e:
            logger.error(f"Save failed: {e}")
            return _fail(str(e))
        self.editor.mark_clean()
        return _ok(f"Saved to {self.editor.file_path}", path=self.editor.file_path)

    def save_as(self, path: Optional[str] = None) -> Dict[str, Any]:
        if not path:
            try:
                path = self.suggest_save_path()
            except SaveError as e:
                logger.error(f"Save As failed: {e}")
                return _fail(str(e))
        previous_path = self.editor.file_path
        self.editor.file_path = path
        result = self.save()
        if not result['success']:
            self.editor.file_path = previous_path
        return result

    def suggest_save_path(self) -> str:
        return storage.suggest_save_path(self.editor.deck.name, self.config.deck_dir)

    # Study
    def enter_study(self) -> StudySession:
        """Snapshot the current card order into a fresh study session"""
        self.study.start(len(self.editor))
        return self.study

    def restart_study(self) -> StudySession:
        self.study.restart()
        return self.study

    def toggle_shuffle(self) -> bool:
        self.study.set_shuffle(not self.study.shuffle_enabled)
        self.enter_study()
        return self.study.shuffle_enabled

    def current_card(self) -> Optional[Card]:
        """Card under the study cursor, or None when there is nothing to study"""
        if self.study.is_empty:
            return None
        index = self.study.current()
        if index >= len(self.editor):
            return None
        return self.editor.cards[index]
