"""
Error types for Flashcard Studio

Editor and study operations degrade to no-ops instead of raising; these
exceptions cover the collaborators (files, Ollama) and the one precondition
the study engine enforces.
"""


class FlashcardStudioError(Exception):
    """Base class for all Flashcard Studio errors"""


class LoadError(FlashcardStudioError):
    """Deck file is missing, unreadable or malformed"""


class SaveError(FlashcardStudioError):
    """Deck file could not be written"""


class GenerationError(FlashcardStudioError):
    """The model failed to produce flashcards"""


class ConnectivityError(FlashcardStudioError):
    """Ollama could not be reached"""


class EmptyInput(FlashcardStudioError):
    """Generation was requested without any source text"""


class NoCurrentCard(FlashcardStudioError):
    """The study session has no cards to show"""
