"""
Runtime settings

Values come from the environment (optionally via a .env file) and can be
overridden by CLI options.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import dotenv

dotenv.load_dotenv()

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "mistral"
DEFAULT_DECK_DIR = str(Path.home() / "FlashcardDecks")
DECK_FILE_EXTENSION = ".json"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class StudioConfig:
    """Settings shared by the client, storage and CLI"""
    ollama_url: str = field(default_factory=lambda: os.getenv('FLASHCARD_STUDIO_OLLAMA_URL', DEFAULT_OLLAMA_URL))
    model: str = field(default_factory=lambda: os.getenv('FLASHCARD_STUDIO_MODEL', DEFAULT_MODEL))
    deck_dir: str = field(default_factory=lambda: os.getenv('FLASHCARD_STUDIO_DECK_DIR', DEFAULT_DECK_DIR))
    timeout_seconds: float = field(default_factory=lambda: _env_float('FLASHCARD_STUDIO_TIMEOUT', 120.0))
    probe_timeout_seconds: float = 5.0
    temperature: float = 0.3
    num_predict: int = 4096
