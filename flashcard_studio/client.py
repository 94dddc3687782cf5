"""
HTTP client for a local Ollama server

Generates flashcards from source text and lists installed models.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from flashcard_studio.config import DEFAULT_MODEL, StudioConfig
from flashcard_studio.deck import Card
from flashcard_studio.errors import ConnectivityError, GenerationError
from flashcard_studio.schemas import GeneratedCards

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are a flashcard generator. Analyze the following text and create high-quality study flashcards.

Rules:
- Extract the most important concepts, facts, and relationships.
- Each flashcard must have a clear, specific question and a concise, accurate answer.
- Aim for 5-15 flashcards depending on content density.
- Questions should test understanding, not just recall.
- Answers should be brief but complete.

Respond with ONLY valid JSON in this exact format:
{{"cards": [{{"question": "...", "answer": "..."}}, ...]}}

Text to analyze:
{text}"""


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


class OllamaClient:
    """HTTP client for the Ollama generate and tags endpoints"""

    def __init__(self, config: Optional[StudioConfig] = None):
        """
        Initialize Ollama client

        Args:
            config: Settings for base URL, timeouts and sampling options
        """
        self.config = config or StudioConfig()
        self.base_url = self.config.ollama_url.rstrip('/')
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    def _post(self, endpoint: str, data: Dict[str, Any]) -> requests.Response:
        """Make POST request to Ollama"""
        url = f"{self.base_url}{endpoint}"
        return self.session.post(url, json=data, timeout=self.config.timeout_seconds)

    def _get(self, endpoint: str) -> requests.Response:
        """Make GET request to Ollama"""
        url = f"{self.base_url}{endpoint}"
        return self.session.get(url, timeout=self.config.probe_timeout_seconds)

    def generate_cards(self, text: str, model: Optional[str] = None) -> List[Card]:
        """
        Ask the model for flashcards covering the given text

        Args:
            text: Source text to analyze
            model: Ollama model name; falls back to the default model

        Returns:
            Cards in the order the model produced them, each with a fresh id

        Raises:
            GenerationError: On transport failure or an unusable response
        """
        model_name = model or self.config.model or DEFAULT_MODEL
        request = {
            'model': model_name,
            'prompt': build_prompt(text),
            'stream': False,
            'format': 'json',
            'options': {
                'temperature': self.config.temperature,
                'num_predict': self.config.num_predict
            }
        }

        logger.info(f"Requesting flashcards from model '{model_name}' ({len(text)} chars of text)")
        try:
            response = self._post('/api/generate', request)
        except requests.exceptions.RequestException as e:
            logger.error(f"Generation request failed: {e}")
            raise GenerationError(f"Failed to connect to Ollama. Is it running?\n{e}")

        if not response.ok:
            raise GenerationError(f"Ollama returned status: {response.status_code}")

        try:
            body = response.json()
            raw = body['response']
        except (ValueError, KeyError, TypeError) as e:
            raise GenerationError(f"Failed to parse Ollama response: {e}")

        try:
            generated = GeneratedCards.model_validate(json.loads(raw))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Model '{model_name}' returned unusable JSON: {e}")
            raise GenerationError(f"LLM returned invalid JSON. Try regenerating.\n{e}")

        cards = [Card(question=c.question, answer=c.answer) for c in generated.cards]
        logger.info(f"Model '{model_name}' produced {len(cards)} flashcards")
        return cards

    def list_available_models(self) -> List[str]:
        """
        List installed model names

        Raises:
            ConnectivityError: If Ollama cannot be reached or answers garbage
        """
        try:
            response = self._get('/api/tags')
        except requests.exceptions.RequestException as e:
            logger.warning(f"Ollama probe failed: {e}")
            raise ConnectivityError("Cannot connect to Ollama")

        try:
            body = response.json()
        except ValueError:
            raise ConnectivityError("Invalid response from Ollama")

        entries = body.get('models') if isinstance(body, dict) else None
        if not isinstance(entries, list):
            return []
        return [
            m['name'] for m in entries
            if isinstance(m, dict) and isinstance(m.get('name'), str)
        ]

    def health_check(self) -> bool:
        """Check if Ollama is reachable"""
        try:
            self.list_available_models()
            return True
        except ConnectivityError:
            return False
