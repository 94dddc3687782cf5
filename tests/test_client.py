"""
Ollama client tests

The HTTP session is replaced by a mock that records requests and returns
canned responses.
"""

import json

import pytest
import requests

from flashcard_studio.client import OllamaClient, build_prompt
from flashcard_studio.config import StudioConfig
from flashcard_studio.errors import ConnectivityError, GenerationError


class MockResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class MockSession:
    """Records calls and replays a single response or exception"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _reply(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        return self._reply('POST', url, **kwargs)

    def get(self, url, **kwargs):
        return self._reply('GET', url, **kwargs)


def make_client(response=None, error=None):
    client = OllamaClient(StudioConfig(ollama_url="http://ollama.test:11434/", model="mistral", timeout_seconds=9))
    client.session = MockSession(response, error)
    return client


def generate_response(cards):
    return MockResponse(body={'response': json.dumps({'cards': cards})})


def test_generate_sends_expected_request():
    client = make_client(generate_response([{'question': "What is 2+2?", 'answer': "4"}]))
    client.generate_cards("Arithmetic basics", "llama3")

    method, url, kwargs = client.session.calls[0]
    assert method == 'POST'
    assert url == "http://ollama.test:11434/api/generate"
    assert kwargs['timeout'] == 9
    payload = kwargs['json']
    assert payload['model'] == "llama3"
    assert payload['stream'] is False
    assert payload['format'] == "json"
    assert payload['options'] == {'temperature': 0.3, 'num_predict': 4096}
    assert payload['prompt'] == build_prompt("Arithmetic basics")
    assert "Arithmetic basics" in payload['prompt']


def test_generate_returns_cards_with_fresh_ids():
    client = make_client(generate_response([
        {'question': "Q1", 'answer': "A1"},
        {'question': "Q2", 'answer': "A2"},
    ]))
    cards = client.generate_cards("text", "mistral")
    assert [(c.question, c.answer) for c in cards] == [("Q1", "A1"), ("Q2", "A2")]
    assert cards[0].id and cards[1].id and cards[0].id != cards[1].id


def test_generate_falls_back_to_default_model():
    client = make_client(generate_response([]))
    client.generate_cards("text", "")
    assert client.session.calls[0][2]['json']['model'] == "mistral"


def test_generate_connection_failure():
    client = make_client(error=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(GenerationError, match="Failed to connect to Ollama"):
        client.generate_cards("text", "mistral")


def test_generate_bad_status():
    client = make_client(MockResponse(status_code=404, body={}))
    with pytest.raises(GenerationError, match="404"):
        client.generate_cards("text", "mistral")


def test_generate_unparseable_outer_response():
    client = make_client(MockResponse(text="<html>"))
    with pytest.raises(GenerationError, match="Failed to parse"):
        client.generate_cards("text", "mistral")


def test_generate_invalid_inner_json():
    client = make_client(MockResponse(body={'response': "not json at all"}))
    with pytest.raises(GenerationError, match="invalid JSON"):
        client.generate_cards("text", "mistral")


def test_generate_wrong_card_shape():
    client = make_client(MockResponse(body={'response': json.dumps({'cards': [{'front': "x"}]})}))
    with pytest.raises(GenerationError):
        client.generate_cards("text", "mistral")


def test_list_models():
    client = make_client(MockResponse(body={'models': [{'name': "mistral:latest"}, {'name': "llama3"}, {'size': 1}]}))
    assert client.list_available_models() == ["mistral:latest", "llama3"]
    method, url, _ = client.session.calls[0]
    assert (method, url) == ('GET', "http://ollama.test:11434/api/tags")


def test_list_models_without_models_key():
    client = make_client(MockResponse(body={}))
    assert client.list_available_models() == []


def test_list_models_unreachable():
    client = make_client(error=requests.exceptions.ConnectTimeout("timeout"))
    with pytest.raises(ConnectivityError):
        client.list_available_models()
    assert not client.health_check()


def test_list_models_garbage_response():
    client = make_client(MockResponse(text="???"))
    with pytest.raises(ConnectivityError):
        client.list_available_models()
