"""
Interactive session tests

Commands are replayed through a fake prompt session; rich prompts are
replaced by scripted answers and output goes to an in-memory console.
"""

import io

import pytest
from rich.console import Console

from flashcard_studio import session as session_module
from flashcard_studio import storage
from flashcard_studio.app import DISCARD, SAVE_FIRST, StudioController
from flashcard_studio.config import StudioConfig
from flashcard_studio.deck import Card, Deck, DeckEditor
from flashcard_studio.session import EDIT_MODE, STUDY_MODE, InteractiveStudioSession, console_confirm


class ScriptExhausted(BaseException):
    """Raised when a test asks for more input than it scripted"""


class FakePromptSession:
    """Replays typed commands, then behaves like Ctrl-D once"""

    def __init__(self):
        self.inputs = []
        self.prompts = []
        self.closed = False

    def prompt(self, message, **kwargs):
        self.prompts.append(message)
        if self.inputs:
            return self.inputs.pop(0)
        if self.closed:
            raise ScriptExhausted(message)
        self.closed = True
        raise EOFError


class ScriptedAnswers:
    """Stands in for rich's Prompt/Confirm, answering from a fixed list"""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.asked = []

    def ask(self, prompt, **kwargs):
        self.asked.append(prompt)
        if not self.answers:
            raise ScriptExhausted(prompt)
        return self.answers.pop(0)


class MockOllamaClient:
    """Mock Ollama client for testing"""

    def __init__(self, cards=None):
        self.cards = cards or []

    def list_available_models(self):
        return ["mistral"]

    def generate_cards(self, text, model=None):
        return [Card(question=q, answer=a) for q, a in self.cards]


def make_editor(tmp_path, *labels):
    cards = [Card(id=label, question=f"Q{label}", answer=f"A{label}") for label in labels]
    return DeckEditor(Deck(name="Test", cards=cards), str(tmp_path / "deck.json"))


@pytest.fixture
def studio_factory(tmp_path, monkeypatch):
    monkeypatch.setattr(session_module, 'PromptSession', FakePromptSession)

    def build(editor=None, prompts=(), confirms=(), choices=(), cards=None):
        prompt = ScriptedAnswers(*prompts)
        confirm = ScriptedAnswers(*confirms)
        monkeypatch.setattr(session_module, 'Prompt', prompt)
        monkeypatch.setattr(session_module, 'Confirm', confirm)

        choice_list = list(choices)
        controller = StudioController(
            client=MockOllamaClient(cards),
            confirm=lambda text, options: choice_list.pop(0),
            config=StudioConfig(deck_dir=str(tmp_path / "decks")),
            editor=editor
        )
        studio = InteractiveStudioSession(controller, Console(file=io.StringIO(), width=120))
        return studio

    return build


def run_commands(studio, *commands):
    studio.prompt_session.inputs = list(commands)
    studio.run()


def output(studio):
    return studio.console.file.getvalue()


def ids(studio):
    return [card.id for card in studio.editor.cards]


def test_drag_command(studio_factory, tmp_path):
    studio = studio_factory(make_editor(tmp_path, "A", "B", "C"), confirms=[False])
    run_commands(studio, "m 1 3")
    assert ids(studio) == ["B", "C", "A"]
    assert not studio.running


def test_move_commands(studio_factory, tmp_path):
    studio = studio_factory(make_editor(tmp_path, "A", "B", "C"), confirms=[False])
    run_commands(studio, "u 3", "j 1")
    assert ids(studio) == ["C", "A", "B"]


def test_bad_positions_leave_deck_alone(studio_factory, tmp_path):
    studio = studio_factory(make_editor(tmp_path, "A", "B", "C"))
    run_commands(studio, "m 1 9", "d 0", "u x", "e", "j 3", "zz")
    assert ids(studio) == ["A", "B", "C"]
    assert not studio.editor.dirty
    text = output(studio)
    assert "between 1 and 3" in text
    assert "valid number" in text
    assert "Expected 1 card number" in text
    assert "already at that end" in text
    assert "Unknown command" in text
    assert not studio.running


def test_add_edit_delete_and_rename(studio_factory, tmp_path):
    studio = studio_factory(
        make_editor(tmp_path, "A", "B"),
        prompts=["New Q", "New A", "Edited", "AB", "Biology"],
        confirms=[False]
    )
    run_commands(studio, "a", "e 1", "d 2", "r")
    assert [(c.question, c.answer) for c in studio.editor.cards] == [("Edited", "AB"), ("New Q", "New A")]
    assert studio.editor.deck.name == "Biology"


def test_generate_command(studio_factory, tmp_path):
    studio = studio_factory(prompts=["mistral"], confirms=[False], cards=[("Q1", "A1"), ("Q2", "A2")])
    run_commands(studio, "g", "Cells are the unit of life")
    assert [c.question for c in studio.editor.cards] == ["Q1", "Q2"]
    assert "Generated 2 flashcards" in output(studio)


def test_study_commands(studio_factory, tmp_path):
    studio = studio_factory(make_editor(tmp_path, "A", "B", "C"))
    study = studio.controller.study

    studio._handle_editor_action("t")
    assert studio.mode == STUDY_MODE
    assert (study.cursor, study.flipped) == (0, False)

    studio._handle_study_action("f")
    assert study.flipped
    studio._handle_study_action("n")
    assert (study.cursor, study.flipped) == (1, False)
    studio._handle_study_action("")
    studio._handle_study_action("n")
    assert study.cursor == 2
    assert "Already on the last card" in output(studio)

    studio._handle_study_action("p")
    assert study.cursor == 1
    studio._handle_study_action("r")
    assert study.cursor == 0
    studio._handle_study_action("p")
    assert "Already on the first card" in output(studio)

    studio._handle_study_action("x")
    assert study.shuffle_enabled
    assert sorted(study.order) == [0, 1, 2]
    assert "Shuffle on" in output(studio)

    studio._handle_study_action("b")
    assert studio.mode == EDIT_MODE


def test_start_in_study_with_empty_deck(studio_factory):
    studio = studio_factory()
    studio.prompt_session.inputs = ["n", "f"]
    studio.run(start_in_study=True)
    assert studio.controller.study.is_empty
    assert not studio.running


def test_quit_stays_open_when_save_fails(studio_factory, tmp_path):
    editor = DeckEditor(Deck(name="Lost"), str(tmp_path / "missing" / "deck.json"))
    studio = studio_factory(editor, confirms=[True, False])
    studio.editor.add_card()

    studio._handle_editor_action("q")
    assert studio.running
    assert studio.editor.dirty

    studio._handle_editor_action("q")
    assert not studio.running


def test_quit_saves_new_deck_where_asked(studio_factory, tmp_path):
    target = tmp_path / "mine.json"
    studio = studio_factory(confirms=[True], prompts=[str(target)])
    studio.editor.add_card()

    studio._handle_editor_action("q")
    assert not studio.running
    assert len(storage.load_deck(str(target)).cards) == 1


def test_new_deck_asks_where_to_save_first(studio_factory, tmp_path):
    decks = tmp_path / "decks"
    decks.mkdir()
    (decks / "Untitled Deck.json").write_text("keep me", encoding='utf-8')
    target = tmp_path / "mine.json"
    studio = studio_factory(choices=[SAVE_FIRST], prompts=[str(target)])
    card = studio.editor.add_card()

    studio._handle_editor_action("n")
    assert (decks / "Untitled Deck.json").read_text(encoding='utf-8') == "keep me"
    assert [c.id for c in storage.load_deck(str(target)).cards] == [card.id]
    assert len(studio.editor) == 0
    assert studio.editor.file_path is None


def test_open_with_discard(studio_factory, tmp_path):
    other = tmp_path / "other.json"
    storage.save_deck(str(other), Deck(name="Other", cards=[Card(id="o")]))
    studio = studio_factory(make_editor(tmp_path, "A"), choices=[DISCARD])
    studio.editor.add_card()

    studio._handle_editor_action(f"o {other}")
    assert studio.editor.deck.name == "Other"
    assert ids(studio) == ["o"]


def test_save_as_refuses_to_overwrite_without_consent(studio_factory, tmp_path):
    existing = tmp_path / "taken.json"
    existing.write_text("keep me", encoding='utf-8')
    studio = studio_factory(confirms=[False])
    studio.editor.add_card()

    studio._handle_editor_action(f"w {existing}")
    assert existing.read_text(encoding='utf-8') == "keep me"
    assert studio.editor.dirty
    assert studio.editor.file_path is None


def test_console_confirm_returns_chosen_option(monkeypatch):
    monkeypatch.setattr(session_module, 'Prompt', ScriptedAnswers("2"))
    console = Console(file=io.StringIO(), width=120)
    confirm = console_confirm(console)
    assert confirm("Save current deck?", [SAVE_FIRST, DISCARD]) == DISCARD
    text = console.file.getvalue()
    assert "Save current deck?" in text
    assert "1 Save First" in text
