"""
Interactive studio session

Runs the editor and study loops with keyboard commands.
"""

import logging
import os
from typing import List, Optional, Sequence

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from flashcard_studio.app import StudioController
from flashcard_studio.deck import Card
from flashcard_studio.display import (
    display_card,
    display_deck_table,
    display_models,
    display_status,
    display_study_card,
    show_editor_help,
    show_study_help,
)

logger = logging.getLogger(__name__)

EDIT_MODE = 'edit'
STUDY_MODE = 'study'


def console_confirm(console: Console):
    """Build a confirm collaborator that asks on the given console"""
    def confirm(prompt: str, options: Sequence[str]) -> str:
        console.print(f"[bold yellow]{prompt}[/bold yellow]")
        for i, option in enumerate(options, 1):
            console.print(f"  [cyan]{i}[/cyan] {option}")
        choice = Prompt.ask(
            "Choose",
            choices=[str(i) for i in range(1, len(options) + 1)],
            default="1",
            console=console
        )
        return options[int(choice) - 1]
    return confirm


class InteractiveStudioSession:
    """Handles the interactive editor/study loop"""

    def __init__(self, controller: StudioController, console: Console):
        """
        Initialize interactive session

        Args:
            controller: Studio controller owning deck and study state
            console: Rich console instance
        """
        self.controller = controller
        self.console = console
        self.prompt_session = PromptSession()

        self.running = True
        self.mode = EDIT_MODE

    @property
    def editor(self):
        return self.controller.editor

    def run(self, start_in_study: bool = False):
        """Main interactive loop"""
        try:
            status = self.controller.refresh_models()
            if status['success']:
                self.console.print(f"[dim]{status['message']}[/dim]")
            else:
                self.console.print("[dim]Ollama not running; generation disabled[/dim]")

            if start_in_study:
                self._enter_study()
            else:
                display_deck_table(self.console, self.editor)
                self._show_editor_actions()

            while self.running:
                try:
                    action = self._get_user_input()
                    if self.mode == STUDY_MODE:
                        self._handle_study_action(action)
                    else:
                        self._handle_editor_action(action)
                except KeyboardInterrupt:
                    self.console.print("\n[yellow]Use 'q' to quit[/yellow]")
                except Exception as e:
                    logger.error(f"Error in studio loop: {e}")
                    self.console.print(f"[red]Error: {e}[/red]")

        except KeyboardInterrupt:
            self.console.print("\n[yellow]Session interrupted[/yellow]")

    def _get_user_input(self) -> str:
        """Get user input (single command with optional arguments)"""
        marker = "study" if self.mode == STUDY_MODE else "edit"
        try:
            return self.prompt_session.prompt(f'{marker}> ').strip()
        except (EOFError, KeyboardInterrupt):
            return 'q'

    # Editor mode
    def _handle_editor_action(self, action: str):
        """Handle editor command"""
        parts = action.split()
        command = parts[0].lower() if parts else ''
        args = parts[1:]

        if command == 'l':
            display_deck_table(self.console, self.editor)
        elif command == 'v':
            card = self._card_arg(args)
            if card:
                display_card(self.console, self.editor.index_of(card.id) + 1, card)
        elif command == 'a':
            self._add_card()
        elif command == 'e':
            card = self._card_arg(args)
            if card:
                self._edit_card(card)
        elif command == 'd':
            self._delete_card(args)
        elif command in ['u', 'j']:
            card = self._card_arg(args)
            if card:
                direction = -1 if command == 'u' else 1
                if self.editor.move_card(card.id, direction):
                    display_deck_table(self.console, self.editor)
                else:
                    self.console.print("[dim]Card is already at that end[/dim]")
        elif command == 'm':
            self._drag_card(args)
        elif command == 'r':
            name = Prompt.ask("Deck name", default=self.editor.deck.name, console=self.console)
            self.editor.rename_deck(name)
            display_deck_table(self.console, self.editor)
        elif command == 'g':
            self._generate()
        elif command == 'c':
            self._check_models()
        elif command == 'n':
            self._new_deck()
        elif command == 'o':
            self._open_deck(args)
        elif command == 's':
            self._save()
        elif command == 'w':
            self._save_as(args)
        elif command == 't':
            self._enter_study()
        elif command in ['h', '?']:
            show_editor_help(self.console)
        elif command == 'q':
            self._quit()
        elif command == '':
            self._show_editor_actions()
        else:
            self.console.print(f"[yellow]Unknown command: '{action}'. Press 'h' for help[/yellow]")

    def _show_editor_actions(self):
        self.console.print("[dim][a] Add  [e N] Edit  [g] Generate  [s] Save  [t] Study  [h] Help  [q] Quit[/dim]\n")

    def _positions(self, args: List[str], count: int) -> Optional[List[int]]:
        """Parse 1-based card numbers from command arguments"""
        if len(args) < count:
            self.console.print(f"[yellow]Expected {count} card number(s)[/yellow]")
            return None
        try:
            return [int(a) for a in args[:count]]
        except ValueError:
            self.console.print("[yellow]Please enter a valid number[/yellow]")
            return None

    def _card_arg(self, args: List[str]) -> Optional[Card]:
        positions = self._positions(args, 1)
        if positions is None:
            return None
        card = self.editor.card_at(positions[0])
        if card is None:
            self.console.print(f"[yellow]Please enter a number between 1 and {len(self.editor)}[/yellow]")
        return card

    def _add_card(self):
        card = self.editor.add_card()
        self._edit_card(card)

    def _edit_card(self, card: Card):
        question = Prompt.ask("Question", default=card.question, console=self.console)
        self.editor.edit_field(card.id, 'question', question)
        answer = Prompt.ask("Answer", default=card.answer, console=self.console)
        self.editor.edit_field(card.id, 'answer', answer)
        display_deck_table(self.console, self.editor)

    def _delete_card(self, args: List[str]):
        card = self._card_arg(args)
        if card and self.editor.delete_card(card.id):
            display_deck_table(self.console, self.editor)

    def _drag_card(self, args: List[str]):
        positions = self._positions(args, 2)
        if positions is None:
            return
        dragged = self.editor.card_at(positions[0])
        target = self.editor.card_at(positions[1])
        if dragged is None or target is None:
            self.console.print(f"[yellow]Please enter numbers between 1 and {len(self.editor)}[/yellow]")
            return
        if self.editor.reorder_by_drag(dragged.id, target.id):
            display_deck_table(self.console, self.editor)

    def _check_models(self):
        result = self.controller.refresh_models()
        display_status(self.console, result)
        if result['success']:
            display_models(self.console, self.controller.models)

    def _generate(self):
        if not self.controller.connected:
            self.controller.refresh_models()

        self.console.print("[bold]Paste source text.[/bold] [dim]Finish with Esc then Enter.[/dim]")
        try:
            text = self.prompt_session.prompt('text> ', multiline=True)
        except (EOFError, KeyboardInterrupt):
            self.console.print("[yellow]Generation cancelled[/yellow]")
            return

        model = self.controller.config.model
        if self.controller.models:
            default = model if model in self.controller.models else self.controller.models[0]
            model = Prompt.ask("Model", choices=self.controller.models, default=default, console=self.console)

        self.console.print("⏳ Analyzing text and generating flashcards… This may take a moment.")
        with self.console.status("Generating…"):
            result = self.controller.generate(text, model)
        display_status(self.console, result)
        if result['success']:
            display_deck_table(self.console, self.editor)

    def _with_save_path(self, action):
        """Run a deck-replacing action, asking where to save first if it needs a path"""
        result = action()
        if result.get('needs_path'):
            self._save_as([])
            if self.editor.dirty:
                return result
            result = action()
        return result

    def _new_deck(self):
        result = self._with_save_path(self.controller.new_deck)
        display_status(self.console, result)
        if result['success']:
            display_deck_table(self.console, self.editor)

    def _open_deck(self, args: List[str]):
        path = args[0] if args else Prompt.ask("Deck file", console=self.console)
        if not path:
            return
        result = self._with_save_path(lambda: self.controller.open_deck(path))
        display_status(self.console, result)
        if result['success']:
            display_deck_table(self.console, self.editor)

    def _save(self):
        if not self.editor.file_path:
            self._save_as([])
            return
        display_status(self.console, self.controller.save())

    def _save_as(self, args: List[str]):
        path = args[0] if args else Prompt.ask(
            "Save to", default=self.controller.suggest_save_path(), console=self.console
        )
        if path != self.editor.file_path and os.path.exists(path):
            if not Confirm.ask(f"{escape(path)} already exists. Overwrite?", default=False, console=self.console):
                self.console.print("[dim]Save cancelled[/dim]")
                return
        display_status(self.console, self.controller.save_as(path))

    # Study mode
    def _enter_study(self):
        self.mode = STUDY_MODE
        self.controller.enter_study()
        self._display_study_card()

    def _display_study_card(self):
        display_study_card(self.console, self.controller.study, self.controller.current_card())
        if not self.controller.study.is_empty:
            self.console.print("[dim][f] Flip  [n] Next  [p] Prev  [r] Restart  [x] Shuffle  [b] Back  [h] Help[/dim]\n")

    def _handle_study_action(self, action: str):
        """Handle study command"""
        command = action.lower()
        study = self.controller.study

        if command == 'f':
            study.flip()
            self._display_study_card()
        elif command in ['', 'n']:
            if study.next():
                self._display_study_card()
            elif not study.is_empty:
                self.console.print("[dim]Already on the last card[/dim]")
        elif command == 'p':
            if study.previous():
                self._display_study_card()
            elif not study.is_empty:
                self.console.print("[dim]Already on the first card[/dim]")
        elif command == 'r':
            self.controller.restart_study()
            self._display_study_card()
        elif command == 'x':
            enabled = self.controller.toggle_shuffle()
            self.console.print(f"[cyan]Shuffle {'on' if enabled else 'off'}[/cyan]")
            self._display_study_card()
        elif command == 'b':
            self.mode = EDIT_MODE
            display_deck_table(self.console, self.editor)
        elif command in ['h', '?']:
            show_study_help(self.console)
        elif command == 'q':
            self._quit()
        else:
            self.console.print(f"[yellow]Unknown command: '{action}'. Press 'h' for help[/yellow]")

    def _quit(self):
        """Quit, offering to save unsaved changes"""
        if self.editor.dirty:
            if Confirm.ask("Save changes before quitting?", default=True, console=self.console):
                self._save()
                if self.editor.dirty:
                    return
        self.console.print(Panel("👋 Goodbye!", style="blue"))
        self.running = False
