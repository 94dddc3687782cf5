"""
Terminal rendering for decks and study cards

Pure functions of the current editor/study state; nothing here mutates it.
"""

import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from flashcard_studio.deck import Card, DeckEditor
from flashcard_studio.study import StudySession

logger = logging.getLogger(__name__)

EMPTY_DECK_MESSAGE = "No flashcards yet. Generate some or add manually."
EMPTY_STUDY_MESSAGE = "This deck has no cards to study. Add or generate some first."


def _preview(text: str, width: int = 60) -> str:
    """Single-line preview of a possibly multi-line field"""
    flat = " ".join(text.split())
    if len(flat) > width:
        return flat[:width - 1] + "…"
    return flat


def display_deck_header(console: Console, editor: DeckEditor):
    """Deck name, card count and unsaved marker"""
    title = Text(editor.deck.name or "(unnamed)", style="bold green")
    title.append(f"  {len(editor)} cards", style="cyan")
    if editor.dirty:
        title.append("  ● unsaved", style="yellow")
    if editor.file_path:
        title.append(f"\n{editor.file_path}", style="dim")
    console.print(title)


def display_deck_table(console: Console, editor: DeckEditor):
    """Display the deck's cards in display order"""
    display_deck_header(console, editor)

    if not editor.cards:
        console.print(f"[yellow]{EMPTY_DECK_MESSAGE}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="cyan", width=4, justify="right")
    table.add_column("Question", style="white")
    table.add_column("Answer", style="green")

    for i, card in enumerate(editor.cards, 1):
        table.add_row(str(i), Text(_preview(card.question)), Text(_preview(card.answer)))

    console.print(table)


def display_card(console: Console, position: int, card: Card):
    """Show one card in full"""
    body = Text()
    body.append("Question:\n", style="bold cyan")
    body.append(card.question or "(empty)")
    body.append("\n\nAnswer:\n", style="bold green")
    body.append(card.answer or "(empty)")
    console.print(Panel(body, title=f"Card {position}", border_style="blue", padding=(1, 2)))


def display_study_card(console: Console, study: StudySession, card: Optional[Card]):
    """Render the card under the study cursor, question or answer face"""
    if study.is_empty or card is None:
        console.print(Panel(EMPTY_STUDY_MESSAGE, title="Study", border_style="yellow"))
        return

    if study.flipped:
        side, color, content = "ANSWER", "green", card.answer
    else:
        side, color, content = "QUESTION", "blue", card.question

    counter = f"{study.position} / {study.card_count}"
    shuffle = "  🔀" if study.shuffle_enabled else ""
    panel = Panel(
        Text(content) if content else Text("(empty)", style="dim"),
        title=f"{side} ({counter}){shuffle}",
        border_style=color,
        padding=(1, 2)
    )
    console.print(panel)


def display_models(console: Console, models: List[str]):
    """List installed Ollama models"""
    if not models:
        console.print("[yellow]No models installed. Try `ollama pull mistral`.[/yellow]")
        return

    table = Table(title="Available Models", show_header=True, header_style="bold cyan")
    table.add_column("#", style="cyan", width=4)
    table.add_column("Model", style="green")
    for i, name in enumerate(models, 1):
        table.add_row(str(i), name)
    console.print(table)


def display_status(console: Console, result: Dict[str, Any]):
    """Print a controller status result"""
    if result.get('success'):
        console.print(f"✅ [green]{escape(result.get('message', 'Done'))}[/green]")
    else:
        console.print(f"❌ [red]{escape(result.get('error', 'Unknown error'))}[/red]")


def show_editor_help(console: Console):
    """Display editor commands"""
    help_text = """
[bold cyan]Editor Commands:[/bold cyan]

[bold]Cards:[/bold]
  [yellow]l[/yellow]          - List cards
  [yellow]v N[/yellow]        - View card N
  [yellow]a[/yellow]          - Add a card
  [yellow]e N[/yellow]        - Edit card N
  [yellow]d N[/yellow]        - Delete card N
  [yellow]u N[/yellow]        - Move card N up
  [yellow]j N[/yellow]        - Move card N down
  [yellow]m N M[/yellow]      - Drop card N onto card M
  [yellow]r[/yellow]          - Rename deck

[bold]Generate:[/bold]
  [yellow]g[/yellow]          - Generate cards from text with Ollama
  [yellow]c[/yellow]          - Check Ollama connection and models

[bold]Files:[/bold]
  [yellow]n[/yellow]          - New deck
  [yellow]o[/yellow]          - Open deck
  [yellow]s[/yellow]          - Save
  [yellow]w[/yellow]          - Save as

[bold]Session:[/bold]
  [yellow]t[/yellow]          - Study this deck
  [yellow]h[/yellow]          - Show this help
  [yellow]q[/yellow]          - Quit
    """.strip()

    console.print(Panel(help_text, title="Help", border_style="cyan", padding=(1, 2)))


def show_study_help(console: Console):
    """Display study commands"""
    help_text = """
[bold cyan]Study Commands:[/bold cyan]

  [yellow]f[/yellow]          - Flip card
  [yellow]n[/yellow] / [yellow]Enter[/yellow]  - Next card
  [yellow]p[/yellow]          - Previous card
  [yellow]r[/yellow]          - Restart session
  [yellow]x[/yellow]          - Toggle shuffle (restarts)
  [yellow]b[/yellow]          - Back to editor
  [yellow]h[/yellow]          - Show this help
  [yellow]q[/yellow]          - Quit
    """.strip()

    console.print(Panel(help_text, title="Help", border_style="cyan", padding=(1, 2)))
