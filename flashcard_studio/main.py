#!/usr/bin/env python3
"""
Flashcard Studio CLI - edit, generate and study flashcard decks in your terminal

Main entry point with Click commands.
"""

import os
import sys
import logging
import click
from rich.console import Console

from flashcard_studio import storage
from flashcard_studio.app import StudioController
from flashcard_studio.client import OllamaClient
from flashcard_studio.config import StudioConfig
from flashcard_studio.deck import DeckEditor
from flashcard_studio.display import display_deck_table, display_models, display_status
from flashcard_studio.errors import ConnectivityError, LoadError
from flashcard_studio.session import InteractiveStudioSession, console_confirm
from flashcard_studio.study import StudySession

# Set up logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

console = Console()


def _build_controller(ctx, confirm=None) -> StudioController:
    config = ctx.obj['CONFIG']
    return StudioController(
        client=OllamaClient(config),
        confirm=confirm or console_confirm(console),
        config=config
    )


def _fail(ctx, e: Exception):
    console.print(f"[red]Error: {e}[/red]")
    if ctx.obj['VERBOSE']:
        raise e
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.pass_context
@click.option(
    '--ollama-url',
    envvar='FLASHCARD_STUDIO_OLLAMA_URL',
    help='Ollama server URL (default: http://localhost:11434)'
)
@click.option(
    '--model', '-m',
    envvar='FLASHCARD_STUDIO_MODEL',
    help='Model used for generation (default: mistral)'
)
@click.option(
    '--deck-dir',
    envvar='FLASHCARD_STUDIO_DECK_DIR',
    type=click.Path(file_okay=False),
    help='Directory suggested for new decks (default: ~/FlashcardDecks)'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def cli(ctx, ollama_url, model, deck_dir, verbose):
    """
    Flashcard Studio - build flashcard decks with a local LLM and study them

    Run without arguments to start the interactive editor.

    \b
    Examples:
        flashcard-studio                            # Interactive editor
        flashcard-studio edit decks/biology.json    # Open a deck
        flashcard-studio study decks/biology.json --shuffle
        flashcard-studio generate notes.txt -o decks/notes.json
        flashcard-studio models                     # Check Ollama
    """
    if verbose:
        logging.getLogger('flashcard_studio').setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.INFO)

    config = StudioConfig()
    if ollama_url:
        config.ollama_url = ollama_url
    if model:
        config.model = model
    if deck_dir:
        config.deck_dir = deck_dir

    ctx.ensure_object(dict)
    ctx.obj['CONFIG'] = config
    ctx.obj['VERBOSE'] = verbose

    # If no subcommand, default to the interactive editor
    if ctx.invoked_subcommand is None:
        ctx.invoke(edit)


@cli.command()
@click.pass_context
@click.argument('path', required=False, type=click.Path(dir_okay=False))
def edit(ctx, path):
    """Start the interactive editor (default command)"""
    try:
        controller = _build_controller(ctx)
        if path:
            result = controller.open_deck(path)
            display_status(console, result)
            if not result['success']:
                sys.exit(1)

        InteractiveStudioSession(controller, console).run()

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--shuffle', is_flag=True, help='Study cards in random order')
def study(ctx, path, shuffle):
    """Study a saved deck"""
    try:
        config = ctx.obj['CONFIG']
        deck = storage.load_deck(path)
        controller = StudioController(
            client=OllamaClient(config),
            confirm=console_confirm(console),
            config=config,
            editor=DeckEditor(deck, path),
            study=StudySession(shuffle_enabled=shuffle)
        )
        InteractiveStudioSession(controller, console).run(start_in_study=True)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False), help='Deck file to create or update')
@click.option('--name', help='Deck name for a new deck')
@click.option('--append/--replace', default=True, help='Add to existing cards or replace them (default: append)')
def generate(ctx, source, output, name, append):
    """Generate flashcards from a text file and save them to a deck"""
    try:
        choice = "Add to Existing" if append else "Replace All"
        controller = _build_controller(ctx, confirm=lambda prompt, options: choice)

        if os.path.exists(output):
            controller.editor.load(storage.load_deck(output), output)
        else:
            controller.editor.new_deck()
            controller.editor.file_path = output
            if name:
                controller.editor.rename_deck(name)

        status = controller.refresh_models()
        if not status['success']:
            display_status(console, status)
            sys.exit(1)

        console.print("🧠 [bold]Generating flashcards...[/bold]")
        with console.status("Waiting for Ollama..."):
            result = controller.generate(source.read())
        display_status(console, result)
        if not result['success']:
            sys.exit(1)

        saved = controller.save()
        display_status(console, saved)
        if not saved['success']:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
def models(ctx):
    """List models available on the Ollama server"""
    client = OllamaClient(ctx.obj['CONFIG'])
    try:
        names = client.list_available_models()
    except ConnectivityError as e:
        console.print(f"❌ [red]{e}[/red] at {client.base_url}")
        sys.exit(1)

    console.print(f"✅ Ollama connected at {client.base_url}\n")
    display_models(console, names)


@cli.command()
@click.pass_context
@click.argument('path', type=click.Path(dir_okay=False))
def show(ctx, path):
    """Print a deck's cards"""
    try:
        deck = storage.load_deck(path)
    except LoadError as e:
        _fail(ctx, e)
        return
    display_deck_table(console, DeckEditor(deck, path))


@cli.command()
@click.pass_context
def version(ctx):
    """Show version information"""
    from flashcard_studio import __version__
    console.print(f"Flashcard Studio v{__version__}")


if __name__ == '__main__':
    cli()
