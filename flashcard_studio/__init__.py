"""
Flashcard Studio

Local flashcard deck editor with LLM-assisted generation and a study player.
"""

__version__ = "0.1.0"
