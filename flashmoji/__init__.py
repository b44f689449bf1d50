"""
Flashmoji: emoji image generation for language-learning flashcards.
"""

__version__ = "0.1.0"
