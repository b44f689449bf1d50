"""Flashmoji HTTP application."""
