"""
Flashmoji Database Layer

This module provides the Supabase client and the entry service the
image queue reports its outcomes to.
"""

from .client import get_supabase_admin_client, SupabaseClientError
from .entries import EntryStore, WordEntryService

__all__ = [
    "get_supabase_admin_client",
    "SupabaseClientError",
    "EntryStore",
    "WordEntryService",
]
