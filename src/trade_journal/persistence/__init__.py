# ABOUTME: Database operations and data persistence layer
# ABOUTME: Stores normalized entries and image manifests keyed by calendar date

"""
Persistence Layer: Save and retrieve normalized journal entries

This layer handles:
- SQLModel tables for entries and images
- Create and update paths with the same output shape
- Replace-on-update for direct uploads, additive inline images
- Database connection and transaction management

Data Flow: content/ NormalizedEntry → Database → core/ rendering and export
"""

from .manager import DatabaseManager, JournalEntryState
from .models import JournalEntry, JournalImage

__all__ = [
    "DatabaseManager",
    "JournalEntry",
    "JournalEntryState",
    "JournalImage",
]
