# ABOUTME: Business logic and orchestration layer
# ABOUTME: Submission → normalized, persisted entry → rendered or exported output

"""
Core Layer: Business logic and workflow orchestration

This layer handles:
- The journal field catalogue and plain-text export
- Service API composing normalization, storage and persistence
- Result models returned to the CLI and other callers

Data Flow: content/ + persistence/ → Business processing → Final outputs
"""

from .fields import FIELD_CATALOGUE, FieldSpec, format_entry_as_text
from .models import RenderedEntry, SaveResult

# Import service on-demand to avoid circular imports
# Use: from trade_journal.core.service import JournalService

__all__ = [
    "FIELD_CATALOGUE",
    "FieldSpec",
    "RenderedEntry",
    "SaveResult",
    "format_entry_as_text",
]
