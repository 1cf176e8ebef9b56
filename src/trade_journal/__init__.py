# ABOUTME: Trade journal entry ingestion: rich-text normalization and image handling
# ABOUTME: Package root exposing the version string
"""Trade journal content ingestion."""

__version__ = "0.1.0"
