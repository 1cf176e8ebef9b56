# ABOUTME: Image storage adapters implementing the ImageStore protocol
# ABOUTME: Local filesystem store with atomic per-file writes

from .local import LocalImageStore

__all__ = ["LocalImageStore"]
