"""Shared services: the MemoSpark backend HTTP client."""

from .backend_client import BackendClient, get_backend_client

__all__ = ["BackendClient", "get_backend_client"]
