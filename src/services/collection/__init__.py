"""
Collection module - client for the remote classifier and collection store.
"""

from .client import CollectionClient

__all__ = ["CollectionClient"]
