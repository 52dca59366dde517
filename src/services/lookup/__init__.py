"""
Lookup module - read-only collection search for retrieval verdicts.
"""

from .router import LookupRouter

__all__ = ["LookupRouter"]
