"""
Classification module - turns finalized text into a ParsedIntent.
"""

from .classifier import ClassifierClient

__all__ = ["ClassifierClient"]
