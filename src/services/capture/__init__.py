"""
Capture module - speech capability interface, session state machine and adapter.
"""

from .adapter import CaptureEngineAdapter
from .base import BaseCaptureEngine
from .session import CaptureSession

__all__ = ["BaseCaptureEngine", "CaptureEngineAdapter", "CaptureSession"]
