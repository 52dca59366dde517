"""
Commit module - auto-commit countdown and the update executor.
"""

from .executor import CommitExecutor, CommitOutcome
from .timer import AutoCommitTimer

__all__ = ["AutoCommitTimer", "CommitExecutor", "CommitOutcome"]
