from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for construct-once resolution.

    Use these values for binding-level ``lock_mode`` or the container default.
    """

    THREAD = "thread"
    """Guard first construction with ``threading.Lock``."""

    NONE = "none"
    """Disable locking around cache reads/writes.

    Concurrent first resolution from several threads may run the factory more
    than once.
    """
