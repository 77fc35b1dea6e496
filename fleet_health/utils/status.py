"""Check kind enumeration."""

from enum import Enum
from typing import List


class CheckKind(Enum):
    """Measurement produced by one probe against one instance."""

    REACHABILITY = "reachability"
    HEAP_USED = "heap_used"
    THREAD_COUNT = "thread_count"
    CPU_TIME = "cpu_time"
    ACTIVE_SESSIONS = "active_sessions"

    @classmethod
    def metric_kinds(cls) -> List["CheckKind"]:
        """Kinds answered by the metrics proxy, in report order."""
        return [kind for kind in cls if kind is not cls.REACHABILITY]

    @property
    def order(self) -> int:
        return list(CheckKind).index(self)
