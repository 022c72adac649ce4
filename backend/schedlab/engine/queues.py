from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

from .errors import SimulationError

UNBOUNDED = -1


class ReadyQueueSet:
    """N priority-ordered FIFO ready queues; level 0 is the highest priority.

    Each level carries its own quantum (UNBOUNDED = run until done or
    blocked); the set carries one global allotment (UNBOUNDED disables
    MLFQ boosting).
    """

    def __init__(self, quantums: Sequence[int], allotment: int = UNBOUNDED):
        if not quantums:
            raise SimulationError("a ready queue set needs at least one level")
        self._queues: List[Deque[int]] = [deque() for _ in quantums]
        self._quantums = [int(q) for q in quantums]
        self.allotment = int(allotment)

    def __len__(self) -> int:
        return len(self._queues)

    def quantum(self, level: int) -> int:
        return self._quantums[level]

    def queue_at(self, level: int) -> List[int]:
        return list(self._queues[level])

    def enqueue(self, level: int, pid: int) -> None:
        if self.level_of(pid) is not None:
            raise SimulationError(f"process {pid} is already queued")
        self._queues[level].append(pid)

    def dequeue_all(self, level: int) -> List[int]:
        drained = list(self._queues[level])
        self._queues[level].clear()
        return drained

    def remove_everywhere(self, pid: int) -> bool:
        # Linear scan over every level. A pid sits in at most one queue, and
        # simulator workloads are tens of processes, so this stays cheap.
        for q in self._queues:
            if pid in q:
                q.remove(pid)
                return True
        return False

    def level_of(self, pid: int) -> Optional[int]:
        for level, q in enumerate(self._queues):
            if pid in q:
                return level
        return None

    def head(self) -> Optional[Tuple[int, int]]:
        """(level, pid) of the first non-empty queue's head, scanning from level 0."""
        for level, q in enumerate(self._queues):
            if q:
                return level, q[0]
        return None

    def all_ready(self) -> List[int]:
        return [pid for q in self._queues for pid in q]

    def is_empty(self) -> bool:
        return not any(self._queues)

    def snapshot(self) -> List[List[int]]:
        return [list(q) for q in self._queues]
