# timeline/scheduler.py
import heapq
from typing import Iterable, Iterator, List, Tuple
from notes.model import HandAssignment

class Timeline:
    """Advances time and yields hand assignments as they start and stop.
    The preview app drives audio and key highlights from these events.
    """
    def __init__(self, assignments: Iterable[HandAssignment]):
        self.items: List[HandAssignment] = sorted(assignments, key=lambda a: (a.note.start, a.note.pitch))
        self.starts: List[float] = [a.note.start for a in self.items]
        self.i = 0
        self.time = 0.0
        self._sounding: List[Tuple[float, int, HandAssignment]] = []  # (end, seq, item)

    @property
    def duration(self) -> float:
        return max((a.note.end for a in self.items), default=0.0)

    @property
    def sounding(self) -> List[HandAssignment]:
        return [a for _, _, a in self._sounding]

    def step(self, dt: float):
        self.time += dt

    def rewind(self):
        self.i = 0
        self.time = 0.0
        self._sounding.clear()

    def starting_notes(self, tolerance: float = 0.003) -> Iterator[HandAssignment]:
        t = self.time
        while self.i < len(self.items) and self.items[self.i].note.start <= t + tolerance:
            a = self.items[self.i]
            heapq.heappush(self._sounding, (a.note.end, self.i, a))
            yield a
            self.i += 1

    def ending_notes(self, tolerance: float = 0.003) -> Iterator[HandAssignment]:
        while self._sounding and self._sounding[0][0] < self.time - tolerance:
            yield heapq.heappop(self._sounding)[2]

    @property
    def finished(self) -> bool:
        return self.i >= len(self.items) and not self._sounding
