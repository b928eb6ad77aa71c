# midi/tempo.py
from bisect import bisect_right
from typing import Iterable, List, Tuple
import mido

DEFAULT_TEMPO = 500000  # 120 bpm

class TempoMap:
    """Converts absolute ticks to seconds and back across tempo changes."""
    def __init__(self, tempos: Iterable[Tuple[int, int]], ticks_per_beat: int):
        self.tpb = ticks_per_beat
        changes = sorted(tempos, key=lambda x: x[0])
        if not changes or changes[0][0] > 0:
            changes.insert(0, (0, DEFAULT_TEMPO))
        # later change wins when two share a tick
        dedup: List[Tuple[int, int]] = []
        for tick, tempo in changes:
            if dedup and dedup[-1][0] == tick:
                dedup[-1] = (tick, tempo)
            else:
                dedup.append((tick, tempo))
        self.ticks = [t for t, _ in dedup]
        self.tempos = [v for _, v in dedup]
        self.seconds = [0.0]
        for i in range(1, len(dedup)):
            span = self.ticks[i] - self.ticks[i - 1]
            self.seconds.append(self.seconds[-1] + mido.tick2second(span, self.tpb, self.tempos[i - 1]))

    def to_seconds(self, tick: int) -> float:
        i = bisect_right(self.ticks, tick) - 1
        return self.seconds[i] + mido.tick2second(tick - self.ticks[i], self.tpb, self.tempos[i])

    def to_ticks(self, seconds: float) -> int:
        i = bisect_right(self.seconds, seconds) - 1
        i = max(0, i)
        return self.ticks[i] + int(round(mido.second2tick(seconds - self.seconds[i], self.tpb, self.tempos[i])))
