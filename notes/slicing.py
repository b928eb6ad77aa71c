# notes/slicing.py
from typing import Iterable, List, Sequence
from notes.model import Note, TimeSlice

def build_time_slices(notes: Iterable[Note]) -> List[TimeSlice]:
    """One slice between every pair of adjacent note boundaries."""
    points = set()
    for n in notes:
        points.add(n.start)
        points.add(n.end)
    ordered = sorted(points)
    return [TimeSlice(a, b) for a, b in zip(ordered, ordered[1:])]

def active_notes(notes: Iterable[Note], ts: TimeSlice) -> List[Note]:
    return [n for n in notes if ts.holds(n)]

def max_polyphony(notes: Iterable[Note]) -> int:
    events = []
    for n in notes:
        events.append((n.start, 1))
        events.append((n.end, -1))
    # note-offs first at equal times so back-to-back notes don't stack
    events.sort(key=lambda e: (e[0], e[1]))
    cur = peak = 0
    for _, delta in events:
        cur += delta
        peak = max(peak, cur)
    return peak

def cap_polyphony(notes: Sequence[Note], ceiling: int) -> List[Note]:
    """Drop the lowest sounding note whenever more than `ceiling` overlap.

    Kept notes come back in their input order.
    """
    order = sorted(range(len(notes)), key=lambda k: notes[k].start)
    dropped = set()
    sounding: List[int] = []
    for k in order:
        start = notes[k].start
        sounding = [j for j in sounding if notes[j].end > start]
        sounding.append(k)
        while len(sounding) > ceiling:
            low = min(range(len(sounding)), key=lambda s: notes[sounding[s]].pitch)
            dropped.add(sounding.pop(low))
    return [n for k, n in enumerate(notes) if k not in dropped]
