# notes/model.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Tuple

DEFAULT_VELOCITY = 64
PERCUSSION_CHANNEL = 9  # GM: ch10 (index 9)

class Role(str, Enum):
    MELODY = "melody"
    BASS = "bass"
    HARMONY = "harmony"
    UNKNOWN = "unknown"

class Hand(str, Enum):
    RIGHT = "right"
    LEFT = "left"

@dataclass(frozen=True)
class Note:
    pitch: int       # MIDI note number
    start: float     # seconds
    duration: float  # seconds
    velocity: int = DEFAULT_VELOCITY

    @property
    def end(self) -> float:
        return self.start + self.duration

    @property
    def key(self) -> Tuple[float, int]:
        return (self.start, self.pitch)

@dataclass
class Track:
    index: int
    name: str
    channel: int = 0
    notes: List[Note] = field(default_factory=list)
    role: Role = Role.UNKNOWN
    average_pitch: float = 0.0

    @property
    def note_count(self) -> int:
        return len(self.notes)

@dataclass(frozen=True)
class HandAssignment:
    note: Note
    hand: Hand

@dataclass(frozen=True)
class TimeSlice:
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def holds(self, note: Note) -> bool:
        """True only when the note spans the whole slice."""
        return note.start <= self.start and note.end >= self.end

@dataclass
class Arrangement:
    right_hand: List[Note] = field(default_factory=list)
    left_hand: List[Note] = field(default_factory=list)

    @property
    def note_count(self) -> int:
        return len(self.right_hand) + len(self.left_hand)

    def hand(self, hand: Hand) -> List[Note]:
        return self.right_hand if hand is Hand.RIGHT else self.left_hand

    def assignments(self) -> Iterator[HandAssignment]:
        tagged = [HandAssignment(n, Hand.RIGHT) for n in self.right_hand]
        tagged += [HandAssignment(n, Hand.LEFT) for n in self.left_hand]
        tagged.sort(key=lambda a: (a.note.start, a.note.pitch))
        return iter(tagged)

@dataclass
class Header:
    name: str = ""
    ticks_per_beat: int = 480
    tempos: List[Tuple[int, int]] = field(default_factory=list)                 # (tick, us/beat)
    time_signatures: List[Tuple[int, int, int]] = field(default_factory=list)  # (tick, num, den)
    key_signatures: List[Tuple[int, str]] = field(default_factory=list)        # (tick, key)
    meta: List[Tuple[int, str, str]] = field(default_factory=list)             # (tick, type, text)

@dataclass
class Performance:
    header: Header
    tracks: List[Track] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return max((n.end for t in self.tracks for n in t.notes), default=0.0)
