import sys
from pathlib import Path

import mido
import pytest

# Ensure the project root is on sys.path so top-level modules import during tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TPB = 480  # at the default tempo one beat is 0.5s


def build_midi(tracks, tempo=500000, name="Test Song", ticks_per_beat=TPB):
    """tracks: list of (track_name, channel, [(pitch, start_tick, dur_ticks, velocity), ...])"""
    mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    conductor = mido.MidiTrack()
    conductor.append(mido.MetaMessage('track_name', name=name, time=0))
    conductor.append(mido.MetaMessage('set_tempo', tempo=tempo, time=0))
    conductor.append(mido.MetaMessage('time_signature', numerator=3, denominator=4, time=0))
    conductor.append(mido.MetaMessage('key_signature', key='G', time=0))
    conductor.append(mido.MetaMessage('copyright', text='(c) nobody', time=0))
    conductor.append(mido.MetaMessage('end_of_track', time=0))
    mid.tracks.append(conductor)

    for track_name, channel, notes in tracks:
        events = []
        for pitch, start, dur, vel in notes:
            events.append((start, 1, mido.Message('note_on', note=pitch, velocity=vel, channel=channel)))
            events.append((start + dur, 0, mido.Message('note_off', note=pitch, velocity=0, channel=channel)))
        events.sort(key=lambda e: (e[0], e[1]))
        tr = mido.MidiTrack()
        tr.append(mido.MetaMessage('track_name', name=track_name, time=0))
        last = 0
        for t, _, msg in events:
            tr.append(msg.copy(time=t - last))
            last = t
        tr.append(mido.MetaMessage('end_of_track', time=0))
        mid.tracks.append(tr)
    return mid


# melody 72-77, bass 36/43, a held harmony chord and a hi-hat on the drum channel
SONG = [
    ("Lead", 0, [(72, 0, 480, 90), (74, 480, 480, 90), (76, 960, 480, 90), (77, 1440, 480, 90)]),
    ("Bass", 1, [(36, 0, 960, 80), (43, 960, 960, 80)]),
    ("Pad", 2, [(55, 0, 1920, 60), (60, 0, 1920, 60), (64, 0, 1920, 60)]),
    ("Drums", 9, [(42, 0, 240, 100), (42, 480, 240, 100)]),
]


@pytest.fixture
def song_path(tmp_path):
    path = tmp_path / "song.mid"
    build_midi(SONG).save(str(path))
    return str(path)


@pytest.fixture
def make_midi(tmp_path):
    def _make(tracks, filename="custom.mid", **kwargs):
        path = tmp_path / filename
        build_midi(tracks, **kwargs).save(str(path))
        return str(path)
    return _make
