# midi/writer.py
import logging
import math
import mido
from typing import List, Tuple
from notes.model import Note, Header, Arrangement, DEFAULT_VELOCITY
from midi.tempo import TempoMap

ACOUSTIC_GRAND_PIANO = 0
RIGHT_HAND_NAME = "Right Hand"
LEFT_HAND_NAME = "Left Hand"
RIGHT_HAND_CHANNEL = 0
LEFT_HAND_CHANNEL = 1

Event = Tuple[int, int, mido.Message]  # (abs tick, order, msg)

def rebuild_track_from_abs(events: List[Event]) -> mido.MidiTrack:
    # note-offs before note-ons on the same tick
    events.sort(key=lambda e: (e[0], e[1]))
    track = mido.MidiTrack()
    last = 0
    for t_abs, _, msg in events:
        track.append(msg.copy(time=max(0, t_abs - last)))
        last = t_abs
    track.append(mido.MetaMessage('end_of_track', time=0))
    return track

def _conductor_track(header: Header) -> mido.MidiTrack:
    events: List[Event] = []
    if header.name:
        events.append((0, 0, mido.MetaMessage('track_name', name=header.name)))
    for tick, tempo in header.tempos:
        events.append((tick, 1, mido.MetaMessage('set_tempo', tempo=tempo)))
    for tick, num, den in header.time_signatures:
        events.append((tick, 1, mido.MetaMessage('time_signature', numerator=num, denominator=den)))
    for tick, key in header.key_signatures:
        events.append((tick, 1, mido.MetaMessage('key_signature', key=key)))
    for tick, kind, text in header.meta:
        events.append((tick, 2, mido.MetaMessage(kind, text=text)))
    return rebuild_track_from_abs(events)

def _note_events(note: Note, channel: int, tempo: TempoMap) -> List[Event]:
    """Raises ValueError/TypeError for a note that can't be written."""
    if not (math.isfinite(note.start) and math.isfinite(note.duration)):
        raise ValueError(f"non-finite timing start={note.start} duration={note.duration}")
    on_tick = tempo.to_ticks(note.start)
    off_tick = tempo.to_ticks(note.end)
    if on_tick < 0 or note.duration <= 0:
        raise ValueError(f"bad timing start={note.start} duration={note.duration}")
    vel = note.velocity or DEFAULT_VELOCITY
    on = mido.Message('note_on', note=note.pitch, velocity=vel, channel=channel)
    off = mido.Message('note_off', note=note.pitch, velocity=0, channel=channel)
    return [(on_tick, 1, on), (max(off_tick, on_tick), 0, off)]

def _hand_track(name: str, channel: int, notes: List[Note], tempo: TempoMap) -> Tuple[mido.MidiTrack, int]:
    events: List[Event] = [
        (0, -2, mido.MetaMessage('track_name', name=name)),
        (0, -1, mido.Message('program_change', program=ACOUSTIC_GRAND_PIANO, channel=channel)),
    ]
    added = 0
    for i, n in enumerate(notes):
        try:
            events.extend(_note_events(n, channel, tempo))
            added += 1
        except (ValueError, TypeError, OverflowError) as e:
            logging.warning("Error adding %s note %d (%r): %s", name.lower(), i, n, e)
    return rebuild_track_from_abs(events), added

def build_piano_midi(header: Header, arrangement: Arrangement) -> mido.MidiFile:
    """Conductor track with the source header, then the two hand tracks."""
    tempo = TempoMap(header.tempos, header.ticks_per_beat)
    out = mido.MidiFile(type=1, ticks_per_beat=header.ticks_per_beat)
    out.tracks.append(_conductor_track(header))

    right, n_right = _hand_track(RIGHT_HAND_NAME, RIGHT_HAND_CHANNEL, arrangement.right_hand, tempo)
    left, n_left = _hand_track(LEFT_HAND_NAME, LEFT_HAND_CHANNEL, arrangement.left_hand, tempo)
    out.tracks.append(right)
    out.tracks.append(left)
    logging.info("Generated MIDI tracks: right=%d left=%d", n_right, n_left)

    if n_right == 0 and n_left == 0:
        logging.warning("No notes in output tracks! (arrangement had right=%d left=%d)",
                        len(arrangement.right_hand), len(arrangement.left_hand))
    return out

def write_piano_midi(header: Header, arrangement: Arrangement, path: str) -> mido.MidiFile:
    mid = build_piano_midi(header, arrangement)
    mid.save(path)
    logging.info("Saved optimized MIDI to: %s", path)
    return mid
