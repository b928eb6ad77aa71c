# midi/parser.py
import logging
import os
import mido
from typing import Dict, List, Tuple
from notes.model import Note, Track, Header, Performance
from midi.tempo import TempoMap

MIDI_EXTENSIONS = (".mid", ".midi")
TEXT_META = ("text", "copyright", "marker", "cue_marker", "lyrics")

class MidiInputError(ValueError):
    """The source performance is missing, not a MIDI file, or unreadable."""

def _load(path: str) -> mido.MidiFile:
    if not os.path.isfile(path):
        raise MidiInputError(f'Input file "{path}" not found')
    if not path.lower().endswith(MIDI_EXTENSIONS):
        raise MidiInputError("Invalid file type. Please use a MIDI file (.mid or .midi)")
    try:
        return mido.MidiFile(path)
    except (OSError, EOFError, ValueError, KeyError, IndexError, mido.KeySignatureError) as e:
        raise MidiInputError(f"Could not parse MIDI file: {e}") from e

def _read_header(mid: mido.MidiFile) -> Header:
    header = Header(ticks_per_beat=mid.ticks_per_beat)
    for ti, tr in enumerate(mid.tracks):
        tick = 0
        for msg in tr:
            tick += msg.time
            if not msg.is_meta:
                continue
            if msg.type == 'set_tempo':
                header.tempos.append((tick, msg.tempo))
            elif msg.type == 'time_signature':
                header.time_signatures.append((tick, msg.numerator, msg.denominator))
            elif msg.type == 'key_signature':
                header.key_signatures.append((tick, msg.key))
            elif msg.type in TEXT_META:
                header.meta.append((tick, msg.type, msg.text))
            elif msg.type == 'track_name' and ti == 0 and not header.name:
                header.name = msg.name
    header.tempos.sort(key=lambda x: x[0])
    header.time_signatures.sort(key=lambda x: x[0])
    header.key_signatures.sort(key=lambda x: x[0])
    header.meta.sort(key=lambda x: x[0])
    return header

def _read_track_notes(tr: mido.MidiTrack, tempo: TempoMap) -> Dict[int, List[Note]]:
    """Pair note-on/off per (channel, pitch) first-in first-out, grouped by channel."""
    by_channel: Dict[int, List[Note]] = {}
    active: Dict[Tuple[int, int], List[Tuple[int, int]]] = {}
    tick = 0

    def close(ch: int, pitch: int, st: int, vel: int, end: int):
        start_s = tempo.to_seconds(st)
        dur = tempo.to_seconds(end) - start_s
        if dur <= 0:
            logging.debug("Dropping zero-length note %d on ch %d at tick %d", pitch, ch, st)
            return
        by_channel.setdefault(ch, []).append(Note(pitch=pitch, start=start_s, duration=dur, velocity=vel))

    for msg in tr:
        tick += msg.time
        if msg.type == 'note_on' and msg.velocity > 0:
            active.setdefault((msg.channel, msg.note), []).append((tick, msg.velocity))
            by_channel.setdefault(msg.channel, [])
        elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
            pending = active.get((msg.channel, msg.note))
            if pending:
                st, vel = pending.pop(0)
                close(msg.channel, msg.note, st, vel, tick)
    # close dangling
    for (ch, p), pending in active.items():
        for st, vel in pending:
            close(ch, p, st, vel, tick)
    for notes in by_channel.values():
        notes.sort(key=lambda n: n.start)
    return by_channel

def parse_performance(path: str) -> Performance:
    mid = _load(path)
    header = _read_header(mid)
    tempo = TempoMap(header.tempos, header.ticks_per_beat)
    perf = Performance(header=header)

    for tr in mid.tracks:
        name = next((m.name for m in tr if m.type == 'track_name'), "")
        by_channel = _read_track_notes(tr, tempo)
        if not by_channel:
            perf.tracks.append(Track(index=len(perf.tracks), name=name))
            continue
        for ch in sorted(by_channel):
            perf.tracks.append(Track(index=len(perf.tracks), name=name, channel=ch,
                                     notes=by_channel[ch]))
    logging.info("Parsed %s: %d track(s), %.2fs", os.path.basename(path), len(perf.tracks), perf.duration)
    return perf
