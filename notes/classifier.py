# ========================= notes/classifier.py =========================
import logging
from typing import Iterable, List
from notes.model import Track, Role, PERCUSSION_CHANNEL

MELODY_ABOVE = 65
BASS_BELOW = 52

def classify_pitch(average_pitch: float) -> Role:
    if average_pitch > MELODY_ABOVE:
        return Role.MELODY
    if average_pitch < BASS_BELOW:
        return Role.BASS
    return Role.HARMONY

def classify_tracks(tracks: Iterable[Track]) -> List[Track]:
    """Drop empty and percussion tracks, label the rest by average pitch.

    Returned tracks are new objects in the original relative order, so the
    source tracks keep their UNKNOWN role.
    """
    tracks = list(tracks)
    out: List[Track] = []
    for t in tracks:
        if not t.notes or t.channel == PERCUSSION_CHANNEL:
            logging.debug("Skipping track %d (%s): %s", t.index, t.name,
                          "empty" if not t.notes else "percussion")
            continue
        avg = sum(n.pitch for n in t.notes) / len(t.notes)
        role = classify_pitch(avg)
        out.append(Track(index=t.index, name=t.name or f"Track {t.index}", channel=t.channel,
                         notes=list(t.notes), role=role, average_pitch=avg))
        logging.debug("Track %d: %s - %s, avg pitch %.1f, notes %d",
                      t.index, t.name or "Unnamed", role.value, avg, len(t.notes))
    logging.info("Classified %d of %d tracks", len(out), len(tracks))
    return out
