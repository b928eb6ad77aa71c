# ========================= notes/distribution.py =========================
import logging
from typing import List
from notes.model import Track, Role, Arrangement
from config import ArrangementConfig

def _priority(t: Track):
    if t.role is Role.MELODY:
        return (0, 0)
    if t.role is Role.BASS:
        return (1, 0)
    return (2, -t.note_count)

def prioritize_tracks(tracks: List[Track]) -> List[Track]:
    """Melody, then bass, then the rest by descending note count (stable)."""
    return sorted(tracks, key=_priority)

def distribute_hands(tracks: List[Track], cfg: ArrangementConfig) -> Arrangement:
    """Static per-note split: role first, then pitch against the split point.

    Notes are concatenated track by track in priority order, so neither hand
    is time-sorted here.
    """
    out = Arrangement()
    for t in prioritize_tracks(tracks):
        logging.debug("Distributing track %d (%s): %d notes", t.index, t.role.value, t.note_count)
        to_right_always = cfg.preserve_melody and t.role is Role.MELODY
        for n in t.notes:
            if to_right_always or n.pitch >= cfg.split_point:
                out.right_hand.append(n)
            else:
                out.left_hand.append(n)
    logging.info("Distribution: right=%d left=%d", len(out.right_hand), len(out.left_hand))
    return out
