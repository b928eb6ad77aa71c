# ========================= notes/pipeline.py =========================
import logging
import os
from dataclasses import dataclass
from typing import List, Tuple
from config import ArrangementConfig
from notes.model import Track, Arrangement, Performance
from notes.classifier import classify_tracks
from notes.distribution import distribute_hands
from notes.slicing import build_time_slices, max_polyphony
from notes.balancer import make_balancer
from midi.parser import parse_performance
from midi.writer import write_piano_midi

@dataclass
class ArrangeStats:
    original_tracks: int
    right_hand_notes: int
    left_hand_notes: int
    duration: float
    right_hand_polyphony: int = 0
    left_hand_polyphony: int = 0

    def to_dict(self) -> dict:
        return {
            "originalTracks": self.original_tracks,
            "rightHandNotes": self.right_hand_notes,
            "leftHandNotes": self.left_hand_notes,
            "duration": self.duration,
            "rightHandPolyphony": self.right_hand_polyphony,
            "leftHandPolyphony": self.left_hand_polyphony,
        }

def arrange(tracks: List[Track], cfg: ArrangementConfig) -> Arrangement:
    classified = classify_tracks(tracks)
    initial = distribute_hands(classified, cfg)
    slices = build_time_slices(initial.right_hand + initial.left_hand)
    logging.debug("Created %d time slices", len(slices))
    return make_balancer(cfg).apply(initial.right_hand, initial.left_hand, slices, cfg)

def arrange_performance(perf: Performance, cfg: ArrangementConfig) -> Tuple[Arrangement, ArrangeStats]:
    result = arrange(perf.tracks, cfg)
    stats = ArrangeStats(
        original_tracks=len(perf.tracks),
        right_hand_notes=len(result.right_hand),
        left_hand_notes=len(result.left_hand),
        duration=perf.duration,
        right_hand_polyphony=max_polyphony(result.right_hand),
        left_hand_polyphony=max_polyphony(result.left_hand),
    )
    return result, stats

def optimize_file(input_path: str, output_path: str, cfg: ArrangementConfig) -> ArrangeStats:
    """Read a performance, arrange it for two hands and write the result."""
    perf = parse_performance(input_path)
    logging.info("Arranging %s with %s", os.path.basename(input_path), cfg)
    result, stats = arrange_performance(perf, cfg)
    write_piano_midi(perf.header, result, output_path)
    return stats
