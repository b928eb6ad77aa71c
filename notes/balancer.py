# ========================= notes/balancer.py =========================
import logging
from typing import List, Sequence, Tuple
from notes.model import Note, TimeSlice, Arrangement
from notes.slicing import active_notes, cap_polyphony
from config import ArrangementConfig

def _pop_lowest(notes: List[Note]) -> Note:
    # min() keeps the first of equal pitches, in current list order
    i = min(range(len(notes)), key=lambda k: notes[k].pitch)
    return notes.pop(i)

def _pop_highest(notes: List[Note]) -> Note:
    i = max(range(len(notes)), key=lambda k: notes[k].pitch)
    return notes.pop(i)

class BalanceStrategy:
    def balance_slice(self, right: List[Note], left: List[Note],
                      cfg: ArrangementConfig) -> Tuple[List[Note], List[Note]]:
        raise NotImplementedError

    def apply(self, right: Sequence[Note], left: Sequence[Note],
              slices: Sequence[TimeSlice], cfg: ArrangementConfig) -> Arrangement:
        out = Arrangement()
        seen_right, seen_left = set(), set()
        for i, ts in enumerate(slices):
            sim_right = active_notes(right, ts)
            sim_left = active_notes(left, ts)
            if i == 0:
                logging.debug("First slice [%.3f, %.3f): right=%d left=%d",
                              ts.start, ts.end, len(sim_right), len(sim_left))
            sim_right, sim_left = self.balance_slice(sim_right, sim_left, cfg)
            for n in sim_right:
                if n.key not in seen_right:
                    seen_right.add(n.key)
                    out.right_hand.append(n)
            for n in sim_left:
                if n.key not in seen_left:
                    seen_left.add(n.key)
                    out.left_hand.append(n)
        logging.info("Balanced %d slices: right %d -> %d, left %d -> %d", len(slices),
                     len(right), len(out.right_hand), len(left), len(out.left_hand))
        return out

class SinglePassBalancer(BalanceStrategy):
    """Push the lowest right-hand notes down, then the highest left-hand notes up.

    Each pass runs once per slice. When a slice holds more notes than both
    ceilings together, the right hand can end over its ceiling again.
    """
    def balance_slice(self, right, left, cfg):
        while len(right) > cfg.max_right_hand_notes:
            left.append(_pop_lowest(right))
        while len(left) > cfg.max_left_hand_notes:
            right.append(_pop_highest(left))
        return right, left

class StrictCeilingBalancer(SinglePassBalancer):
    """Single pass, then drop whatever a hand still cannot hold.

    Per-slice trimming cannot undo a note already kept at full length in an
    earlier slice, so each finished hand is capped over its whole timeline too.
    """
    def balance_slice(self, right, left, cfg):
        right, left = super().balance_slice(right, left, cfg)
        dropped = 0
        while len(right) > cfg.max_right_hand_notes:
            _pop_lowest(right)
            dropped += 1
        if dropped:
            logging.debug("Strict ceiling dropped %d note(s) from the right hand", dropped)
        return right, left

    def apply(self, right, left, slices, cfg):
        out = super().apply(right, left, slices, cfg)
        capped = Arrangement(right_hand=cap_polyphony(out.right_hand, cfg.max_right_hand_notes),
                             left_hand=cap_polyphony(out.left_hand, cfg.max_left_hand_notes))
        removed = len(out.right_hand) + len(out.left_hand) - len(capped.right_hand) - len(capped.left_hand)
        if removed:
            logging.info("Strict ceiling removed %d overlapping note(s)", removed)
        return capped

def make_balancer(cfg: ArrangementConfig) -> BalanceStrategy:
    return StrictCeilingBalancer() if cfg.strict_ceiling else SinglePassBalancer()
