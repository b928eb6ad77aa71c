from config import ArrangementConfig
from notes.model import Note
from notes.slicing import build_time_slices, max_polyphony
from notes.balancer import SinglePassBalancer, StrictCeilingBalancer, make_balancer


def _balance(right, left, strict=False, **limits):
    cfg = ArrangementConfig(strict_ceiling=strict, **limits)
    slices = build_time_slices(right + left)
    return make_balancer(cfg).apply(right, left, slices, cfg)


def test_make_balancer():
    assert type(make_balancer(ArrangementConfig())) is SinglePassBalancer
    assert type(make_balancer(ArrangementConfig(strict_ceiling=True))) is StrictCeilingBalancer


def test_right_overflow_moves_lowest_note_left():
    right = [Note(70, 0.0, 1.0), Note(72, 0.0, 1.0), Note(75, 0.0, 1.0)]
    out = _balance(right, [], max_right_hand_notes=2)
    assert [n.pitch for n in out.right_hand] == [72, 75]
    assert [n.pitch for n in out.left_hand] == [70]


def test_left_overflow_moves_highest_note_right():
    left = [Note(40, 0.0, 1.0), Note(48, 0.0, 1.0), Note(45, 0.0, 1.0)]
    out = _balance([], left, max_left_hand_notes=2)
    assert [n.pitch for n in out.left_hand] == [40, 45]
    assert [n.pitch for n in out.right_hand] == [48]


def test_tie_break_takes_first_in_list_order():
    first = Note(60, 0.0, 1.0, velocity=10)
    second = Note(60, 0.0, 1.0, velocity=20)
    top = Note(72, 0.0, 1.0)
    out = _balance([first, second, top], [], max_right_hand_notes=2)
    assert out.left_hand == [first]
    assert out.right_hand == [second, top]


def test_single_pass_can_leave_right_hand_over_ceiling():
    right = [Note(p, 0.0, 1.0) for p in (60, 62, 64, 66, 68)]
    out = _balance(right, [], max_right_hand_notes=2, max_left_hand_notes=1)
    # 60/62/64 go down, then 64 and 62 come back up
    assert [n.pitch for n in out.right_hand] == [66, 68, 64, 62]
    assert [n.pitch for n in out.left_hand] == [60]


def test_strict_ceiling_drops_what_cannot_be_placed():
    right = [Note(p, 0.0, 1.0) for p in (60, 62, 64, 66, 68)]
    out = _balance(right, [], strict=True, max_right_hand_notes=2, max_left_hand_notes=1)
    assert [n.pitch for n in out.right_hand] == [66, 68]
    assert [n.pitch for n in out.left_hand] == [60]


def test_strict_ceiling_bounds_notes_held_across_slices():
    # 60 is kept whole in the first slice, then crowded in the second
    right = [Note(60, 0.0, 2.0)] + [Note(p, 1.0, 1.0) for p in (62, 64, 66)]
    out = _balance(right, [], strict=True, max_right_hand_notes=1, max_left_hand_notes=1)
    assert max_polyphony(out.right_hand) <= 1
    assert max_polyphony(out.left_hand) <= 1
    assert [n.pitch for n in out.right_hand] == [66]
    assert [n.pitch for n in out.left_hand] == [60]


def test_within_ceilings_nothing_moves():
    right = [Note(72, 0.0, 1.0), Note(76, 0.5, 1.0)]
    left = [Note(48, 0.0, 2.0)]
    out = _balance(right, left)
    assert out.right_hand == right
    assert out.left_hand == left


def test_notes_spanning_several_slices_recorded_once():
    held = Note(72, 0.0, 3.0)
    right = [held, Note(76, 0.0, 1.0), Note(79, 1.0, 1.0), Note(81, 2.0, 1.0)]
    out = _balance(right, [])
    assert out.right_hand.count(held) == 1
    assert len(out.right_hand) == 4


def test_moves_are_per_slice():
    # only the first second is crowded; the low note stays right afterwards
    low = Note(70, 0.0, 2.0)
    right = [low, Note(72, 0.0, 1.0), Note(75, 0.0, 1.0)]
    out = _balance(right, [], max_right_hand_notes=2)
    assert low in out.left_hand
    assert low in out.right_hand


def test_inputs_are_not_mutated():
    right = [Note(70, 0.0, 1.0), Note(72, 0.0, 1.0), Note(75, 0.0, 1.0)]
    left = [Note(40, 0.0, 1.0)]
    before = (list(right), list(left))
    _balance(right, left, max_right_hand_notes=1, max_left_hand_notes=1)
    assert (right, left) == before


def test_empty_input():
    out = _balance([], [])
    assert out.right_hand == [] and out.left_hand == []
