from notes.model import Note, TimeSlice
from notes.slicing import build_time_slices, active_notes, max_polyphony, cap_polyphony


def test_no_notes_no_slices():
    assert build_time_slices([]) == []


def test_single_note_gives_one_slice():
    assert build_time_slices([Note(60, 0.0, 1.0)]) == [TimeSlice(0.0, 1.0)]


def test_boundaries_are_distinct_and_sorted():
    notes = [Note(60, 1.0, 1.0), Note(64, 0.0, 2.0), Note(67, 0.0, 1.0)]
    slices = build_time_slices(notes)
    assert [(s.start, s.end) for s in slices] == [(0.0, 1.0), (1.0, 2.0)]
    assert [s.duration for s in slices] == [1.0, 1.0]


def test_containment_not_overlap():
    a = Note(60, 0.0, 2.0)
    b = Note(64, 0.0, 2.0)
    short = Note(67, 0.0, 1.0)
    assert active_notes([a, short, b], TimeSlice(1.0, 2.0)) == [a, b]


def test_partial_overlap_is_not_active():
    late = Note(60, 0.5, 2.0)
    assert active_notes([late], TimeSlice(0.0, 1.0)) == []


def test_max_polyphony():
    assert max_polyphony([]) == 0
    chord = [Note(60, 0.0, 1.0), Note(64, 0.0, 1.0), Note(67, 0.0, 1.0)]
    assert max_polyphony(chord) == 3
    legato = [Note(60, 0.0, 1.0), Note(62, 1.0, 1.0), Note(64, 2.0, 1.0)]
    assert max_polyphony(legato) == 1


def test_cap_polyphony_drops_lowest_overlapping_notes():
    notes = [Note(72, 0.0, 2.0), Note(60, 0.5, 1.0), Note(67, 0.5, 1.0), Note(55, 2.0, 1.0)]
    kept = cap_polyphony(notes, 2)
    assert kept == [notes[0], notes[2], notes[3]]
    assert max_polyphony(kept) <= 2


def test_cap_polyphony_zero_ceiling_keeps_nothing():
    assert cap_polyphony([Note(60, 0.0, 1.0)], 0) == []
