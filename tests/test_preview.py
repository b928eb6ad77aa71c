import pytest

pytest.importorskip("pygame")

from config import AudioConfig
from notes.model import Hand
from render.renderer import next_key_range, KEY_RANGES
from audio.synth import Synth


def test_key_range_cycles():
    assert next_key_range("88") == "76"
    assert next_key_range("76") == "61"
    assert next_key_range("61") == "88"
    assert next_key_range("bogus") == "88"
    assert KEY_RANGES["88"] == (21, 108)


def test_disabled_synth_is_silent():
    synth = Synth(AudioConfig(enabled=False))
    assert not synth.available
    synth.note_on(60, 100, Hand.RIGHT)
    synth.note_off(60, Hand.RIGHT)
    synth.hand_notes_off(Hand.LEFT)
    synth.all_notes_off()
    synth.close()


class _RecordingSynth:
    available = True

    def __init__(self, cfg):
        self.calls = []

    def note_on(self, pitch, vel, hand):
        self.calls.append(('on', pitch, hand))

    def note_off(self, pitch, hand):
        self.calls.append(('off', pitch, hand))

    def hand_notes_off(self, hand):
        self.calls.append(('hand_off', hand))

    def all_notes_off(self):
        self.calls.append(('all_off',))

    def close(self):
        pass


class _NullRenderer:
    def __init__(self, cfg, title=""):
        self.cfg = cfg


@pytest.fixture
def preview(monkeypatch):
    import app
    from config import AppConfig
    from notes.model import Arrangement, Note

    monkeypatch.setattr(app, "Synth", _RecordingSynth)
    monkeypatch.setattr(app, "Renderer", _NullRenderer)
    arrangement = Arrangement(right_hand=[Note(72, 0.0, 1.0)], left_hand=[Note(48, 0.0, 1.0)])
    return app.PreviewApp(AppConfig(), arrangement)


def test_muting_a_hand_releases_its_sounding_notes(preview):
    preview._advance(0.0)
    assert ('on', 72, Hand.RIGHT) in preview.synth.calls

    preview._toggle_hand(Hand.RIGHT)
    assert ('hand_off', Hand.RIGHT) in preview.synth.calls

    preview._advance(1.5)
    offs = [c for c in preview.synth.calls if c[0] == 'off']
    assert ('off', 72, Hand.RIGHT) in offs
    assert ('off', 48, Hand.LEFT) in offs
