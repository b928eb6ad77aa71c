# audio/synth.py
import logging
import pygame.midi
from config import AudioConfig
from notes.model import Hand
from midi.writer import ACOUSTIC_GRAND_PIANO

class Synth:
    """
    System MIDI output for auditioning an arrangement.
    Each hand plays on its own channel so note-offs never cross hands.
    Without an output device every call is a no-op.
    """
    def __init__(self, cfg: AudioConfig):
        self.cfg = cfg
        self.midi_out = None
        self.channels = {Hand.RIGHT: cfg.right_channel, Hand.LEFT: cfg.left_channel}
        self._held = {}  # (hand, pitch) -> count
        if not cfg.enabled:
            return
        try:
            pygame.midi.init()
            dev = pygame.midi.get_default_output_id()
            if dev != -1:
                self.midi_out = pygame.midi.Output(dev)
                for ch in self.channels.values():
                    self.midi_out.set_instrument(ACOUSTIC_GRAND_PIANO, ch)
                logging.info("Synth using system MIDI out (device %d)", dev)
            else:
                logging.warning("Synth: no MIDI output device found")
        except pygame.midi.MidiException:
            logging.exception("Synth: MIDI init failed")
            self.midi_out = None

    @property
    def available(self) -> bool:
        return self.midi_out is not None

    def note_on(self, pitch: int, vel: int, hand: Hand):
        if not self.available:
            return
        v = max(1, min(int(vel), 127))
        self.midi_out.note_on(int(pitch), v, self.channels[hand])
        key = (hand, int(pitch))
        self._held[key] = self._held.get(key, 0) + 1

    def note_off(self, pitch: int, hand: Hand):
        if not self.available:
            return
        key = (hand, int(pitch))
        left = self._held.get(key, 0) - 1
        # same pitch restruck in this hand: keep it sounding
        if left > 0:
            self._held[key] = left
            return
        self._held.pop(key, None)
        self.midi_out.note_off(int(pitch), 0, self.channels[hand])

    def all_notes_off(self):
        if not self.available:
            return
        for hand, pitch in list(self._held):
            self.midi_out.note_off(pitch, 0, self.channels[hand])
        self._held.clear()

    def hand_notes_off(self, hand: Hand):
        if not self.available:
            return
        for key in [k for k in self._held if k[0] == hand]:
            self.midi_out.note_off(key[1], 0, self.channels[hand])
            del self._held[key]

    def close(self):
        if self.midi_out:
            self.all_notes_off()
            self.midi_out.close()
            self.midi_out = None
        if self.cfg.enabled:
            pygame.midi.quit()
