# app.py
import logging
import pygame
from typing import Dict, Set
from config import AppConfig
from notes.model import Arrangement, Hand
from render.renderer import Renderer, next_key_range
from audio.synth import Synth
from timeline.scheduler import Timeline

class PreviewApp:
    """Falling-notes playback of an arrangement, one colour per hand."""
    def __init__(self, cfg: AppConfig, arrangement: Arrangement, title: str = ""):
        self.cfg = cfg
        self.arrangement = arrangement
        self.title = title
        self.renderer = Renderer(cfg.render, title=f"Piano Arranger - {title}" if title else "Piano Arranger")
        self.synth = Synth(cfg.audio)
        self.timeline = Timeline(arrangement.assignments())

        self.is_playing = False
        self.auto_sound = self.synth.available
        self.hands: Set[Hand] = {Hand.RIGHT, Hand.LEFT}

        # 播放倍率
        self.playback_rates = [0.5, 0.75, 1.0, 1.25, 1.5]
        self.playback_idx = 2

    # ---------- state ----------
    def _stop_all(self):
        self.synth.all_notes_off()

    def _adjust_speed(self, delta: float):
        pps = self.renderer.cfg.pixels_per_second + delta
        self.renderer.cfg.pixels_per_second = max(60.0, min(1200.0, pps))

    def _toggle_hand(self, hand: Hand):
        if hand in self.hands and len(self.hands) > 1:
            self.hands.discard(hand)
            self.synth.hand_notes_off(hand)
        else:
            self.hands.add(hand)

    def _held_keys(self) -> Dict[int, Hand]:
        return {a.note.pitch: a.hand for a in self.timeline.sounding if a.hand in self.hands}

    def _handle_key(self, key: int) -> bool:
        """Returns False when the app should quit."""
        if key in (pygame.K_ESCAPE, pygame.K_q):
            return False
        if key == pygame.K_SPACE:
            self.is_playing = not self.is_playing
            if not self.is_playing:
                self._stop_all()
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self.auto_sound = not self.auto_sound and self.synth.available
            if not self.auto_sound:
                self._stop_all()
        elif key in (pygame.K_KP_PLUS, pygame.K_EQUALS):
            self._adjust_speed(+20)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self._adjust_speed(-20)
        elif key == pygame.K_s:
            self.playback_idx = (self.playback_idx + 1) % len(self.playback_rates)
        elif key == pygame.K_r:
            self.renderer.set_key_range(next_key_range(self.renderer.cfg.key_range))
        elif key == pygame.K_HOME:
            self._stop_all()
            self.timeline.rewind()
        elif key == pygame.K_1:
            self._toggle_hand(Hand.RIGHT)
        elif key == pygame.K_2:
            self._toggle_hand(Hand.LEFT)
        return True

    def _advance(self, dt: float):
        self.timeline.step(dt * self.playback_rates[self.playback_idx])
        for a in self.timeline.starting_notes():
            if self.auto_sound and a.hand in self.hands:
                self.synth.note_on(a.note.pitch, a.note.velocity, a.hand)
        # release every ending note, muted hand or not
        for a in self.timeline.ending_notes():
            if self.auto_sound:
                self.synth.note_off(a.note.pitch, a.hand)
        if self.timeline.finished:
            self.is_playing = False

    def _status(self) -> str:
        hands = "+".join(h.value.upper() for h in (Hand.RIGHT, Hand.LEFT) if h in self.hands)
        return "  |  ".join([
            f"t={self.timeline.time:6.2f}/{self.timeline.duration:.2f}s",
            f"PLAY: {'ON' if self.is_playing else 'OFF'}",
            f"SOUND: {'ON' if self.auto_sound else 'OFF'}",
            f"SPEED: {int(self.playback_rates[self.playback_idx] * 100)}%",
            f"RANGE: {self.renderer.cfg.key_range}",
            f"HANDS: {hands}",
            f"R={len(self.arrangement.right_hand)} L={len(self.arrangement.left_hand)}",
        ])

    # ---------- Main loop ----------
    def run(self):
        logging.info("Preview started: %d notes", self.arrangement.note_count)
        running = True
        try:
            while running:
                dt = self.renderer.tick(60)
                for e in pygame.event.get():
                    if e.type == pygame.QUIT:
                        running = False
                    elif e.type == pygame.KEYDOWN:
                        running = self._handle_key(e.key) and running
                if not running:
                    break
                if self.is_playing:
                    self._advance(dt)

                self.renderer.begin_frame()
                self.renderer.draw_status_bar(left_text=self.title, right_text=self._status())
                self.renderer.draw_notes(self.timeline.items, self.timeline.starts,
                                         self.timeline.time, self.hands)
                self.renderer.draw_keyboard(held=self._held_keys())
                self.renderer.end_frame()
        finally:
            self._stop_all()
            self.synth.close()
            pygame.quit()
