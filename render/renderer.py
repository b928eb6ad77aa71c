# render/renderer.py
import logging
import pygame
from bisect import bisect_left, bisect_right
from typing import Dict, List, Optional, Set
from config import RenderConfig
from notes.model import Hand, HandAssignment

STATUS_H = 36
WHITE_SET = {0, 2, 4, 5, 7, 9, 11}
KEY_RANGES = {"88": (21, 108), "76": (28, 103), "61": (36, 96)}

HAND_COLORS = {Hand.RIGHT: (90, 160, 255), Hand.LEFT: (80, 200, 120)}
HAND_KEY_COLORS = {Hand.RIGHT: (150, 200, 255), Hand.LEFT: (150, 230, 170)}

def next_key_range(mode: str) -> str:
    order = list(KEY_RANGES)
    return order[(order.index(mode) + 1) % len(order)] if mode in order else "88"

class Renderer:
    def __init__(self, cfg: RenderConfig, title: str = "Piano Arranger"):
        pygame.init()
        self.cfg = cfg
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h))
        pygame.display.set_caption(title)
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.clock = pygame.time.Clock()

        self.first_midi, self.last_midi = KEY_RANGES["88"]
        self.white_w = float(cfg.window_w)
        self.xw_by_pitch: Dict[int, tuple] = {}
        self.set_key_range(cfg.key_range)

    # ------- layout -------
    def _rebuild_layout(self):
        whites = [p for p in range(self.first_midi, self.last_midi + 1) if (p % 12) in WHITE_SET]
        self.white_w = float(self.cfg.window_w) / float(len(whites) or 1)
        self.xw_by_pitch = {}
        idx = 0
        for p in range(self.first_midi, self.last_midi + 1):
            if (p % 12) in WHITE_SET:
                idx += 1
                self.xw_by_pitch[p] = (int((idx - 1) * self.white_w), int(self.white_w - 1), False)
            else:
                # black key sits across the boundary after the previous white key
                x = max(0, idx - 1) * self.white_w + self.white_w * 0.7
                self.xw_by_pitch[p] = (int(x), int(self.white_w * 0.6), True)
        logging.debug("Keyboard layout rebuilt: range=[%d,%d], white_w=%.3f",
                      self.first_midi, self.last_midi, self.white_w)

    def set_key_range(self, mode: str):
        self.cfg.key_range = mode if mode in KEY_RANGES else "88"
        self.first_midi, self.last_midi = KEY_RANGES[self.cfg.key_range]
        self._rebuild_layout()

    def pitch_to_xw(self, pitch: int):
        p = min(max(pitch, self.first_midi), self.last_midi)
        if p != pitch:
            logging.debug("pitch_to_xw: pitch=%d outside [%d, %d], clamped", pitch, self.first_midi, self.last_midi)
        return self.xw_by_pitch[p]

    # ------- frame -------
    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def begin_frame(self):
        self.screen.fill((12, 12, 14))

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, left_text: str = "", right_text: str = ""):
        w = self.cfg.window_w
        pygame.draw.rect(self.screen, (24, 24, 28), (0, 0, w, STATUS_H))
        pygame.draw.line(self.screen, (60, 60, 66), (0, STATUS_H), (w, STATUS_H), 1)
        if left_text:
            surf = self.font_small.render(left_text, True, (220, 220, 230))
            self.screen.blit(surf, (10, (STATUS_H - surf.get_height()) // 2))
        if right_text:
            surf = self.font_small.render(right_text, True, (180, 180, 190))
            self.screen.blit(surf, (w - surf.get_width() - 10, (STATUS_H - surf.get_height()) // 2))

    # ------- piano -------
    def draw_keyboard(self, held: Optional[Dict[int, Hand]] = None):
        held = held or {}
        w, h, ph = self.cfg.window_w, self.cfg.window_h, self.cfg.piano_h
        pygame.draw.rect(self.screen, (28, 28, 32), (0, h - ph, w, ph))

        # whites first so blacks draw on top
        for black in (False, True):
            for p in range(self.first_midi, self.last_midi + 1):
                x, kw, is_black = self.xw_by_pitch[p]
                if is_black != black:
                    continue
                kh = ph * 0.6 if is_black else ph
                if p in held:
                    fill = HAND_KEY_COLORS[held[p]]
                else:
                    fill = (18, 18, 20) if is_black else (230, 230, 230)
                pygame.draw.rect(self.screen, fill, (x, h - ph, kw, kh))
                pygame.draw.rect(self.screen, (60, 60, 66), (x, h - ph, kw, kh), 1)

        hit_y = h - ph - 6
        pygame.draw.line(self.screen, (90, 90, 90), (0, hit_y), (w, hit_y), 2)

    # ------- notes -------
    def draw_notes(self, items: List[HandAssignment], starts: List[float], time_s: float,
                   hands: Set[Hand] = frozenset(Hand)):
        """Only the visible window is drawn; starts must be sorted."""
        if not items:
            return
        hit_y = self.cfg.window_h - self.cfg.piano_h - 6
        pps = self.cfg.pixels_per_second
        visible_from = time_s - 0.1
        visible_to = time_s + (self.cfg.window_h - STATUS_H) / max(1e-6, pps)

        LOOKBACK = 8.0
        start_idx = bisect_left(starts, max(0.0, visible_from - LOOKBACK))
        end_idx = bisect_right(starts, visible_to + 0.05)

        for i in range(start_idx, end_idx):
            a = items[i]
            n = a.note
            if n.end < visible_from or a.hand not in hands:
                continue
            x, w, _ = self.pitch_to_xw(n.pitch)
            y_start = hit_y - (n.start - time_s) * pps
            h = max(2.0, n.duration * pps)
            pygame.draw.rect(self.screen, HAND_COLORS[a.hand], (x, y_start - h, w, h), border_radius=6)
