"""
Live pygame viewer.

The window is the display surface: its refresh loop dispatches the
frame clock once per iteration, the scheduler renders into the
latest-frame slot, and the loop blits whatever was last committed.

Keys:
    space    start / stop animation
    r        randomize parameters
    1-9      apply preset (registry order)
    e        next effect
    i        toggle invert
    s        save current frame as PNG
    h        toggle HUD
    esc / q  quit
"""

import logging
import time
from pathlib import Path

import numpy as np
import pygame

from harmonik.core.fields import EFFECTS
from harmonik.io.exporter import DEFAULT_FILENAME, export_png
from harmonik.model import ParameterModel
from harmonik.renderer import FieldRenderer, RenderConfig
from harmonik.scheduler import AnimationScheduler, FrameClock

logger = logging.getLogger(__name__)


class LiveViewer:
    """Interactive window around an AnimationScheduler."""

    def __init__(
        self,
        config: RenderConfig | None = None,
        model: ParameterModel | None = None,
        fps: int = 60,
        save_path: str | Path = DEFAULT_FILENAME,
        autostart: bool = False,
    ):
        self.cfg = config or RenderConfig()
        self.model = model or ParameterModel()
        self.fps = fps
        self.save_path = Path(save_path)
        self.autostart = autostart

        self.clock = FrameClock()
        self.renderer = FieldRenderer(self.cfg)
        self.scheduler = AnimationScheduler(
            self.renderer, self.model, self.clock, on_frame=self._on_frame
        )

        self.running = True
        self.show_hud = True
        self.hud_font = None
        self._frame: np.ndarray | None = None
        self.fps_history: list[float] = []
        self._last_loop: float | None = None

    def _on_frame(self, frame: np.ndarray, timestamp_ms: float):
        self._frame = frame

    def _measure_fps(self, now: float) -> float:
        """Rolling average refresh rate from the intervals between loop starts."""
        if self._last_loop is not None:
            self.fps_history.append(now - self._last_loop)
            if len(self.fps_history) > 30:
                self.fps_history.pop(0)
        self._last_loop = now
        if not self.fps_history:
            return 0.0
        return 1.0 / max(float(np.mean(self.fps_history)), 0.001)

    def _frame_surface(self) -> "pygame.Surface | None":
        if self._frame is None:
            return None
        # pygame surfaces are (width, height); frames are (height, width)
        rgb = self._frame[:, :, :3].swapaxes(0, 1).copy()
        return pygame.surfarray.make_surface(rgb)

    def _draw_hud(self, screen, fps: float):
        if not self.show_hud or self.hud_font is None:
            return

        params = self.model.snapshot()
        line = (
            f"{params.effect.value}  |  preset: {self.model.active_preset}  |  "
            f"speed {params.speed:.2f}  scale {params.scale:.2f}  "
            f"blend {params.blend:.2f}  |  FPS: {fps:.0f}"
        )
        if params.invert:
            line += "  |  inverted"
        if not self.scheduler.is_running():
            line = "[STOPPED]  " + line

        bg_surface = pygame.Surface((self.cfg.width, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        screen.blit(self.hud_font.render(line, True, (210, 215, 225)), (10, 6))

    def save_frame(self) -> Path | None:
        frame = self.scheduler.last_frame
        if frame is None:
            logger.warning("Nothing rendered yet; not saving")
            return None
        path = export_png(frame, self.save_path)
        print(f"Frame saved: {path}")
        return path

    def _next_effect(self):
        current = self.model.snapshot().effect
        idx = (EFFECTS.index(current) + 1) % len(EFFECTS)
        self.model.set(effect=EFFECTS[idx])

    def handle_key(self, key: int):
        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key == pygame.K_SPACE:
            self.scheduler.toggle()

        elif key == pygame.K_r:
            self.model.randomize()

        elif key == pygame.K_e:
            self._next_effect()

        elif key == pygame.K_i:
            self.model.set(invert=not self.model.snapshot().invert)

        elif key == pygame.K_h:
            self.show_hud = not self.show_hud

        elif key == pygame.K_s:
            self.save_frame()

        # Preset selection (1-9) in registry order
        elif pygame.K_1 <= key <= pygame.K_9:
            names = list(self.model.presets)
            idx = key - pygame.K_1
            if idx < len(names):
                self.model.apply_preset(names[idx])

    def run(self):
        """Main viewer loop."""
        pygame.init()
        try:
            screen = pygame.display.set_mode((self.cfg.width, self.cfg.height))
        except pygame.error as e:
            pygame.quit()
            raise RuntimeError(f"Could not open a display surface: {e}") from e

        pygame.display.set_caption("Harmonik")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        with self.scheduler:
            if self.autostart:
                self.scheduler.start()

            while self.running:
                avg_fps = self._measure_fps(time.monotonic())

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self.handle_key(event.key)

                self.clock.dispatch()

                surface = self._frame_surface()
                if surface is not None:
                    screen.blit(surface, (0, 0))

                self._draw_hud(screen, avg_fps)

                pygame.display.flip()
                clock.tick(self.fps)

        pygame.quit()
