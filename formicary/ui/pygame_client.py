"""Pygame 2D visualization for the Formicary simulation.

Renders the visible part of the unbounded world and the ants on it.  The
camera pans by dragging with the mouse; cells scrolled into view are
generated on demand by the world grid.  The simulation steps at a
configurable tick rate while the display refreshes at the Pygame frame
rate.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

import pygame
import yaml

from formicary.colony.ant import Stage
from formicary.simulation.engine import Simulation
from formicary.simulation.runner import Runner, Viewport
from formicary.world.cell import CellKind

if TYPE_CHECKING:
    from formicary.brain.genome import Genome
    from formicary.colony.ant import Ant
    from formicary.simulation.config import SimulationConfig

logger = logging.getLogger(__name__)

# Colour palette
_BG = (0, 0, 0)
_PANEL_BG = (20, 20, 20)
_TEXT = (200, 200, 200)
_SELECT = (255, 255, 0)

_CELL_COLOURS: dict[CellKind, tuple[int, int, int]] = {
    CellKind.EMPTY: (34, 34, 34),
    CellKind.FOOD: (0, 255, 0),
    CellKind.TERRAIN: (101, 67, 33),
}
_EGG_COLOUR = (255, 255, 255)


class PygameRenderer:
    """Renders a Simulation into a Pygame window with a panning camera.

    Attributes:
        config: Config used to (re)build the simulation.
        runner: Drives the simulation and owns the tick counter.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    # Speed presets: ticks per second
    _SPEED_STEPS: ClassVar[list[float]] = [
        1.0,
        3.0,
        5.0,
        10.0,
        15.0,
        30.0,
        60.0,
        120.0,
    ]

    def __init__(
        self,
        config: SimulationConfig,
        seed_genome: Genome | None = None,
        cell_size: int = 10,
        ticks_per_second: float = 30.0,
        window_size: tuple[int, int] = (960, 720),
    ) -> None:
        """Initialise the renderer.

        Args:
            config: Simulation configuration.
            seed_genome: Optional genome to seed the population with.
            cell_size: Pixel width/height per grid cell.
            ticks_per_second: Simulation ticks per real-time second.
            window_size: Size of the world view in pixels (excluding the
                side panel).
        """
        self.config = config
        self.runner = Runner(Simulation(config=config, seed_genome=seed_genome))
        self.cell_size = cell_size
        self.ticks_per_second = ticks_per_second
        self._speed_index = self._nearest_speed(ticks_per_second)
        self._tick_accumulator = 0.0

        self._view_w, self._view_h = window_size
        self._panel_width = 240
        # Camera offset in pixels; start centred on the origin.
        self._camera = [-self._view_w // 2, -self._view_h // 2]
        self._drag_start: tuple[int, int] | None = None
        self._camera_start = (0, 0)
        self._dragged = False
        self.selected: Ant | None = None

        pygame.init()
        self.screen = pygame.display.set_mode(
            (self._view_w + self._panel_width, self._view_h),
        )
        pygame.display.set_caption("Formicary")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False

    @property
    def simulation(self) -> Simulation:
        return self.runner.simulation

    def _nearest_speed(self, tps: float) -> int:
        """Return the index of the closest speed preset."""
        best = 0
        best_diff = abs(self._SPEED_STEPS[0] - tps)
        for i, s in enumerate(self._SPEED_STEPS):
            diff = abs(s - tps)
            if diff < best_diff:
                best, best_diff = i, diff
        return best

    def viewport(self) -> Viewport:
        """Grid rectangle currently on screen."""
        cs = self.cell_size
        return Viewport(
            left=self._camera[0] // cs,
            top=self._camera[1] // cs,
            width=self._view_w // cs + 1,
            height=self._view_h // cs + 1,
        )

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0  # seconds elapsed
            self._handle_events()
            if not self.paused:
                self._tick_accumulator += self.ticks_per_second * dt
                steps = int(self._tick_accumulator)
                self._tick_accumulator -= steps
                view = self.viewport()
                for _ in range(steps):
                    self.runner.advance(view)
                if self.selected is not None and self.selected not in self.simulation.ants:
                    self.selected = None
            self._draw()

        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._drag_start = event.pos
                self._camera_start = (self._camera[0], self._camera[1])
                self._dragged = False
            elif event.type == pygame.MOUSEMOTION and self._drag_start is not None:
                dx = event.pos[0] - self._drag_start[0]
                dy = event.pos[1] - self._drag_start[1]
                if dx or dy:
                    self._dragged = True
                self._camera[0] = self._camera_start[0] - dx
                self._camera[1] = self._camera_start[1] - dy
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                if not self._dragged and event.pos[0] < self._view_w:
                    self._select_at(event.pos)
                self._drag_start = None
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self.paused = not self.paused
        elif key in (pygame.K_PLUS, pygame.K_EQUALS):
            self._speed_index = min(len(self._SPEED_STEPS) - 1, self._speed_index + 1)
            self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
        elif key == pygame.K_MINUS:
            self._speed_index = max(0, self._speed_index - 1)
            self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
        elif key == pygame.K_r:
            self._restart(seed_genome=None)
        elif key == pygame.K_a and self.selected is not None:
            self._restart(seed_genome=self.selected.genome.clone())
        elif key == pygame.K_s and self.selected is not None:
            self._save_genome(self.selected)

    def _select_at(self, pos: tuple[int, int]) -> None:
        gx = (pos[0] + self._camera[0]) // self.cell_size
        gy = (pos[1] + self._camera[1]) // self.cell_size
        self.selected = self.simulation.organism_at(gx, gy)

    def _restart(self, seed_genome: Genome | None) -> None:
        """Rebuild the simulation, optionally seeded with an adopted genome."""
        self.runner = Runner(Simulation(config=self.config, seed_genome=seed_genome))
        self.selected = None

    def _save_genome(self, ant: Ant) -> None:
        path = Path(f"genome-{ant.ant_id}.yaml")
        with path.open("w") as f:
            yaml.safe_dump(ant.genome.to_dict(), f)
        logger.info(f"Saved genome of ant {ant.ant_id} to {path}")

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_cells()
        self._draw_ants()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_cells(self) -> None:
        """Draw every visible cell, generating unseen ones."""
        cs = self.cell_size
        view = self.viewport()
        for gy in range(view.top, view.top + view.height):
            for gx in range(view.left, view.left + view.width):
                kind = self.simulation.classify(gx, gy)
                pygame.draw.rect(
                    self.screen,
                    _CELL_COLOURS[kind],
                    (gx * cs - self._camera[0], gy * cs - self._camera[1], cs, cs),
                )

    def _draw_ants(self) -> None:
        """Draw eggs white and other ants in their genome colour."""
        cs = self.cell_size
        for ant in self.simulation.live_organisms:
            sx = ant.x * cs - self._camera[0]
            sy = ant.y * cs - self._camera[1]
            if not (-cs < sx < self._view_w and -cs < sy < self._view_h):
                continue
            colour = _EGG_COLOUR if ant.stage is Stage.EGG else ant.color
            pygame.draw.rect(self.screen, colour, (sx, sy, cs, cs))
            if ant is self.selected:
                pygame.draw.rect(self.screen, _SELECT, (sx, sy, cs, cs), width=1)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self._view_w
        pygame.draw.rect(
            self.screen,
            _PANEL_BG,
            (panel_x, 0, self._panel_width, self._view_h),
        )
        counts = self.simulation.stage_counts()
        lines = [
            f"Tick: {self.runner.tick_count}",
            f"Speed: {self.ticks_per_second:.1f} t/s",
            f"{'PAUSED' if self.paused else 'RUNNING'}",
            "",
            "--- Population ---",
            f"Total: {len(self.simulation.ants)}",
        ]
        lines += [f"  {stage.name.title()}: {n}" for stage, n in counts.items()]

        if self.selected is not None:
            ant = self.selected
            lines += [
                "",
                "--- Selected ---",
                f"Id: {ant.ant_id}",
                f"Stage: {ant.stage.name.lower()}",
                f"Pos: ({ant.x}, {ant.y})",
                f"Health: {ant.health:.0f}",
                f"Age: {ant.age}",
                f"Action: {ant.next_action.name.lower()}",
            ]

        lines += [
            "",
            "--- Controls ---",
            "drag: pan",
            "click: select ant",
            "A: adopt genome",
            "S: save genome",
            "R: reset",
            "SPACE: pause",
            "+/-: speed",
            "ESC: quit",
        ]

        y = 10
        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x + 10, y))
            y += 18
