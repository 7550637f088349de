"""
Debug overlay for the coverage hull.

Draws discovered points, the published hull boundary and its centroid. Render-only:
reads scheduler state, never mutates it.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import pygame

from config import COLOR_DISCOVERED, COLOR_HULL, COLOR_HULL_CENTER
from mapper.sim.contracts import Point
from mapper.systems.geometry import polygon_center


def world_to_screen(p: Point, camera_offset: tuple = (0, 0), scale: float = 1.0) -> tuple[int, int]:
    cam_x, cam_y = camera_offset
    return int((p[0] - cam_x) * scale), int((p[1] - cam_y) * scale)


def render_points(
    surface: pygame.Surface,
    points: Iterable[Point],
    camera_offset: tuple = (0, 0),
    scale: float = 1.0,
    color: tuple = COLOR_DISCOVERED,
    radius: int = 2,
) -> int:
    drawn = 0
    for p in points:
        pygame.draw.circle(surface, color, world_to_screen(p, camera_offset, scale), radius)
        drawn += 1
    return drawn


def render_hull(
    surface: pygame.Surface,
    hull: Optional[Sequence[Point]],
    camera_offset: tuple = (0, 0),
    scale: float = 1.0,
    color: tuple = COLOR_HULL,
    width: int = 2,
) -> bool:
    """Draw the closed hull outline. Returns False when there is nothing to draw."""
    if not hull or len(hull) < 2:
        return False

    screen_pts = [world_to_screen(p, camera_offset, scale) for p in hull]
    pygame.draw.lines(surface, color, True, screen_pts, width)

    center = polygon_center(hull)
    if center is not None:
        pygame.draw.circle(surface, COLOR_HULL_CENTER, world_to_screen(center, camera_offset, scale), 3, 1)
    return True


class HullOverlay:
    """
    Tiny overlay wrapper.

    Expected integration:
    - render(surface, scheduler, camera_offset)
    """

    def __init__(self, scale: float = 1.0):
        self.scale = float(scale)
        self.enabled = True
        self.show_points = True

    def render(self, surface: pygame.Surface, scheduler, camera_offset: tuple = (0, 0)) -> None:
        if not self.enabled:
            return
        if self.show_points:
            render_points(surface, scheduler.points.snapshot(), camera_offset, self.scale)
        render_hull(surface, scheduler.get_published_hull(), camera_offset, self.scale)
