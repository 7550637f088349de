"""
Headless survey world: a seeded field of static features and a surveyor that sweeps it.

This is the stand-in for the real game's survey logic. It only exists to feed the hull
scheduler realistic, steadily growing point sets (tools, QA smoke runs, tests).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import config
from mapper.sim.contracts import Point
from mapper.sim.determinism import survey_rng

FEATURE_NAMES = ("tree", "rock", "ore", "ruin")


@dataclass(slots=True)
class Feature:
    unit_number: int
    name: str
    position: Point
    surface_index: int = 0


class SurveyWorld:
    """Static features bucketed on a coarse grid for radius queries."""

    def __init__(
        self,
        width: float = config.WORLD_WIDTH,
        height: float = config.WORLD_HEIGHT,
        feature_count: int = config.FEATURE_COUNT,
        cell_size: float = config.SURVEY_RADIUS,
    ):
        self.width = float(width)
        self.height = float(height)
        self.cell_size = max(1.0, float(cell_size))
        self.features: list[Feature] = []
        self._cells: dict[tuple[int, int], list[Feature]] = {}
        self.generate_features(int(feature_count))

    def generate_features(self, count: int) -> None:
        """Scatter features in a few loose clusters plus background noise."""
        cluster_rng = survey_rng("clusters")
        rng = survey_rng("features")
        clusters = [
            (
                cluster_rng.uniform(0.2, 0.8) * self.width,
                cluster_rng.uniform(0.2, 0.8) * self.height,
                cluster_rng.uniform(10.0, 30.0),
            )
            for _ in range(4)
        ]
        for i in range(count):
            if rng.random() < 0.75:
                cx, cy, spread = rng.choice(clusters)
                x = rng.gauss(cx, spread)
                y = rng.gauss(cy, spread)
            else:
                x = rng.uniform(0.0, self.width)
                y = rng.uniform(0.0, self.height)
            x = min(max(x, 0.0), self.width)
            y = min(max(y, 0.0), self.height)
            self.add_feature(Feature(unit_number=i + 1, name=rng.choice(FEATURE_NAMES), position=(x, y)))

    def add_feature(self, feature: Feature) -> None:
        self.features.append(feature)
        self._cells.setdefault(self._cell_of(feature.position), []).append(feature)

    def _cell_of(self, p: Point) -> tuple[int, int]:
        return int(p[0] // self.cell_size), int(p[1] // self.cell_size)

    def features_near(self, x: float, y: float, radius: float) -> list[Feature]:
        r2 = radius * radius
        cx, cy = self._cell_of((x, y))
        span = int(math.ceil(radius / self.cell_size))
        found: list[Feature] = []
        for gx in range(cx - span, cx + span + 1):
            for gy in range(cy - span, cy + span + 1):
                for f in self._cells.get((gx, gy), ()):
                    dx = f.position[0] - x
                    dy = f.position[1] - y
                    if dx * dx + dy * dy <= r2:
                        found.append(f)
        found.sort(key=lambda f: f.unit_number)
        return found


class Surveyor:
    """Moves along an outward spiral from a start point and reports what it sees."""

    def __init__(
        self,
        x: float,
        y: float,
        *,
        radius: float = config.SURVEY_RADIUS,
        step_distance: float = config.SURVEY_STEP_DISTANCE,
        spacing: float = config.SURVEY_RADIUS * 1.5,
    ):
        self.cx = float(x)
        self.cy = float(y)
        self.x = float(x)
        self.y = float(y)
        self.radius = float(radius)
        self.step_distance = float(step_distance)
        # Spiral r = a * theta; `spacing` is the gap between successive rings.
        self._a = float(spacing) / (2.0 * math.pi)
        self._theta = 0.0

    def step(self) -> Point:
        r = max(self._a * self._theta, 1.0)
        self._theta += self.step_distance / r
        r = self._a * self._theta
        self.x = self.cx + math.cos(self._theta) * r
        self.y = self.cy + math.sin(self._theta) * r
        return self.x, self.y

    def scan(self, world: SurveyWorld) -> list[Feature]:
        return world.features_near(self.x, self.y, self.radius)
