"""
Mapped-entity registry: turns entity sightings into hull points.

Survey logic calls `upsert()` for every static feature it sees. The registry keeps one
record per entity (stable key), remembers which half-tile positions are already
mapped, and exposes the positions the hull scheduler should cover.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import config
from mapper.sim.contracts import Point
from mapper.systems.point_set import grid_key


def entity_key(entity) -> Optional[str]:
    """Prefer `unit_number` for identity; otherwise name + position + surface."""
    unit_number = getattr(entity, "unit_number", None)
    if unit_number is not None:
        return str(unit_number)

    name = getattr(entity, "name", None)
    pos = getattr(entity, "position", None)
    if name is None or pos is None:
        return None
    surface = int(getattr(entity, "surface_index", 0) or 0)
    return f"{name}@{pos[0]},{pos[1]}#{surface}"


@dataclass(slots=True)
class MappedEntityInfo:
    name: str
    position: Point
    surface_index: int
    first_seen_tick: int
    last_seen_tick: int


class MappedEntityRegistry:
    """Everything the surveyor has mapped so far."""

    def __init__(self, position_quantum: float = config.MAPPED_POSITION_QUANTUM):
        self.position_quantum = float(position_quantum)
        self.entities: dict[str, MappedEntityInfo] = {}
        self._mapped_positions: set[tuple[int, int]] = set()

    def upsert(self, entity, tick: int) -> bool:
        """Record a sighting. Returns True if the entity was not known before."""
        key = entity_key(entity)
        if key is None:
            return False

        x, y = entity.position
        info = self.entities.get(key)
        is_new = info is None
        if is_new:
            self.entities[key] = MappedEntityInfo(
                name=str(getattr(entity, "name", "")),
                position=(float(x), float(y)),
                surface_index=int(getattr(entity, "surface_index", 0) or 0),
                first_seen_tick=int(tick),
                last_seen_tick=int(tick),
            )
        else:
            info.position = (float(x), float(y))
            info.last_seen_tick = int(tick)

        # Coverage bookkeeping so frontier logic doesn't revisit this spot.
        self.mark_position_mapped(x, y)
        return is_new

    def mark_position_mapped(self, x: float, y: float) -> None:
        self._mapped_positions.add(grid_key((x, y), self.position_quantum))

    def is_position_mapped(self, x: float, y: float) -> bool:
        return grid_key((x, y), self.position_quantum) in self._mapped_positions

    def points(self) -> list[Point]:
        return [info.position for info in self.entities.values()]

    def __len__(self) -> int:
        return len(self.entities)


def should_add_frontier(scheduler, x: float, y: float) -> bool:
    """A candidate frontier point is worth visiting unless the published hull already covers it."""
    if scheduler.get_published_hull() is None:
        return True
    return not scheduler.is_inside_hull((x, y))
