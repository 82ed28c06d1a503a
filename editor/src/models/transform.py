"""Coordinate and pointer data structures shared by the model and controller."""
from dataclasses import dataclass
from enum import Enum


@dataclass
class Vec2:
    """2D vector for coordinate pairs.

    Used for any x/y pair across spaces:
    - Canvas pixels (top-left origin, Y-down)
    - Layer positions in percent of the canvas (0-100 by convention)
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))


class PointerPhase(Enum):
    DOWN = 'down'
    MOVE = 'move'
    UP = 'up'
    CANCEL = 'cancel'


@dataclass(frozen=True)
class PointerEvent:
    """Device-independent pointer sample in canvas pixel coordinates.

    Mouse, pen and touch input all arrive as this type; a mouse is simply
    pointer id 0 and each touch point keeps its own id.
    """
    pointer_id: int
    x: float
    y: float
    phase: PointerPhase

    @property
    def pos(self) -> Vec2:
        return Vec2(self.x, self.y)
