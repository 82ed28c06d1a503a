"""Drag context dataclass for the gesture controller.

One object holds everything recorded at pointer-down, replacing a pile of
start_* attributes on the controller.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class DragContext:
    """Start state of one transform interaction."""
    operation: str  # 'moving', 'rotating', 'resizing', 'gesture'
    layer_id: str
    canvas_width: float
    canvas_height: float
    # Layer values at the start of this operation
    start_pos_x: float
    start_pos_y: float
    start_size: float
    start_rotation: float
    # Layer anchor in canvas pixels at the start
    center_x: float = 0.0
    center_y: float = 0.0
    # Single pointer start
    pointer_id: Optional[int] = None
    start_x: float = 0.0
    start_y: float = 0.0
    handle: object = None
    # Two pointer start
    pointer_ids: Tuple[int, ...] = ()
    start_distance: float = 0.0
    start_angle: float = 0.0
    start_mid_x: float = 0.0
    start_mid_y: float = 0.0
    # Values to put back on cancel (survive a switch to gesture)
    restore: dict = field(default_factory=dict)
