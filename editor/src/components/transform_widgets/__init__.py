"""
Watermark Editor - Transform Widget Components

This package contains the interactive transform controller:
- handles.py: ABC-based handle classes (MoveHandle, RotationHandle, ResizeHandle)
- modes.py: Mode classes defining handle sets and their priority
- drag_context.py: Start state of one transform interaction
- gesture_controller.py: Pointer-event state machine driving the layer stack
"""

from .handles import Handle, MoveHandle, RotationHandle, ResizeHandle
from .modes import TransformMode, BboxMode, TiledMode, mode_for_layer
from .drag_context import DragContext
from .gesture_controller import GestureController, GestureState, normalize_angle_delta

__all__ = [
    'Handle', 'MoveHandle', 'RotationHandle', 'ResizeHandle',
    'TransformMode', 'BboxMode', 'TiledMode', 'mode_for_layer',
    'DragContext',
    'GestureController', 'GestureState', 'normalize_angle_delta',
]
