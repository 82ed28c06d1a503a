"""Transform handle system - ABC-based handle architecture.

Each handle type is a class that knows:
- How to test if a pointer position hits it
- Where it sits on a layer's rotated box
- How a drag from it changes the layer

Handles work in canvas pixel space and are toolkit-free; the canvas widget
maps cursor names to its own cursor shapes.
"""

from abc import ABC, abstractmethod
import math

from utils.geometry import angle_degrees, distance


class Handle(ABC):
    """Abstract base class for transform handles."""

    #: Gesture state entered when a drag starts on this handle
    state = None

    @abstractmethod
    def hit_test(self, x, y, box, radius) -> bool:
        """Test if a pointer position hits this handle.

        Args:
            x, y: Pointer position in canvas pixels
            box: LayerBox of the active layer
            radius: Handle grab radius in pixels

        Returns:
            bool: True if the pointer hits this handle
        """
        pass

    @abstractmethod
    def drag(self, x, y, context):
        """Handle a drag step for this handle type.

        Args:
            x, y: Current pointer position in canvas pixels
            context: DragContext recorded at pointer-down

        Returns:
            dict: Layer property changes, or None to skip this frame
        """
        pass

    @abstractmethod
    def get_cursor(self):
        """Cursor name to show while hovering this handle."""
        pass


class MoveHandle(Handle):
    """Whole padded box - translation."""

    state = 'moving'

    def hit_test(self, x, y, box, radius):
        return box.contains(x, y)

    def drag(self, x, y, context):
        """Pixel delta converted to percent of the canvas."""
        dx = x - context.start_x
        dy = y - context.start_y
        return {
            'pos_x': context.start_pos_x + dx / context.canvas_width * 100.0,
            'pos_y': context.start_pos_y + dy / context.canvas_height * 100.0,
        }

    def get_cursor(self):
        return 'move'


class RotationHandle(Handle):
    """Circle one handle radius above the box's top edge."""

    state = 'rotating'

    def hit_test(self, x, y, box, radius):
        hx, hy = box.rotate_handle_pos(radius)
        return distance(x, y, hx, hy) <= radius

    def drag(self, x, y, context):
        # The handle points up at rotation 0, i.e. -90 degrees from +X
        return {'rotation': angle_degrees(context.center_x, context.center_y, x, y) + 90.0}

    def get_cursor(self):
        return 'rotate'


class ResizeHandle(Handle):
    """Circle on the bottom-right corner - uniform scale about the centre."""

    state = 'resizing'

    def hit_test(self, x, y, box, radius):
        hx, hy = box.resize_handle_pos()
        return distance(x, y, hx, hy) <= radius

    def drag(self, x, y, context):
        start_dist = distance(context.center_x, context.center_y, context.start_x, context.start_y)
        if start_dist <= 0.0 or not math.isfinite(start_dist):
            return None
        current_dist = distance(context.center_x, context.center_y, x, y)
        return {'size': context.start_size * current_dist / start_dist}

    def get_cursor(self):
        return 'resize'
