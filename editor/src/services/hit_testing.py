"""
Watermark Editor - Hit Testing

Rotated bounding boxes for layers in canvas pixel space. Shared by the
gesture controller (picking, handle grabs) and the selection overlay
(handle drawing), so both agree on where a handle is.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from models.layer import Layer
from services.mark_renderer import content_metrics
from utils.geometry import rotate_point
from constants import HIT_TEST_PADDING, HANDLE_MIN_RADIUS, HANDLE_RADIUS_FACTOR


def handle_radius(canvas_width: float) -> float:
    """Grab radius of the rotate/resize handles, scaled with the image"""
    return max(HANDLE_MIN_RADIUS, canvas_width * HANDLE_RADIUS_FACTOR)


def layer_center(layer: Layer, canvas_width: float, canvas_height: float) -> Tuple[float, float]:
    """Layer anchor in canvas pixels"""
    return layer.pos_x / 100.0 * canvas_width, layer.pos_y / 100.0 * canvas_height


@dataclass
class LayerBox:
    """Padded, rotated rectangle around a layer's content

    Attributes:
        center_x, center_y: Anchor in canvas pixels
        half_w, half_h: Half extents including hit padding
        rotation: Degrees, clockwise on screen
    """
    center_x: float
    center_y: float
    half_w: float
    half_h: float
    rotation: float

    def to_local(self, x: float, y: float) -> Tuple[float, float]:
        """Canvas point -> box frame (origin at centre, axes unrotated)"""
        return rotate_point(x - self.center_x, y - self.center_y, -self.rotation)

    def to_canvas(self, lx: float, ly: float) -> Tuple[float, float]:
        """Box frame point -> canvas pixels"""
        x, y = rotate_point(lx, ly, self.rotation)
        return x + self.center_x, y + self.center_y

    def contains(self, x: float, y: float) -> bool:
        lx, ly = self.to_local(x, y)
        return abs(lx) <= self.half_w and abs(ly) <= self.half_h

    def corners(self) -> List[Tuple[float, float]]:
        """Corners clockwise from top-left, in canvas pixels"""
        return [
            self.to_canvas(-self.half_w, -self.half_h),
            self.to_canvas(self.half_w, -self.half_h),
            self.to_canvas(self.half_w, self.half_h),
            self.to_canvas(-self.half_w, self.half_h),
        ]

    def rotate_handle_pos(self, radius: float) -> Tuple[float, float]:
        """Rotate handle sits one handle radius above the top edge"""
        return self.to_canvas(0.0, -self.half_h - radius)

    def resize_handle_pos(self) -> Tuple[float, float]:
        """Resize handle sits on the bottom-right corner"""
        return self.to_canvas(self.half_w, self.half_h)


def layer_box(layer: Layer, canvas_width: float, canvas_height: float, assets,
              padding: float = HIT_TEST_PADDING) -> Optional[LayerBox]:
    """Build the hit box of a layer

    Returns:
        LayerBox, or None for tiled layers and image layers whose asset is
        missing (neither can be grabbed)
    """
    if layer.tiled:
        return None
    metrics = content_metrics(layer, canvas_width, assets)
    if metrics is None:
        return None
    content_w, content_h = metrics
    cx, cy = layer_center(layer, canvas_width, canvas_height)
    return LayerBox(cx, cy, content_w / 2.0 + padding, content_h / 2.0 + padding, layer.rotation)


def pick_layer(layers_top_to_bottom: Iterable[Layer], x: float, y: float,
               canvas_width: float, canvas_height: float, assets) -> Optional[Layer]:
    """First visible, non-tiled layer whose box contains the point"""
    for layer in layers_top_to_bottom:
        if not layer.visible:
            continue
        box = layer_box(layer, canvas_width, canvas_height, assets)
        if box is not None and box.contains(x, y):
            return layer
    return None
