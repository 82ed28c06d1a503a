"""
Watermark Editor - Selection Overlay

Draws the dashed outline and the rotate/resize handles of the highlighted
layer on top of a rendered canvas. Editor preview only; export never asks
for it.
"""

import math

from PIL import Image, ImageDraw

from services.hit_testing import LayerBox, handle_radius
from constants import (
    OVERLAY_COLOR, OVERLAY_HANDLE_FILL, OVERLAY_HANDLE_OUTLINE,
    OVERLAY_DASH_LENGTH, OVERLAY_GAP_LENGTH, OVERLAY_LINE_WIDTH,
)


def _dashed_line(draw, start, end, dash, gap, fill, width):
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    if length == 0:
        return
    ux = (end[0] - start[0]) / length
    uy = (end[1] - start[1]) / length
    pos = 0.0
    while pos < length:
        stop = min(pos + dash, length)
        draw.line(
            [(start[0] + ux * pos, start[1] + uy * pos),
             (start[0] + ux * stop, start[1] + uy * stop)],
            fill=fill, width=width,
        )
        pos += dash + gap


def draw_handle(draw, x, y, radius):
    """Filled handle disc with a light outline"""
    draw.ellipse(
        (x - radius, y - radius, x + radius, y + radius),
        fill=OVERLAY_HANDLE_FILL, outline=OVERLAY_HANDLE_OUTLINE,
        width=max(1, OVERLAY_LINE_WIDTH),
    )


def draw_selection(image: Image.Image, box: LayerBox) -> Image.Image:
    """Composite the selection overlay for one box onto an RGBA image

    Args:
        image: Rendered canvas (RGBA), not modified
        box: Padded hit box of the highlighted layer

    Returns:
        New RGBA image with the overlay painted on top
    """
    overlay = Image.new('RGBA', image.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    # Handles scale with the image so they stay grabbable on large photos
    radius = handle_radius(image.width)
    scale = max(1.0, image.width / 1000.0)
    line_width = max(1, int(round(OVERLAY_LINE_WIDTH * scale)))

    corners = box.corners()
    for i, start in enumerate(corners):
        end = corners[(i + 1) % len(corners)]
        _dashed_line(draw, start, end, OVERLAY_DASH_LENGTH * scale,
                     OVERLAY_GAP_LENGTH * scale, OVERLAY_COLOR, line_width)

    # Stem from the top edge to the rotate handle
    rx, ry = box.rotate_handle_pos(radius)
    top_mid = box.to_canvas(0.0, -box.half_h)
    draw.line([top_mid, (rx, ry)], fill=OVERLAY_COLOR, width=line_width)

    draw_handle(draw, rx, ry, radius)
    sx, sy = box.resize_handle_pos()
    draw_handle(draw, sx, sy, radius)

    result = image.copy()
    result.alpha_composite(overlay)
    return result
