"""
Watermark Editor - Compositing Engine

render() paints an ordered layer stack over a base image and returns a new
RasterImage. It is a pure function of its inputs: the same base, layers
and assets always give the same pixels, and nothing is cached between
calls except the font cache in mark_renderer.

Pipeline per visible layer (index 0 first, i.e. bottom):
    1. Measure content (mark_renderer.content_metrics)
    2. Compute placements through an explicit TransformStack
       (single anchor, or a staggered tile grid)
    3. Render the mark sprite once, rotate it, add its drop shadow
    4. Stamp the sprite at every placement into a per-layer RGBA buffer
    5. Blend the layer buffer onto the canvas (blend_modes.composite)
"""

import logging
import math
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np
from PIL import Image

from models.layer import Layer
from models.raster import RasterImage
from services import blend_modes
from services.hit_testing import layer_box
from services.mark_renderer import (
    content_metrics, render_mark_sprite, rotate_sprite,
    add_drop_shadow, shadow_params, render_shadow_caster,
)
from services.selection_overlay import draw_selection
from utils.geometry import TransformStack
from constants import TILE_GAP_FACTOR, TILE_DENSITY_DIVISOR, TILE_MIN_GAP, TILE_BUFFER_FACTOR

logger = logging.getLogger(__name__)

# (center_x, center_y, rotation_degrees) in canvas pixels
Placement = Tuple[float, float, float]


# ======================================================================
# Placement
# ======================================================================

def tile_gaps(layer: Layer, canvas_width: float, content_w: float, content_h: float) -> Tuple[float, float]:
    """Horizontal and vertical tile pitch in pixels"""
    extra = canvas_width * layer.tile_density / TILE_DENSITY_DIVISOR
    gap_x = max(TILE_MIN_GAP, content_w * TILE_GAP_FACTOR + extra)
    gap_y = max(TILE_MIN_GAP, content_h * TILE_GAP_FACTOR + extra)
    return gap_x, gap_y


def _grid(start, stop, step) -> Iterator[float]:
    # Multiply rather than accumulate so long runs do not drift
    count = int(math.ceil((stop - start) / step))
    for i in range(count):
        yield start + i * step


def layer_placements(layer: Layer, canvas_width: int, canvas_height: int,
                     content_w: float, content_h: float) -> List[Placement]:
    """Where to stamp a layer's mark

    Non-tiled: one placement at the layer position. Tiled: a grid over
    [-buffer, size + buffer) on both axes with buffer = max(width, height),
    columns outer and rows inner, odd rows shifted right by half a column.
    """
    stack = TransformStack()
    placements = []

    if not layer.tiled:
        stack.push()
        stack.translate(canvas_width * layer.pos_x / 100.0, canvas_height * layer.pos_y / 100.0)
        stack.rotate(layer.rotation)
        placements.append(stack.map_point() + (stack.rotation(),))
        stack.pop()
        return placements

    gap_x, gap_y = tile_gaps(layer, canvas_width, content_w, content_h)
    buffer = max(canvas_width, canvas_height) * TILE_BUFFER_FACTOR
    for x in _grid(-buffer, canvas_width + buffer, gap_x):
        for y in _grid(-buffer, canvas_height + buffer, gap_y):
            stack.push()
            stack.translate(x, y)
            if math.floor(y / gap_y) % 2 != 0:
                stack.translate(gap_x / 2.0, 0.0)
            stack.rotate(layer.rotation)
            placements.append(stack.map_point() + (stack.rotation(),))
            stack.pop()
    return placements


# ======================================================================
# Layer rasterisation
# ======================================================================

def _stamp(target: Image.Image, sprite: Image.Image, center_x: float, center_y: float):
    """Alpha-composite sprite centred on a point, clipped to the target"""
    left = int(round(center_x - sprite.width / 2.0))
    top = int(round(center_y - sprite.height / 2.0))
    src_left = max(0, -left)
    src_top = max(0, -top)
    src_right = min(sprite.width, target.width - left)
    src_bottom = min(sprite.height, target.height - top)
    if src_right <= src_left or src_bottom <= src_top:
        return
    if (src_left, src_top, src_right, src_bottom) != (0, 0, sprite.width, sprite.height):
        sprite = sprite.crop((src_left, src_top, src_right, src_bottom))
    target.alpha_composite(sprite, dest=(left + src_left, top + src_top))


def rasterize_layer(layer: Layer, canvas_width: int, canvas_height: int, assets) -> Optional[Image.Image]:
    """Draw every placement of one layer into a transparent canvas-sized buffer

    Returns:
        RGBA image, or None when the layer contributes nothing (missing
        asset, empty text)
    """
    metrics = content_metrics(layer, canvas_width, assets)
    if metrics is None:
        logger.debug(f"Skipping layer {layer.id}: asset {getattr(layer.content, 'asset_id', None)} not found")
        return None
    content_w, content_h = metrics
    if content_w <= 0 or content_h <= 0:
        return None

    sprite = render_mark_sprite(layer, canvas_width, assets)
    if sprite is None:
        return None

    caster = render_shadow_caster(layer, canvas_width, assets) if layer.shadow_active else None

    buffer = Image.new('RGBA', (canvas_width, canvas_height), (0, 0, 0, 0))
    placements = layer_placements(layer, canvas_width, canvas_height, content_w, content_h)
    # Every placement of a layer shares one angle, so rotate once
    rotated = {}
    for cx, cy, angle in placements:
        key = round(angle, 6)
        if key not in rotated:
            stamp = rotate_sprite(sprite, angle)
            if layer.shadow_active:
                shadow_from = rotate_sprite(caster, angle) if caster is not None else None
                stamp = add_drop_shadow(stamp, *shadow_params(layer), caster=shadow_from)
            rotated[key] = stamp
        _stamp(buffer, rotated[key], cx, cy)
    return buffer


# ======================================================================
# Render
# ======================================================================

def render(base_image: RasterImage, layers: Iterable[Layer], assets=None,
           highlight_layer_id: Optional[str] = None) -> RasterImage:
    """Composite a layer stack over a base image

    Args:
        base_image: Background raster; defines the output size
        layers: Layers bottom to top (a LayerStack iterates this way)
        assets: AssetLibrary resolving image layer asset ids
        highlight_layer_id: Layer to outline with transform handles
            (editor preview only)

    Returns:
        New RasterImage the size of base_image
    """
    width, height = base_image.width, base_image.height
    canvas = base_image.pixels.astype(np.float32) / 255.0
    highlighted = None

    for layer in layers:
        if not layer.visible:
            continue
        if layer.id == highlight_layer_id:
            highlighted = layer
        buffer = rasterize_layer(layer, width, height, assets)
        if buffer is None:
            continue
        source = np.asarray(buffer, dtype=np.float32) / 255.0
        blend_modes.composite(canvas, source, layer.blend_mode, layer.opacity)

    pixels = np.round(canvas * 255.0).astype(np.uint8)
    result = RasterImage(pixels)

    if highlighted is not None:
        box = layer_box(highlighted, width, height, assets)
        if box is not None:
            result = RasterImage.from_pil(draw_selection(result.to_pil(), box))
    return result
