"""
Watermark Editor - Mark Renderer

Turns one layer into pixels with Pillow:
- content_metrics(): content width/height on a given canvas width
- render_mark_sprite(): unrotated mark (background, stroke, fill or logo)
  centred in a transparent RGBA sprite
- rotate_sprite() / add_drop_shadow(): placement-time effects; stroked text
  casts its shadow from the fill only (render_shadow_caster())

Sprites are symmetric around the content centre, so the centre of every
sprite (including after expand-rotation and shadow padding) is the layer's
anchor point.
"""

import logging
import math
from functools import lru_cache
from typing import Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from models.layer import Layer, TextContent, ImageContent
from constants import (
    SIZE_UNITS, STROKE_UNITS, MIN_STROKE_PIXELS,
    TEXT_SPRITE_MARGIN, ITALIC_SHEAR, FONT_CANDIDATES,
    SHADOW_COLOR, SHADOW_ALPHA,
    TEXT_SHADOW_MIN_BLUR, TEXT_SHADOW_BLUR_DIVISOR,
    TEXT_SHADOW_MIN_OFFSET, TEXT_SHADOW_OFFSET_DIVISOR,
    IMAGE_SHADOW_BLUR, IMAGE_SHADOW_OFFSET,
)

logger = logging.getLogger(__name__)


# ======================================================================
# Fonts
# ======================================================================

@lru_cache(maxsize=64)
def load_font(size_px: float, bold: bool = False, italic: bool = False):
    """Load a font face for the requested style

    Tries the installed faces in FONT_CANDIDATES, then Pillow's bundled
    default face.

    Returns:
        (font, has_bold_face, has_italic_face)
    """
    size_px = max(1.0, float(size_px))
    for name in FONT_CANDIDATES[(bool(bold), bool(italic))]:
        try:
            return ImageFont.truetype(name, size_px), bold, italic
        except OSError:
            continue
    logger.debug("No installed face for bold=%s italic=%s, using Pillow default", bold, italic)
    return ImageFont.load_default(size=size_px), False, False


def font_size_for(layer: Layer, canvas_width: int) -> float:
    return layer.size / SIZE_UNITS * canvas_width


def stroke_pixels(content: TextContent, canvas_width: int) -> int:
    """Stroke width in whole pixels, 0 when stroke is disabled"""
    if content.stroke_width <= 0:
        return 0
    return int(round(max(MIN_STROKE_PIXELS, canvas_width * content.stroke_width / STROKE_UNITS)))


def _font_key(size_px: float) -> float:
    # Quantise so near-identical sizes share a cache entry
    return round(max(1.0, size_px), 2)


def _text_font(content: TextContent, font_size: float):
    return load_font(_font_key(font_size), content.bold, content.italic)


# ======================================================================
# Metrics
# ======================================================================

def content_metrics(layer: Layer, canvas_width: int, assets) -> Optional[Tuple[float, float]]:
    """Content width/height in canvas pixels, before padding or rotation

    Text: glyph-run advance width at font size = size/1000 * canvas width,
    height = font size. Image: width = size/1000 * canvas width, height
    keeps the logo aspect ratio.

    Returns:
        (width, height), or None for an image layer whose asset is missing
    """
    content = layer.content
    if isinstance(content, TextContent):
        font_size = font_size_for(layer, canvas_width)
        if not content.text:
            return 0.0, font_size
        font, _, _ = _text_font(content, font_size)
        return float(font.getlength(content.text)), font_size
    if isinstance(content, ImageContent):
        asset = assets.get(content.asset_id) if assets is not None else None
        if asset is None:
            return None
        width = layer.size / SIZE_UNITS * canvas_width
        return width, width * asset.aspect
    raise TypeError(f"Unsupported layer content: {type(content).__name__}")


def background_pixels(layer: Layer, canvas_width: int) -> float:
    return layer.background_padding / SIZE_UNITS * canvas_width


# ======================================================================
# Sprites
# ======================================================================

def render_mark_sprite(layer: Layer, canvas_width: int, assets) -> Optional[Image.Image]:
    """Render the unrotated mark centred in an RGBA sprite

    Paint order: padded background rect, then stroke, then fill (text) or
    the scaled logo bitmap.

    Returns:
        RGBA sprite, or None when there is nothing to draw
    """
    metrics = content_metrics(layer, canvas_width, assets)
    if metrics is None:
        return None
    content_w, content_h = metrics
    if content_w <= 0 or content_h <= 0:
        return None

    content = layer.content
    if isinstance(content, TextContent):
        return _render_text_sprite(layer, content, canvas_width, content_w, content_h)
    if isinstance(content, ImageContent):
        return _render_logo_sprite(layer, assets.get(content.asset_id), canvas_width, content_w, content_h)
    raise TypeError(f"Unsupported layer content: {type(content).__name__}")


def _sprite_canvas(content_w, content_h, margin):
    width = int(math.ceil(content_w)) + 2 * margin
    height = int(math.ceil(content_h)) + 2 * margin
    # Even dimensions keep the centre on a pixel boundary
    width += width % 2
    height += height % 2
    return Image.new('RGBA', (width, height), (0, 0, 0, 0))


def _draw_background(layer, sprite, canvas_width, content_w, content_h):
    pad = background_pixels(layer, canvas_width)
    cx = sprite.width / 2.0
    cy = sprite.height / 2.0
    ImageDraw.Draw(sprite).rectangle(
        (cx - content_w / 2.0 - pad, cy - content_h / 2.0 - pad,
         cx + content_w / 2.0 + pad, cy + content_h / 2.0 + pad),
        fill=ImageColor.getrgb(layer.background_color),
    )


def _render_text_sprite(layer, content, canvas_width, content_w, content_h):
    sprite, glyphs = _text_glyphs(layer, content, canvas_width, content_w, content_h, with_stroke=True)
    if layer.has_background:
        _draw_background(layer, sprite, canvas_width, content_w, content_h)
    sprite.alpha_composite(glyphs)
    return sprite


def _text_glyphs(layer, content, canvas_width, content_w, content_h, with_stroke):
    """Empty sprite canvas plus the text drawn on a same-size transparent image"""
    font_size = content_h
    font, bold_face, italic_face = _text_font(content, font_size)
    stroke = stroke_pixels(content, canvas_width)
    # Without a bold face, thicken the glyphs with a same-colour stroke
    fake_bold = int(round(font_size / 30.0)) if content.bold and not bold_face else 0

    margin = int(math.ceil(stroke + fake_bold + font_size * TEXT_SPRITE_MARGIN))
    if layer.has_background:
        margin += int(math.ceil(background_pixels(layer, canvas_width)))
    sprite = _sprite_canvas(content_w, content_h, margin)
    center = (sprite.width / 2.0, sprite.height / 2.0)

    glyphs = Image.new('RGBA', sprite.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(glyphs)
    fill = ImageColor.getrgb(content.color)
    if with_stroke and stroke > 0:
        stroke_fill = ImageColor.getrgb(content.stroke_color)
        draw.text(center, content.text, font=font, fill=stroke_fill, anchor='mm',
                  stroke_width=stroke + fake_bold, stroke_fill=stroke_fill)
    draw.text(center, content.text, font=font, fill=fill, anchor='mm',
              stroke_width=fake_bold, stroke_fill=fill)

    if content.italic and not italic_face:
        glyphs = _shear(glyphs, ITALIC_SHEAR)
    return sprite, glyphs


def render_shadow_caster(layer: Layer, canvas_width: int, assets) -> Optional[Image.Image]:
    """The part of the sprite that casts the drop shadow

    Stroked text casts its shadow from the fill glyphs only. Returns an
    image the size of render_mark_sprite()'s result, or None when the
    whole sprite casts the shadow.
    """
    content = layer.content
    if not isinstance(content, TextContent) or stroke_pixels(content, canvas_width) == 0:
        return None
    metrics = content_metrics(layer, canvas_width, assets)
    if metrics is None or metrics[0] <= 0 or metrics[1] <= 0:
        return None
    _, glyphs = _text_glyphs(layer, content, canvas_width, metrics[0], metrics[1], with_stroke=False)
    return glyphs


def _shear(image, amount):
    """Lean the image right by amount * height around its vertical centre"""
    half_h = image.height / 2.0
    return image.transform(
        image.size, Image.Transform.AFFINE,
        (1.0, amount, -amount * half_h, 0.0, 1.0, 0.0),
        resample=Image.Resampling.BICUBIC,
    )


def _render_logo_sprite(layer, asset, canvas_width, content_w, content_h):
    margin = 0
    if layer.has_background:
        margin = int(math.ceil(background_pixels(layer, canvas_width)))
    sprite = _sprite_canvas(content_w, content_h, margin)

    target = (max(1, int(round(content_w))), max(1, int(round(content_h))))
    logo = asset.image.to_pil()
    if logo.size != target:
        logo = logo.resize(target, Image.Resampling.LANCZOS)

    if layer.has_background:
        _draw_background(layer, sprite, canvas_width, content_w, content_h)
    left = (sprite.width - logo.width) // 2
    top = (sprite.height - logo.height) // 2
    sprite.alpha_composite(logo, dest=(left, top))
    return sprite


# ======================================================================
# Placement effects
# ======================================================================

def rotate_sprite(sprite: Image.Image, degrees: float) -> Image.Image:
    """Rotate clockwise on screen (Y-down), growing the sprite to fit"""
    if degrees % 360.0 == 0.0:
        return sprite
    # PIL rotates counter-clockwise for positive angles
    return sprite.rotate(-degrees, resample=Image.Resampling.BICUBIC, expand=True)


def shadow_params(layer: Layer) -> Tuple[float, float]:
    """(blur, offset) in canvas pixels for the layer's drop shadow"""
    if layer.is_text:
        blur = max(TEXT_SHADOW_MIN_BLUR, layer.size / TEXT_SHADOW_BLUR_DIVISOR)
        offset = max(TEXT_SHADOW_MIN_OFFSET, layer.size / TEXT_SHADOW_OFFSET_DIVISOR)
        return blur, offset
    return IMAGE_SHADOW_BLUR, IMAGE_SHADOW_OFFSET


def add_drop_shadow(sprite: Image.Image, blur: float, offset: float,
                    caster: Optional[Image.Image] = None) -> Image.Image:
    """Composite a blurred, offset shadow beneath the sprite

    The shadow follows caster's alpha (same size as sprite) when given,
    else the sprite's own. The sprite is padded symmetrically so its
    centre does not move.
    """
    if caster is not None and caster.size != sprite.size:
        raise ValueError(f"Shadow caster {caster.size} does not match sprite {sprite.size}")
    pad = int(math.ceil(blur * 2.0 + offset))
    size = (sprite.width + 2 * pad, sprite.height + 2 * pad)

    source = sprite if caster is None else caster
    alpha = source.getchannel('A').point(lambda a: int(round(a * SHADOW_ALPHA)))
    shadow_alpha = Image.new('L', size, 0)
    shift = int(round(offset))
    shadow_alpha.paste(alpha, (pad + shift, pad + shift))
    if blur > 0:
        # Canvas shadowBlur corresponds to a Gaussian sigma of blur / 2
        shadow_alpha = shadow_alpha.filter(ImageFilter.GaussianBlur(blur / 2.0))

    result = Image.new('RGBA', size, SHADOW_COLOR + (0,))
    result.putalpha(shadow_alpha)
    result.alpha_composite(sprite, dest=(pad, pad))
    return result
