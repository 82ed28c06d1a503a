"""Separable blend modes and source-over compositing on float RGBA buffers.

Buffers are float32 arrays in [0, 1] with straight (non-premultiplied)
alpha. Blend functions follow the W3C Compositing and Blending formulas
that a 2D canvas uses for globalCompositeOperation.
"""

import numpy as np

from models.layer import BlendMode


def _soft_light(cb, cs):
    d = np.where(cb <= 0.25, ((16.0 * cb - 12.0) * cb + 4.0) * cb, np.sqrt(cb))
    return np.where(
        cs <= 0.5,
        cb - (1.0 - 2.0 * cs) * cb * (1.0 - cb),
        cb + (2.0 * cs - 1.0) * (d - cb),
    )


def _hard_light(cb, cs):
    return np.where(
        cs <= 0.5,
        2.0 * cb * cs,
        1.0 - 2.0 * (1.0 - cb) * (1.0 - cs),
    )


def _color_dodge(cb, cs):
    eps = 1e-6
    out = np.minimum(1.0, cb / np.maximum(1.0 - cs, eps))
    out = np.where(cs >= 1.0, 1.0, out)
    return np.where(cb <= 0.0, 0.0, out)


def _color_burn(cb, cs):
    eps = 1e-6
    out = 1.0 - np.minimum(1.0, (1.0 - cb) / np.maximum(cs, eps))
    out = np.where(cs <= 0.0, 0.0, out)
    return np.where(cb >= 1.0, 1.0, out)


_BLEND_FUNCS = {
    BlendMode.NORMAL: lambda cb, cs: cs,
    BlendMode.MULTIPLY: lambda cb, cs: cb * cs,
    BlendMode.SCREEN: lambda cb, cs: cb + cs - cb * cs,
    # Overlay is hard light with the layers swapped
    BlendMode.OVERLAY: lambda cb, cs: _hard_light(cs, cb),
    BlendMode.SOFT_LIGHT: _soft_light,
    BlendMode.HARD_LIGHT: _hard_light,
    BlendMode.COLOR_DODGE: _color_dodge,
    BlendMode.COLOR_BURN: _color_burn,
    BlendMode.DARKEN: np.minimum,
    BlendMode.LIGHTEN: np.maximum,
    BlendMode.DIFFERENCE: lambda cb, cs: np.abs(cb - cs),
    BlendMode.EXCLUSION: lambda cb, cs: cb + cs - 2.0 * cb * cs,
}


def blend(mode: BlendMode, backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    """B(Cb, Cs) for one blend mode, on RGB arrays in [0, 1]"""
    try:
        func = _BLEND_FUNCS[mode]
    except KeyError:
        raise ValueError(f"No blend function for {mode!r}")
    return func(backdrop, source)


def composite(canvas: np.ndarray, layer: np.ndarray, mode: BlendMode, opacity: float = 1.0) -> np.ndarray:
    """Paint a layer buffer over the canvas.

    Args:
        canvas: (H, W, 4) float32 backdrop, modified in place and returned
        layer: (H, W, 4) float32 source, same shape
        mode: Blend mode for the colour term
        opacity: Extra alpha multiplier for the whole layer

    Returns:
        The canvas array
    """
    if canvas.shape != layer.shape:
        raise ValueError(f"Shape mismatch: canvas {canvas.shape} vs layer {layer.shape}")
    if opacity <= 0.0:
        return canvas

    # Only touch the bounding box of the layer's visible pixels
    covered = layer[..., 3] > 0.0
    rows = np.flatnonzero(covered.any(axis=1))
    if rows.size == 0:
        return canvas
    cols = np.flatnonzero(covered.any(axis=0))
    region = (slice(rows[0], rows[-1] + 1), slice(cols[0], cols[-1] + 1))

    dst = canvas[region]
    src = layer[region]
    cb = dst[..., :3]
    ab = dst[..., 3:4]
    cs = src[..., :3]
    a_s = src[..., 3:4] * np.float32(opacity)

    mixed = (1.0 - ab) * cs + ab * blend(mode, cb, cs)
    ao = a_s + ab * (1.0 - a_s)
    co = a_s * mixed + ab * cb * (1.0 - a_s)
    safe = np.where(ao > 0.0, ao, 1.0)
    co = np.where(ao > 0.0, co / safe, 0.0)

    dst[..., :3] = np.clip(co, 0.0, 1.0)
    dst[..., 3:4] = np.clip(ao, 0.0, 1.0)
    return canvas
