"""
Watermark Editor - Mask Buffer

Boolean buffer the size of the base image marking pixels to reconstruct.
Filled by freehand brush strokes or by rectangles from a region detector
(e.g. face boxes), consumed by the inpainting engine.
"""

from typing import Iterable, List, Protocol, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from models.raster import RasterImage

Rect = Tuple[float, float, float, float]  # x, y, width, height


class RegionDetector(Protocol):
    """External oracle returning axis-aligned regions of interest"""

    def detect(self, image: RasterImage) -> List[Rect]:
        ...


class MaskBuffer:
    """Single-channel mask, True = pixel targeted for fill"""

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError("Mask must be at least 1x1")
        self._data = np.zeros((height, width), dtype=bool)

    @classmethod
    def for_image(cls, image: RasterImage) -> 'MaskBuffer':
        return cls(image.width, image.height)

    @classmethod
    def from_array(cls, array) -> 'MaskBuffer':
        """Build from any 2D array; non-zero entries are masked"""
        array = np.asarray(array)
        if array.ndim == 3:
            array = array[..., -1]
        mask = cls(array.shape[1], array.shape[0])
        mask._data[...] = array != 0
        return mask

    @classmethod
    def from_pil(cls, image: Image.Image) -> 'MaskBuffer':
        """Alpha channel if present, luminance otherwise"""
        if image.mode in ('RGBA', 'LA'):
            return cls.from_array(np.asarray(image.getchannel('A')))
        return cls.from_array(np.asarray(image.convert('L')))

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def data(self) -> np.ndarray:
        return self._data

    def is_empty(self) -> bool:
        return not self._data.any()

    def count(self) -> int:
        return int(self._data.sum())

    def clear(self):
        self._data[...] = False

    def indices(self) -> np.ndarray:
        """Flat (row-major) indices of masked pixels"""
        return np.flatnonzero(self._data)

    def _draw(self, paint):
        # Rasterise with Pillow then OR into the boolean buffer
        layer = Image.new('L', (self.width, self.height), 0)
        paint(ImageDraw.Draw(layer))
        self._data |= np.asarray(layer) > 0

    def paint_stroke(self, points: Sequence[Tuple[float, float]], radius: float):
        """Round brush along a polyline in canvas pixels"""
        points = list(points)
        if not points or radius <= 0:
            return
        width = max(1, int(round(radius * 2)))

        def paint(draw):
            if len(points) > 1:
                draw.line(points, fill=255, width=width, joint='curve')
            for x, y in points:
                draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=255)

        self._draw(paint)

    def add_rectangle(self, x: float, y: float, width: float, height: float):
        if width <= 0 or height <= 0:
            return
        self._draw(lambda draw: draw.rectangle((x, y, x + width - 1, y + height - 1), fill=255))

    def add_ellipse(self, x: float, y: float, width: float, height: float):
        if width <= 0 or height <= 0:
            return
        self._draw(lambda draw: draw.ellipse((x, y, x + width - 1, y + height - 1), fill=255))

    def add_regions(self, regions: Iterable[Rect], shape: str = 'rectangle'):
        """Mask detector output

        Args:
            regions: (x, y, width, height) boxes
            shape: 'rectangle' or 'ellipse' (inscribed in each box)
        """
        if shape not in ('rectangle', 'ellipse'):
            raise ValueError(f"Unknown region shape: {shape!r}")
        for x, y, w, h in regions:
            if shape == 'ellipse':
                self.add_ellipse(x, y, w, h)
            else:
                self.add_rectangle(x, y, w, h)

    def add_detected(self, detector: RegionDetector, image: RasterImage, shape: str = 'ellipse'):
        self.add_regions(detector.detect(image), shape=shape)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self._data.astype(np.uint8) * 255, 'L')
