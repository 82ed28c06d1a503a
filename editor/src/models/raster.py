"""In-memory raster image: the only pixel format the core consumes and produces."""

import os
from typing import Optional

import numpy as np
from PIL import Image


class RasterImage:
    """Immutable-by-convention RGBA pixel buffer.

    pixels is a (height, width, 4) uint8 array. Operations that change pixels
    return a new RasterImage; callers should not write into .pixels.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError("Image must be at least 1x1")
        self._pixels = np.ascontiguousarray(pixels, dtype=np.uint8)

    @classmethod
    def blank(cls, width: int, height: int, color=(255, 255, 255, 255)) -> 'RasterImage':
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = np.asarray(color, dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_pil(cls, image: Image.Image) -> 'RasterImage':
        return cls(np.asarray(image.convert('RGBA')))

    @classmethod
    def open(cls, path) -> 'RasterImage':
        """Decode an image file with Pillow"""
        with Image.open(path) as image:
            return cls.from_pil(image)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self):
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def copy(self) -> 'RasterImage':
        return RasterImage(self._pixels.copy())

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self._pixels, 'RGBA')

    def tobytes(self) -> bytes:
        return self._pixels.tobytes()

    def save(self, path, format: Optional[str] = None, quality: int = 95):
        """Encode to disk; JPEG output is flattened to RGB"""
        image = self.to_pil()
        fmt = (format or os.path.splitext(str(path))[1].lstrip('.') or 'PNG').upper()
        if fmt == 'JPG':
            fmt = 'JPEG'
        if fmt == 'JPEG':
            image.convert('RGB').save(path, fmt, quality=quality)
        else:
            image.save(path, fmt)

    def __eq__(self, other):
        if not isinstance(other, RasterImage):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and np.array_equal(self._pixels, other._pixels)

    def __hash__(self):
        return hash((self._pixels.shape, self._pixels.tobytes()))

    def __repr__(self):
        return f"RasterImage({self.width}x{self.height})"
