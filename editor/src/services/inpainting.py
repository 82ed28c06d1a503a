"""
Watermark Editor - Inpainting Engine

Region fill by neighbour diffusion. Every masked pixel repeatedly takes the
mean RGB of its in-bounds 8-neighbourhood, so colour flows in from the mask
border over the iterations. Alpha is left as it was.

Each iteration reads the buffer as it stood when the iteration began
(Jacobi update), which makes the result independent of pixel visiting
order.

Only the base image is ever read, never a composited render; otherwise the
watermark itself would be smeared into the repaired region.
"""

import logging
from typing import Iterator

import numpy as np

from models.mask import MaskBuffer
from models.raster import RasterImage
from constants import INPAINT_ITERATIONS

logger = logging.getLogger(__name__)

_NEIGHBOUR_OFFSETS = np.array([
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
])


class EmptyMaskError(ValueError):
    """Fill requested with nothing masked"""


class InpaintJob:
    """Incremental diffusion fill of one masked region

    Neighbour indices are computed once up front; step() then costs one
    gather/mean over the masked pixels.

    Args:
        base_image: Image to repair (not modified)
        mask: MaskBuffer the same size as the image
        iterations: Number of diffusion passes

    Raises:
        EmptyMaskError: If the mask selects no pixels
        ValueError: If mask and image sizes differ
    """

    def __init__(self, base_image: RasterImage, mask: MaskBuffer, iterations: int = INPAINT_ITERATIONS):
        if (mask.width, mask.height) != (base_image.width, base_image.height):
            raise ValueError(
                f"Mask size {mask.width}x{mask.height} does not match image "
                f"{base_image.width}x{base_image.height}")
        if mask.is_empty():
            raise EmptyMaskError("Nothing to fill: the mask is empty")
        if iterations < 0:
            raise ValueError("iterations must be >= 0")

        self.iterations = int(iterations)
        self.iteration = 0
        self._width = base_image.width
        self._height = base_image.height
        self._alpha = base_image.pixels[..., 3].copy()
        self._rgb = base_image.pixels[..., :3].reshape(-1, 3).astype(np.float64)

        targets = mask.indices()
        ys, xs = np.divmod(targets, self._width)
        nx = xs[:, None] + _NEIGHBOUR_OFFSETS[None, :, 0]
        ny = ys[:, None] + _NEIGHBOUR_OFFSETS[None, :, 1]
        valid = (nx >= 0) & (nx < self._width) & (ny >= 0) & (ny < self._height)
        counts = valid.sum(axis=1)

        # A 1x1 image has a masked pixel with no neighbours; leave it alone
        keep = counts > 0
        self._targets = targets[keep]
        self._neighbours = np.where(valid, ny * self._width + nx, 0)[keep]
        self._valid = valid[keep, :, None]
        self._counts = counts[keep, None].astype(np.float64)
        logger.debug(f"Inpaint job: {targets.size} masked pixels, {self.iterations} iterations")

    @property
    def done(self) -> bool:
        return self.iteration >= self.iterations

    @property
    def progress(self) -> float:
        if self.iterations == 0:
            return 1.0
        return self.iteration / self.iterations

    def step(self) -> bool:
        """Run one diffusion pass

        Returns:
            True while more passes remain
        """
        if self.done:
            return False
        if self._targets.size:
            # Fancy indexing copies, so every read sees the pre-pass buffer
            gathered = self._rgb[self._neighbours]
            sums = np.where(self._valid, gathered, 0.0).sum(axis=1)
            self._rgb[self._targets] = sums / self._counts
        self.iteration += 1
        return not self.done

    def run(self) -> RasterImage:
        while self.step():
            pass
        return self.result()

    def result(self) -> RasterImage:
        """Current buffer as a new image"""
        rgb = np.clip(np.round(self._rgb), 0, 255).astype(np.uint8)
        pixels = np.empty((self._height, self._width, 4), dtype=np.uint8)
        pixels[..., :3] = rgb.reshape(self._height, self._width, 3)
        pixels[..., 3] = self._alpha
        return RasterImage(pixels)


def fill_steps(base_image: RasterImage, mask: MaskBuffer,
               iterations: int = INPAINT_ITERATIONS) -> Iterator[InpaintJob]:
    """Cooperative form of fill() for event-loop driven callers

    Validation happens immediately; the returned iterator yields the job
    after every pass. Take job.result() once job.done is True.

    Raises:
        EmptyMaskError: If the mask selects no pixels
    """
    job = InpaintJob(base_image, mask, iterations)

    def steps():
        if job.done:
            yield job
            return
        while not job.done:
            job.step()
            yield job

    return steps()


def fill(base_image: RasterImage, mask: MaskBuffer, iterations: int = INPAINT_ITERATIONS) -> RasterImage:
    """Reconstruct masked pixels of base_image by neighbour diffusion

    Args:
        base_image: Image to repair (not modified)
        mask: Pixels to reconstruct
        iterations: Number of diffusion passes

    Returns:
        New RasterImage with the masked region filled

    Raises:
        EmptyMaskError: If the mask selects no pixels
    """
    return InpaintJob(base_image, mask, iterations).run()
