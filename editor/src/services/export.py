"""
Watermark Editor - Export Service

Renders slots without the selection overlay and writes them to disk.
Batch export walks the targets one by one, so only one full-size render
is alive at a time.
"""

import logging
import os
from typing import Iterator, List, Optional, Tuple

from models.document import Document, ImageSlot
from models.raster import RasterImage
from services.compositor import render
from constants import EXPORT_FILENAME_PREFIX, DEFAULT_EXPORT_FORMAT, DEFAULT_JPEG_QUALITY

logger = logging.getLogger(__name__)

_EXTENSIONS = {'PNG': '.png', 'JPEG': '.jpg', 'WEBP': '.webp'}


def output_filename(name: str, image_format: Optional[str] = None) -> str:
    """watermarked_<name>, with the extension swapped when a format is forced"""
    base = os.path.basename(name)
    if image_format:
        fmt = image_format.upper()
        if fmt == 'JPG':
            fmt = 'JPEG'
        stem = os.path.splitext(base)[0]
        base = stem + _EXTENSIONS.get(fmt, '.' + fmt.lower())
    elif not os.path.splitext(base)[1]:
        base += _EXTENSIONS[DEFAULT_EXPORT_FORMAT]
    return EXPORT_FILENAME_PREFIX + base


def render_slot(document: Document, slot: ImageSlot) -> RasterImage:
    """Final render of one slot: every layer, no overlay"""
    return render(slot.image, document.layers, document.assets, highlight_layer_id=None)


def iter_batch(document: Document) -> Iterator[Tuple[ImageSlot, RasterImage]]:
    """Render export targets one at a time"""
    for slot in document.export_targets():
        yield slot, render_slot(document, slot)


def render_batch(document: Document) -> List[Tuple[ImageSlot, RasterImage]]:
    return list(iter_batch(document))


def export_current(document: Document, output_dir, image_format: Optional[str] = None,
                   quality: int = DEFAULT_JPEG_QUALITY) -> str:
    """Write the active slot to output_dir

    Returns:
        Path of the written file
    """
    slot = document.active_slot
    if slot is None:
        raise ValueError("No image to export")
    return _write(slot, render_slot(document, slot), output_dir, image_format, quality)


def export_batch(document: Document, output_dir, image_format: Optional[str] = None,
                 quality: int = DEFAULT_JPEG_QUALITY) -> List[str]:
    """Write every export target to output_dir

    Returns:
        Paths of the written files, in slot order
    """
    paths = []
    for slot, image in iter_batch(document):
        paths.append(_write(slot, image, output_dir, image_format, quality))
    logger.info(f"Exported {len(paths)} image(s) to {output_dir}")
    return paths


def _write(slot, image, output_dir, image_format, quality):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(str(output_dir), output_filename(slot.name, image_format))
    image.save(path, format=image_format, quality=quality)
    logger.debug(f"Wrote {path}")
    return path
