"""
Watermark Editor - Editor Store

Document is the single owner of editor state:
- image slots (base images) and which one is active
- which slots are selected for batch export
- the LayerStack (shared by every slot) and its active layer
- the AssetLibrary of logos
- the mask buffer of the active slot

Every mutation bumps `revision` and notifies listeners, which is what
drives a re-render in the presentation layer.
"""

import logging
import os
import uuid as uuid_module
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.asset_library import AssetLibrary
from models.layer_stack import LayerStack
from models.mask import MaskBuffer
from models.raster import RasterImage


@dataclass
class ImageSlot:
    """One base image the layer stack is applied to"""
    name: str
    image: RasterImage
    id: str = field(default_factory=lambda: str(uuid_module.uuid4()))


class Document:
    """Central editor state with change notification

    Args:
        layer_stack: Existing stack, a fresh single-layer stack otherwise
        assets: Existing asset library, a fresh one otherwise
    """

    def __init__(self, layer_stack: Optional[LayerStack] = None, assets: Optional[AssetLibrary] = None):
        self._logger = logging.getLogger('Document')
        self.layers = layer_stack if layer_stack is not None else LayerStack()
        self.assets = assets if assets is not None else AssetLibrary()
        self._slots: List[ImageSlot] = []
        self._active_index = 0
        self._export_ids = set()
        self._mask: Optional[MaskBuffer] = None
        self._listeners = []
        self.revision = 0

        self.layers.add_listener(self._changed)
        self.assets.add_listener(self._changed)

    # ========================================
    # Change notification
    # ========================================

    def add_listener(self, callback: Callable[[], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self):
        self.revision += 1
        for callback in list(self._listeners):
            callback()

    # ========================================
    # Image slots
    # ========================================

    @property
    def slots(self):
        return tuple(self._slots)

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_slot(self) -> Optional[ImageSlot]:
        if not self._slots:
            return None
        return self._slots[self._active_index]

    @property
    def active_image(self) -> Optional[RasterImage]:
        slot = self.active_slot
        return slot.image if slot else None

    def get_slot(self, slot_id: str) -> ImageSlot:
        for slot in self._slots:
            if slot.id == slot_id:
                return slot
        raise ValueError(f"Image with id '{slot_id}' not found")

    def add_image(self, image: RasterImage, name: str) -> ImageSlot:
        """Append a base image; the first image becomes active"""
        slot = ImageSlot(name=name, image=image)
        self._slots.append(slot)
        if len(self._slots) == 1:
            self._active_index = 0
            self._reset_mask()
        self._logger.debug(f"Added image {slot.id} ({name}, {image.width}x{image.height})")
        self._changed()
        return slot

    def open_image(self, path) -> ImageSlot:
        """Decode a file and add it as a slot named after the file"""
        return self.add_image(RasterImage.open(path), os.path.basename(str(path)))

    def remove_image(self, slot_id: str):
        """Remove a slot and its export selection

        Removing the active slot moves the selection to the previous one.
        """
        slot = self.get_slot(slot_id)
        index = self._slots.index(slot)
        self._slots.remove(slot)
        self._export_ids.discard(slot_id)

        if index == self._active_index:
            self._active_index = max(0, index - 1)
            self._reset_mask()
        elif index < self._active_index:
            self._active_index -= 1
        self._logger.debug(f"Removed image {slot_id}")
        self._changed()

    def select_image(self, index: int):
        """Make the slot at index the one being edited"""
        if not 0 <= index < len(self._slots):
            raise ValueError(f"Image index {index} out of range")
        if index == self._active_index:
            return
        self._active_index = index
        self._reset_mask()
        self._changed()

    def replace_active_image(self, image: RasterImage):
        slot = self.active_slot
        if slot is None:
            raise ValueError("No active image")
        if (image.width, image.height) != (slot.image.width, slot.image.height):
            raise ValueError("Replacement image must keep the slot size")
        slot.image = image
        self._changed()

    # ========================================
    # Export selection
    # ========================================

    @property
    def export_selection(self):
        return frozenset(self._export_ids)

    def toggle_export_selection(self, slot_id: str) -> bool:
        self.get_slot(slot_id)
        if slot_id in self._export_ids:
            self._export_ids.discard(slot_id)
        else:
            self._export_ids.add(slot_id)
        self._changed()
        return slot_id in self._export_ids

    def select_all(self):
        """Select every slot, or clear the selection if all are selected"""
        all_ids = {slot.id for slot in self._slots}
        if self._slots and self._export_ids == all_ids:
            self._export_ids = set()
        else:
            self._export_ids = all_ids
        self._changed()

    def export_targets(self) -> List[ImageSlot]:
        """Selected slots in list order, or every slot when none are selected"""
        if not self._export_ids:
            return list(self._slots)
        return [slot for slot in self._slots if slot.id in self._export_ids]

    # ========================================
    # Mask / region fill
    # ========================================

    def _reset_mask(self):
        image = self.active_image
        self._mask = MaskBuffer.for_image(image) if image is not None else None

    @property
    def mask(self) -> Optional[MaskBuffer]:
        return self._mask

    def paint_mask(self, points, radius: float):
        """Brush stroke onto the active slot's mask"""
        if self._mask is None:
            raise ValueError("No active image to mask")
        self._mask.paint_stroke(points, radius)
        self._changed()

    def clear_mask(self):
        if self._mask is not None and not self._mask.is_empty():
            self._mask.clear()
            self._changed()

    def fill_region(self, iterations: Optional[int] = None) -> RasterImage:
        """Inpaint the masked region of the active slot's base image

        The result replaces the base image and the mask is cleared.

        Raises:
            EmptyMaskError: If nothing is masked (base unchanged)
        """
        from services.inpainting import fill
        from constants import INPAINT_ITERATIONS

        if self._mask is None:
            raise ValueError("No active image to fill")
        result = fill(self.active_image, self._mask,
                      INPAINT_ITERATIONS if iterations is None else iterations)
        self.apply_fill(result, self.active_slot.id)
        return result

    def apply_fill(self, image: RasterImage, slot_id: str):
        """Commit an inpainting result to the slot it was computed from

        The mask is cleared when that slot is still the active one.

        Raises:
            ValueError: Unknown slot, or the result does not match the slot size
        """
        slot = self.get_slot(slot_id)
        if (image.width, image.height) != (slot.image.width, slot.image.height):
            raise ValueError(f"Fill result is {image.width}x{image.height}, "
                             f"slot {slot_id} is {slot.image.width}x{slot.image.height}")
        slot.image = image
        if slot is self.active_slot:
            self._reset_mask()
        self._logger.debug(f"Filled masked region of {slot.id}")
        self._changed()

    # ========================================
    # Rendering
    # ========================================

    def render_active(self, highlight: bool = True) -> Optional[RasterImage]:
        """Composite the layer stack over the active slot

        Args:
            highlight: Draw the selection overlay for the active layer
        """
        from services.compositor import render

        image = self.active_image
        if image is None:
            return None
        highlight_id = self.layers.active_layer_id if highlight else None
        return render(image, self.layers, self.assets, highlight_layer_id=highlight_id)
