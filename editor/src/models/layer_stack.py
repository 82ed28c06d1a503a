"""
Watermark Editor - Layer Stack Model

Ordered, paintable collection of Layer objects plus the active layer id.

Invariants:
    - The stack always holds at least one layer
    - Layer ids are unique within the stack
    - Index 0 is painted first (bottom), the last index is topmost

All layer mutation goes through this class so there is a single owner;
listeners registered with add_listener() are called after every change
so views can recomposite.

Usage:
    stack = LayerStack()
    layer = stack.add_layer('text')
    stack.update_layer(layer.id, text='Sample', opacity=0.5)
    stack.move_layer_to_bottom(layer.id)

    snapshot = stack.get_snapshot()
    stack.set_snapshot(snapshot)
"""

import logging
from typing import Callable, Iterator, List, Optional

from models.layer import Layer, TextContent, ImageContent, new_layer_id
from constants import (
    DEFAULT_POSITION_X, DEFAULT_POSITION_Y,
    NEW_LAYER_OFFSET, DUPLICATE_OFFSET, DUPLICATE_NAME_SUFFIX,
)


class LastLayerError(ValueError):
    """Raised when removing the only remaining layer"""


class LayerStack:
    """Ordered layer collection with an active layer

    Properties:
        layers: Tuple of layers, bottom to top
        active_layer_id: Id of the layer the transform controller edits
        active_layer: The active Layer object
    """

    def __init__(self, layers: Optional[List[Layer]] = None):
        """Create a stack

        Args:
            layers: Initial layers bottom to top; a single default text
                layer is created when empty or None
        """
        self._logger = logging.getLogger('LayerStack')
        self._listeners = []
        self._layers: List[Layer] = []
        self._active_layer_id = None
        self._load(layers or [Layer()])

    def _load(self, layers):
        ids = [layer.id for layer in layers]
        if len(set(ids)) != len(ids):
            raise ValueError("Layer ids must be unique within a stack")
        if not layers:
            raise LastLayerError("A layer stack needs at least one layer")
        self._layers = list(layers)
        if self._active_layer_id not in ids:
            self._active_layer_id = self._layers[0].id

    # ========================================
    # Change notification
    # ========================================

    def add_listener(self, callback: Callable[[], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self):
        for callback in list(self._listeners):
            callback()

    # ========================================
    # Query
    # ========================================

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(list(self._layers))

    def __getitem__(self, index) -> Layer:
        return self._layers[index]

    def __contains__(self, layer_id) -> bool:
        return self.find(layer_id) is not None

    @property
    def layers(self):
        return tuple(self._layers)

    @property
    def ids(self) -> List[str]:
        return [layer.id for layer in self._layers]

    def find(self, layer_id: str) -> Optional[Layer]:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def get(self, layer_id: str) -> Layer:
        """Get layer by id

        Raises:
            ValueError: If id not found
        """
        layer = self.find(layer_id)
        if layer is None:
            raise ValueError(f"Layer with id '{layer_id}' not found")
        return layer

    def index_of(self, layer_id: str) -> int:
        for index, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return index
        raise ValueError(f"Layer with id '{layer_id}' not found")

    def top_to_bottom(self) -> List[Layer]:
        return list(reversed(self._layers))

    # ========================================
    # Active layer
    # ========================================

    @property
    def active_layer_id(self) -> str:
        return self._active_layer_id

    @property
    def active_layer(self) -> Layer:
        return self.get(self._active_layer_id)

    def set_active(self, layer_id: str):
        """Make a layer active

        Raises:
            ValueError: If id not found
        """
        self.get(layer_id)
        if layer_id != self._active_layer_id:
            self._active_layer_id = layer_id
            self._logger.debug(f"Active layer: {layer_id}")
            self._changed()

    # ========================================
    # Layer CRUD
    # ========================================

    def add_layer(self, kind: str = 'text', asset_id: Optional[str] = None,
                  make_active: bool = True) -> Layer:
        """Add a default layer on top of the stack

        New layers are offset diagonally by NEW_LAYER_OFFSET percent per
        existing layer so they do not land exactly on top of each other.

        Args:
            kind: 'text' or 'image'
            asset_id: Logo asset id for image layers
            make_active: Select the new layer

        Returns:
            The new Layer
        """
        if kind == 'text':
            content = TextContent()
        elif kind == 'image':
            content = ImageContent(asset_id=asset_id)
        else:
            raise ValueError(f"Unknown layer kind: {kind!r}")

        offset = len(self._layers) * NEW_LAYER_OFFSET
        layer = Layer(content,
                      pos_x=DEFAULT_POSITION_X + offset,
                      pos_y=DEFAULT_POSITION_Y + offset)
        return self.insert_layer(layer, make_active=make_active)

    def insert_layer(self, layer: Layer, index: Optional[int] = None,
                     make_active: bool = True) -> Layer:
        """Insert an existing Layer object

        Args:
            layer: Layer to insert (its id must not already be in the stack)
            index: Stack index, None appends on top
            make_active: Select the inserted layer

        Raises:
            ValueError: If the id is already present
        """
        if self.find(layer.id) is not None:
            raise ValueError(f"Layer with id '{layer.id}' already in stack")
        if index is None:
            self._layers.append(layer)
        else:
            self._layers.insert(index, layer)
        if make_active:
            self._active_layer_id = layer.id
        self._logger.debug(f"Added layer: {layer.id}")
        self._changed()
        return layer

    def remove_layer(self, layer_id: str):
        """Remove layer by id

        When the active layer is removed, the topmost remaining layer
        becomes active.

        Raises:
            LastLayerError: If this is the only layer (stack unchanged)
            ValueError: If id not found
        """
        layer = self.get(layer_id)
        if len(self._layers) <= 1:
            self._logger.info("Refused to remove the last layer")
            raise LastLayerError("At least one layer must remain")

        self._layers.remove(layer)
        if self._active_layer_id == layer_id:
            self._active_layer_id = self._layers[-1].id
        self._logger.debug(f"Removed layer: {layer_id}")
        self._changed()

    def duplicate_layer(self, layer_id: str) -> Layer:
        """Duplicate a layer on top of the stack

        The copy gets a new id, a " (copy)" name suffix and a
        DUPLICATE_OFFSET percent offset, and becomes active.

        Raises:
            ValueError: If id not found
        """
        source = self.get(layer_id)
        duplicate = source.copy(new_id=True)
        duplicate.name = source.name + DUPLICATE_NAME_SUFFIX
        duplicate.pos = (source.pos_x + DUPLICATE_OFFSET, source.pos_y + DUPLICATE_OFFSET)
        self._logger.debug(f"Duplicated layer {layer_id} -> {duplicate.id}")
        return self.insert_layer(duplicate)

    def update_layer(self, layer_id: str, **changes) -> Layer:
        """Set one or more properties on a layer

        Raises:
            ValueError: If id not found or a key is unknown
        """
        layer = self.get(layer_id)
        if not changes:
            return layer
        layer.update(**changes)
        self._logger.debug(f"update_layer(layer={layer_id}, {changes})")
        self._changed()
        return layer

    def toggle_visibility(self, layer_id: str) -> bool:
        layer = self.get(layer_id)
        layer.visible = not layer.visible
        self._changed()
        return layer.visible

    def sync_property(self, key: str, value, confirm: Optional[Callable[[], bool]] = None) -> bool:
        """Broadcast one property value to every layer

        Layers that do not carry the property (text fields on image
        layers) are left alone.

        Args:
            key: Property key as accepted by Layer.update()
            value: Value to apply
            confirm: Confirmation gate; the bulk change only happens when
                it returns True. None counts as already confirmed.

        Returns:
            True if the change was applied
        """
        if confirm is not None and not confirm():
            self._logger.debug(f"sync_property({key}) declined")
            return False

        applied = 0
        first_error = None
        for layer in self._layers:
            try:
                layer.update(**{key: value})
                applied += 1
            except ValueError as e:
                first_error = first_error or e
        if applied == 0:
            raise first_error
        self._logger.debug(f"sync_property({key}={value!r}) applied to {applied} layer(s)")
        self._changed()
        return True

    # ========================================
    # Ordering
    # ========================================

    def move_layer(self, layer_id: str, new_index: int):
        """Move a layer to a stack index (clamped into range)"""
        layer = self.get(layer_id)
        new_index = max(0, min(len(self._layers) - 1, new_index))
        self._layers.remove(layer)
        self._layers.insert(new_index, layer)
        self._changed()

    def move_layer_up(self, layer_id: str):
        """Move one step towards the top (painted later)"""
        self.move_layer(layer_id, self.index_of(layer_id) + 1)

    def move_layer_down(self, layer_id: str):
        """Move one step towards the bottom (painted earlier)"""
        self.move_layer(layer_id, self.index_of(layer_id) - 1)

    def move_layer_to_top(self, layer_id: str):
        self.move_layer(layer_id, len(self._layers) - 1)

    def move_layer_to_bottom(self, layer_id: str):
        self.move_layer(layer_id, 0)

    def swap_layers(self, first_id: str, second_id: str):
        i = self.index_of(first_id)
        j = self.index_of(second_id)
        self._layers[i], self._layers[j] = self._layers[j], self._layers[i]
        self._changed()

    # ========================================
    # Snapshots
    # ========================================

    def get_snapshot(self) -> dict:
        """Independent copy of the stack state"""
        return {
            'layers': [layer.copy() for layer in self._layers],
            'active_layer_id': self._active_layer_id,
        }

    def set_snapshot(self, snapshot: dict):
        """Restore a snapshot taken with get_snapshot()"""
        layers = [layer.copy() for layer in snapshot['layers']]
        self._active_layer_id = snapshot.get('active_layer_id')
        self._load(layers)
        self._changed()

    def replace_all(self, layers: List[Layer]):
        """Replace the whole stack (e.g. after loading a layer file)"""
        self._active_layer_id = None
        self._load(list(layers) or [Layer(layer_id=new_layer_id())])
        self._changed()
