"""Gesture controller - pointer events in, layer transforms out.

State machine over one active layer:

    idle -> moving      pointer-down inside the active layer's padded box
    idle -> rotating    pointer-down on the rotate handle
    idle -> resizing    pointer-down on the resize handle
    any  -> gesture     a second pointer goes down (pinch/rotate/pan)
    any  -> idle        pointer-up keeps the values, cancel restores them

A pointer-down that misses the active layer re-picks: the topmost visible
non-tiled layer under the pointer becomes active and no transform starts.
"""

import logging
from enum import Enum

from models.transform import PointerEvent, PointerPhase
from services.hit_testing import layer_box, layer_center, handle_radius, pick_layer
from utils.geometry import angle_degrees, distance, midpoint

from .drag_context import DragContext
from .modes import mode_for_layer


class GestureState(Enum):
	IDLE = 'idle'
	MOVING = 'moving'
	ROTATING = 'rotating'
	RESIZING = 'resizing'
	GESTURE = 'gesture'


def normalize_angle_delta(delta):
	"""Wrap an angle difference into (-180, 180]."""
	delta = delta % 360.0
	if delta > 180.0:
		delta -= 360.0
	return delta


class GestureController:
	"""Turns PointerEvents into LayerStack updates.

	Args:
		layer_stack: LayerStack owning the layers and the active id
		assets: AssetLibrary used to size image layers
	"""

	def __init__(self, layer_stack, assets=None):
		self.layer_stack = layer_stack
		self.assets = assets
		self.state = GestureState.IDLE
		self._pointers = {}  # pointer_id -> (x, y), in arrival order
		self._drag = None
		self._logger = logging.getLogger('GestureController')

	@property
	def drag_context(self):
		return self._drag

	@property
	def active_pointers(self):
		return dict(self._pointers)

	def cursor_at(self, x, y, canvas_width, canvas_height):
		"""Cursor name for hovering, None when nothing is grabbable."""
		layer = self.layer_stack.active_layer
		box = self._grab_box(layer, canvas_width, canvas_height)
		if box is None:
			return None
		handle = mode_for_layer(layer).get_handle_at_pos(x, y, box, handle_radius(canvas_width))
		return handle.get_cursor() if handle else None

	def reset(self):
		"""Drop all pointers without touching the layers."""
		self._pointers.clear()
		self._drag = None
		self.state = GestureState.IDLE

	# ========================================
	# Event dispatch
	# ========================================

	def handle(self, event: PointerEvent, canvas_width, canvas_height) -> bool:
		"""Feed one pointer event.

		Args:
			event: PointerEvent in canvas pixels
			canvas_width, canvas_height: Current base image size

		Returns:
			bool: True if the layer stack changed (values or active layer)
		"""
		if canvas_width <= 0 or canvas_height <= 0:
			return False
		if event.phase == PointerPhase.DOWN:
			return self._on_down(event, canvas_width, canvas_height)
		if event.phase == PointerPhase.MOVE:
			return self._on_move(event)
		if event.phase == PointerPhase.UP:
			return self._on_up(event)
		if event.phase == PointerPhase.CANCEL:
			return self._on_cancel(event)
		raise ValueError(f"Unknown pointer phase: {event.phase!r}")

	def _on_down(self, event, canvas_width, canvas_height):
		if event.pointer_id in self._pointers or len(self._pointers) >= 2:
			# Third finger or a repeated down: track position only
			self._pointers[event.pointer_id] = (event.x, event.y)
			return False
		self._pointers[event.pointer_id] = (event.x, event.y)

		if len(self._pointers) == 2:
			self._start_gesture(canvas_width, canvas_height)
			return False

		layer = self.layer_stack.active_layer
		box = self._grab_box(layer, canvas_width, canvas_height)
		handle = None
		if box is not None:
			handle = mode_for_layer(layer).get_handle_at_pos(
				event.x, event.y, box, handle_radius(canvas_width))

		if handle is None:
			return self._repick(event, canvas_width, canvas_height)

		self._drag = self._new_context(layer, handle.state, canvas_width, canvas_height)
		self._drag.pointer_id = event.pointer_id
		self._drag.start_x = event.x
		self._drag.start_y = event.y
		self._drag.handle = handle
		self.state = GestureState(handle.state)
		self._logger.debug(f"{self.state.value} layer {layer.id} from ({event.x:.1f}, {event.y:.1f})")
		return False

	def _on_move(self, event):
		if event.pointer_id not in self._pointers:
			return False
		self._pointers[event.pointer_id] = (event.x, event.y)
		if self._drag is None:
			return False

		if self.state == GestureState.GESTURE:
			changes = self._gesture_changes()
		elif event.pointer_id == self._drag.pointer_id:
			changes = self._drag.handle.drag(event.x, event.y, self._drag)
		else:
			changes = None

		if not changes:
			return False
		return self._apply(changes)

	def _drives_drag(self, pointer_id):
		drag = self._drag
		return drag is not None and (pointer_id == drag.pointer_id or pointer_id in drag.pointer_ids)

	def _on_up(self, event):
		self._pointers.pop(event.pointer_id, None)
		if self._drag is not None and not self._drives_drag(event.pointer_id):
			return False
		if self._drag is not None:
			self._logger.debug(f"{self.state.value} committed on layer {self._drag.layer_id}")
		self._drag = None
		self.state = GestureState.IDLE
		return False

	def _on_cancel(self, event):
		self._pointers.pop(event.pointer_id, None)
		if self._drag is not None and not self._drives_drag(event.pointer_id):
			return False
		drag = self._drag
		self._drag = None
		self.state = GestureState.IDLE
		if drag is None:
			return False
		self._logger.debug(f"Cancelled transform on layer {drag.layer_id}, restoring")
		return self._apply(drag.restore, layer_id=drag.layer_id)

	# ========================================
	# Helpers
	# ========================================

	def _grab_box(self, layer, canvas_width, canvas_height):
		if layer is None or not layer.visible or layer.tiled:
			return None
		return layer_box(layer, canvas_width, canvas_height, self.assets)

	def _repick(self, event, canvas_width, canvas_height):
		picked = pick_layer(self.layer_stack.top_to_bottom(), event.x, event.y,
		                    canvas_width, canvas_height, self.assets)
		if picked is None or picked.id == self.layer_stack.active_layer_id:
			return False
		self.layer_stack.set_active(picked.id)
		self._logger.debug(f"Picked layer {picked.id}")
		return True

	def _new_context(self, layer, operation, canvas_width, canvas_height):
		center_x, center_y = layer_center(layer, canvas_width, canvas_height)
		return DragContext(
			operation=operation,
			layer_id=layer.id,
			canvas_width=canvas_width,
			canvas_height=canvas_height,
			start_pos_x=layer.pos_x,
			start_pos_y=layer.pos_y,
			start_size=layer.size,
			start_rotation=layer.rotation,
			center_x=center_x,
			center_y=center_y,
			restore={
				'pos_x': layer.pos_x, 'pos_y': layer.pos_y,
				'size': layer.size, 'rotation': layer.rotation,
			},
		)

	def _start_gesture(self, canvas_width, canvas_height):
		layer = self.layer_stack.active_layer
		previous = self._drag
		context = self._new_context(layer, GestureState.GESTURE.value, canvas_width, canvas_height)
		if previous is not None and previous.layer_id == layer.id:
			# Cancel goes back to before the one-pointer transform too
			context.restore = previous.restore

		(id_a, (ax, ay)), (id_b, (bx, by)) = list(self._pointers.items())[:2]
		context.pointer_ids = (id_a, id_b)
		context.start_distance = distance(ax, ay, bx, by)
		context.start_angle = angle_degrees(ax, ay, bx, by)
		context.start_mid_x, context.start_mid_y = midpoint(ax, ay, bx, by)

		self._drag = context
		self.state = GestureState.GESTURE
		self._logger.debug(f"gesture on layer {layer.id}, start distance {context.start_distance:.1f}")

	def _gesture_changes(self):
		context = self._drag
		id_a, id_b = context.pointer_ids
		if id_a not in self._pointers or id_b not in self._pointers:
			return None
		if context.start_distance <= 0.0:
			return None
		ax, ay = self._pointers[id_a]
		bx, by = self._pointers[id_b]

		scale = distance(ax, ay, bx, by) / context.start_distance
		delta = normalize_angle_delta(angle_degrees(ax, ay, bx, by) - context.start_angle)
		changes = {
			'size': context.start_size * scale,
			'rotation': context.start_rotation + delta,
		}

		layer = self.layer_stack.find(context.layer_id)
		if layer is not None and not layer.tiled:
			mid_x, mid_y = midpoint(ax, ay, bx, by)
			changes['pos_x'] = context.start_pos_x + (mid_x - context.start_mid_x) / context.canvas_width * 100.0
			changes['pos_y'] = context.start_pos_y + (mid_y - context.start_mid_y) / context.canvas_height * 100.0
		return changes

	def _apply(self, changes, layer_id=None):
		layer_id = layer_id or self._drag.layer_id
		if self.layer_stack.find(layer_id) is None:
			# Layer removed mid-drag
			self.reset()
			return False
		self.layer_stack.update_layer(layer_id, **changes)
		return True
