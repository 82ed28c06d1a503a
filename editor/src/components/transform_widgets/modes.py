"""Transform modes - defines which handles are active and in what order they win."""

from .handles import MoveHandle, RotationHandle, ResizeHandle


class TransformMode:
	"""Base class for transform modes."""

	check_order = ()

	def __init__(self):
		self.handles = {}  # handle_type -> handle_object

	def get_handles(self):
		"""Return all handles for this mode."""
		return self.handles

	def get_handle_at_pos(self, x, y, box, radius):
		"""Find which handle (if any) is at a pointer position.

		Returns:
			Handle object or None
		"""
		for handle_type in self.check_order or self.handles:
			handle = self.handles[handle_type]
			if handle.hit_test(x, y, box, radius):
				return handle
		return None


class BboxMode(TransformMode):
	"""Rotated bounding box with rotate and resize handles."""

	# Handles sit on or outside the box edge, so they must win over the box
	check_order = ('rotate', 'resize', 'move')

	def __init__(self):
		super().__init__()
		self.handles = {
			'rotate': RotationHandle(),
			'resize': ResizeHandle(),
			'move': MoveHandle(),
		}


class TiledMode(TransformMode):
	"""Tiled layers: no single-pointer handles, two-pointer gestures only."""

	def get_handle_at_pos(self, x, y, box, radius):
		return None


def mode_for_layer(layer):
	"""Pick the transform mode for a layer."""
	return TiledMode() if layer.tiled else BboxMode()
