"""Geometry helpers for canvas-space math.

Pure functions over 2D points plus a small 3x3 affine transform stack used
by the compositor in place of an implicit graphics-context save/restore.

Canvas space is Y-down, so a positive rotation turns clockwise on screen.
"""

import math

import numpy as np


def distance(ax, ay, bx, by):
	"""Euclidean distance between two points."""
	return math.hypot(bx - ax, by - ay)


def angle_degrees(ax, ay, bx, by):
	"""Angle of the vector a->b in degrees, measured from +X towards +Y."""
	return math.degrees(math.atan2(by - ay, bx - ax))


def midpoint(ax, ay, bx, by):
	"""Midpoint of the segment a-b."""
	return (ax + bx) / 2.0, (ay + by) / 2.0


def rotate_point(x, y, degrees, origin_x=0.0, origin_y=0.0):
	"""Rotate (x, y) around an origin by the given angle in degrees.

	Args:
		x, y: Point to rotate
		degrees: Rotation angle (clockwise on a Y-down canvas)
		origin_x, origin_y: Pivot point

	Returns:
		(x, y): Rotated point
	"""
	rad = math.radians(degrees)
	cos_r = math.cos(rad)
	sin_r = math.sin(rad)
	dx = x - origin_x
	dy = y - origin_y
	return (origin_x + dx * cos_r - dy * sin_r,
	        origin_y + dx * sin_r + dy * cos_r)


# ======================================================================
# 3x3 affine matrices
# ======================================================================

def identity_matrix():
	return np.identity(3, dtype=np.float64)


def translation_matrix(tx, ty):
	m = identity_matrix()
	m[0, 2] = tx
	m[1, 2] = ty
	return m


def rotation_matrix(degrees):
	rad = math.radians(degrees)
	cos_r = math.cos(rad)
	sin_r = math.sin(rad)
	m = identity_matrix()
	m[0, 0] = cos_r
	m[0, 1] = -sin_r
	m[1, 0] = sin_r
	m[1, 1] = cos_r
	return m


def apply_matrix(matrix, x, y):
	"""Map a local point through an affine matrix."""
	px = matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 2]
	py = matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 2]
	return float(px), float(py)


def matrix_rotation_degrees(matrix):
	"""Rotation component of a rotation/translation matrix."""
	return math.degrees(math.atan2(matrix[1, 0], matrix[0, 0]))


class TransformStack:
	"""Explicit replacement for canvas save()/restore() state.

	translate()/rotate() post-multiply the current matrix exactly like a
	2D canvas context, so later operations apply in the local frame of
	earlier ones.
	"""

	def __init__(self):
		self._stack = [identity_matrix()]

	@property
	def current(self):
		return self._stack[-1]

	@property
	def depth(self):
		return len(self._stack)

	def push(self):
		self._stack.append(self._stack[-1].copy())

	def pop(self):
		if len(self._stack) == 1:
			raise RuntimeError("TransformStack.pop() called without a matching push()")
		return self._stack.pop()

	def translate(self, tx, ty):
		self._stack[-1] = self._stack[-1] @ translation_matrix(tx, ty)

	def rotate(self, degrees):
		self._stack[-1] = self._stack[-1] @ rotation_matrix(degrees)

	def map_point(self, x=0.0, y=0.0):
		return apply_matrix(self.current, x, y)

	def rotation(self):
		return matrix_rotation_degrees(self.current)
