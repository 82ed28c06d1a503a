# PyQt5 imports
from PyQt5.QtWidgets import QWidget, QSizePolicy
from PyQt5.QtCore import Qt, QSize, QEvent, QPointF, QRectF, QTimer, pyqtSignal
from PyQt5.QtGui import QImage, QPainter, QColor

import logging

import numpy as np

from models.layer_stack import LastLayerError
from models.transform import PointerEvent, PointerPhase
from components.transform_widgets import GestureController
from services.inpainting import fill_steps, EmptyMaskError
from utils.logger import loggerRaise, notify_user
from constants import DEFAULT_BRUSH_RADIUS, INPAINT_ITERATIONS


# ========================================
# Constants
# ========================================

TOOL_TRANSFORM = 'transform'
TOOL_MASK = 'mask'

MOUSE_POINTER_ID = 0

# Mask preview tint (RGBA)
MASK_PREVIEW_COLOR = (255, 64, 64, 110)

_CURSORS = {
	'move': Qt.SizeAllCursor,
	'rotate': Qt.CrossCursor,
	'resize': Qt.SizeFDiagCursor,
}

_TOUCH_PHASES = {
	Qt.TouchPointPressed: PointerPhase.DOWN,
	Qt.TouchPointMoved: PointerPhase.MOVE,
	Qt.TouchPointStationary: PointerPhase.MOVE,
	Qt.TouchPointReleased: PointerPhase.UP,
}


def raster_to_qimage(image):
	"""Wrap a RasterImage in a QImage (copied, so the raster can go away)"""
	pixels = np.ascontiguousarray(image.pixels)
	qimage = QImage(pixels.data, image.width, image.height, image.width * 4, QImage.Format_RGBA8888)
	return qimage.copy()


class WatermarkCanvas(QWidget):
	"""Preview of the active image with live watermark editing.

	Renders Document.render_active() scaled to fit, feeds mouse and touch
	input to the GestureController (transform tool) or the mask brush
	(mask tool), and runs region fill a pass at a time on the event loop.
	"""

	fillProgress = pyqtSignal(float)
	fillFinished = pyqtSignal()
	fillCancelled = pyqtSignal()

	def __init__(self, document, config=None, parent=None):
		super().__init__(parent)
		self._logger = logging.getLogger('WatermarkCanvas')
		self.document = document
		self.controller = GestureController(document.layers, document.assets)

		self.tool = TOOL_TRANSFORM
		if config is not None:
			self.brush_radius = config.brush_radius
			self.inpaint_iterations = config.inpaint_iterations
		else:
			self.brush_radius = DEFAULT_BRUSH_RADIUS
			self.inpaint_iterations = INPAINT_ITERATIONS

		self._frame = None  # QImage of the last render
		self._dirty = True
		self._last_brush_point = None
		self._fill_iter = None
		self._fill_slot_id = None

		self.setAttribute(Qt.WA_AcceptTouchEvents, True)
		self.setMouseTracking(True)
		self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

		document.add_listener(self._on_document_changed)

	def sizeHint(self):
		return QSize(800, 600)

	@property
	def is_filling(self):
		return self._fill_iter is not None

	def set_tool(self, tool):
		if tool not in (TOOL_TRANSFORM, TOOL_MASK):
			raise ValueError(f"Unknown tool: {tool!r}")
		self.controller.reset()
		self._last_brush_point = None
		self.tool = tool
		self.setCursor(Qt.CrossCursor if tool == TOOL_MASK else Qt.ArrowCursor)
		self.update()

	def _on_document_changed(self):
		slot = self.document.active_slot
		if self.is_filling and (slot is None or slot.id != self._fill_slot_id):
			self.cancel_fill()
		self._dirty = True
		self.update()

	# ========================================
	# Coordinate mapping
	# ========================================

	def _canvas_size(self):
		image = self.document.active_image
		if image is None:
			return 0, 0
		return image.width, image.height

	def image_rect(self):
		"""Where the image is drawn inside the widget (fit, centred)"""
		width, height = self._canvas_size()
		if width == 0 or self.width() == 0 or self.height() == 0:
			return QRectF()
		scale = min(self.width() / width, self.height() / height)
		draw_w = width * scale
		draw_h = height * scale
		return QRectF((self.width() - draw_w) / 2.0, (self.height() - draw_h) / 2.0, draw_w, draw_h)

	def widget_to_canvas(self, pos):
		"""Widget pixel position -> base image pixel position"""
		rect = self.image_rect()
		width, _ = self._canvas_size()
		if rect.isEmpty():
			return pos.x(), pos.y()
		scale = rect.width() / width
		return (pos.x() - rect.x()) / scale, (pos.y() - rect.y()) / scale

	# ========================================
	# Painting
	# ========================================

	def paintEvent(self, event):
		painter = QPainter(self)
		painter.fillRect(self.rect(), QColor(30, 30, 30))
		if self.document.active_image is None:
			painter.end()
			return

		if self._dirty or self._frame is None:
			try:
				rendered = self.document.render_active(highlight=self.tool == TOOL_TRANSFORM)
			except Exception as e:
				painter.end()
				loggerRaise(e, "Failed to render the preview")
			self._frame = raster_to_qimage(rendered)
			self._dirty = False

		painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
		target = self.image_rect()
		painter.drawImage(target, self._frame)

		mask = self.document.mask
		if self.tool == TOOL_MASK and mask is not None and not mask.is_empty():
			tint = np.zeros((mask.height, mask.width, 4), dtype=np.uint8)
			tint[mask.data] = MASK_PREVIEW_COLOR
			overlay = QImage(tint.data, mask.width, mask.height, mask.width * 4, QImage.Format_RGBA8888)
			painter.drawImage(target, overlay)
		painter.end()

	# ========================================
	# Pointer input
	# ========================================

	def _dispatch(self, pointer_id, pos, phase):
		width, height = self._canvas_size()
		if width == 0:
			return False
		x, y = self.widget_to_canvas(pos)
		if self.tool == TOOL_MASK:
			return self._brush(pointer_id, x, y, phase)
		return self.controller.handle(PointerEvent(pointer_id, x, y, phase), width, height)

	def _brush(self, pointer_id, x, y, phase):
		if phase == PointerPhase.DOWN:
			self._last_brush_point = (x, y)
			self.document.paint_mask([(x, y)], self.brush_radius)
			return True
		if phase == PointerPhase.MOVE and self._last_brush_point is not None:
			self.document.paint_mask([self._last_brush_point, (x, y)], self.brush_radius)
			self._last_brush_point = (x, y)
			return True
		if phase in (PointerPhase.UP, PointerPhase.CANCEL):
			self._last_brush_point = None
		return False

	def mousePressEvent(self, event):
		if event.button() != Qt.LeftButton or self.is_filling:
			super().mousePressEvent(event)
			return
		self._dispatch(MOUSE_POINTER_ID, event.localPos(), PointerPhase.DOWN)
		event.accept()

	def mouseMoveEvent(self, event):
		if event.buttons() & Qt.LeftButton:
			self._dispatch(MOUSE_POINTER_ID, event.localPos(), PointerPhase.MOVE)
			event.accept()
			return
		if self.tool == TOOL_TRANSFORM and self.document.active_image is not None:
			width, height = self._canvas_size()
			x, y = self.widget_to_canvas(event.localPos())
			cursor = self.controller.cursor_at(x, y, width, height)
			self.setCursor(_CURSORS.get(cursor, Qt.ArrowCursor))
		super().mouseMoveEvent(event)

	def mouseReleaseEvent(self, event):
		if event.button() != Qt.LeftButton:
			super().mouseReleaseEvent(event)
			return
		self._dispatch(MOUSE_POINTER_ID, event.localPos(), PointerPhase.UP)
		event.accept()

	def event(self, event):
		"""Touch points become pointers 1..n (0 is the mouse)"""
		if event.type() in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd):
			if not self.is_filling:
				for point in event.touchPoints():
					phase = _TOUCH_PHASES.get(point.state())
					if phase is None:
						continue
					self._dispatch(point.id() + 1, point.pos(), phase)
			event.accept()
			return True
		if event.type() == QEvent.TouchCancel:
			for pointer_id in list(self.controller.active_pointers):
				self._dispatch(pointer_id, QPointF(0, 0), PointerPhase.CANCEL)
			event.accept()
			return True
		return super().event(event)

	def keyPressEvent(self, event):
		"""Escape aborts the current transform and restores the layer"""
		if event.key() == Qt.Key_Escape and self.controller.drag_context is not None:
			for pointer_id in list(self.controller.active_pointers):
				self._dispatch(pointer_id, QPointF(0, 0), PointerPhase.CANCEL)
			event.accept()
			return
		super().keyPressEvent(event)

	# ========================================
	# Editing actions
	# ========================================

	def remove_active_layer(self):
		"""Remove the active layer; the last one is kept with a notice"""
		layers = self.document.layers
		try:
			layers.remove_layer(layers.active_layer_id)
		except LastLayerError as e:
			notify_user(str(e), "Cannot remove layer")
			return False
		return True

	def start_fill(self):
		"""Begin region fill of the masked area, one pass per event loop turn"""
		if self.is_filling or self.document.active_image is None:
			return False
		try:
			self._fill_iter = fill_steps(self.document.active_image, self.document.mask,
			                             self.inpaint_iterations)
		except EmptyMaskError as e:
			notify_user(str(e), "Region fill")
			return False
		self._fill_slot_id = self.document.active_slot.id
		self._logger.debug("Region fill started")
		QTimer.singleShot(0, self._fill_step)
		return True

	def _fill_step(self):
		if self._fill_iter is None:
			return
		job = next(self._fill_iter, None)
		if job is None or job.done:
			self._fill_iter = None
			if job is not None:
				self.document.apply_fill(job.result(), self._fill_slot_id)
			self._fill_slot_id = None
			self.fillProgress.emit(1.0)
			self.fillFinished.emit()
			return
		self.fillProgress.emit(job.progress)
		QTimer.singleShot(0, self._fill_step)

	def cancel_fill(self):
		"""Drop a running fill; the base image and mask stay as they were"""
		if not self.is_filling:
			return False
		self._fill_iter = None
		self._fill_slot_id = None
		self._logger.debug("Region fill cancelled")
		self.fillCancelled.emit()
		return True
