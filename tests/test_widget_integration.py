"""
pytest-qt widget integration tests.

Tests the canvas widget against a real Document:
- Qt mouse events reach the gesture controller in canvas coordinates
- Escape cancels a drag and restores the layer
- The mask tool paints the document mask
- Region fill runs on the event loop and signals when done
- Removing the last layer is refused with a notice

The widget is 400x400 and the document image is 400x400, so widget and
canvas coordinates coincide.
"""
import pytest
from PyQt5.QtCore import Qt, QEvent, QPointF
from PyQt5.QtGui import QMouseEvent, QKeyEvent

from components.canvas_widget import WatermarkCanvas, TOOL_MASK, TOOL_TRANSFORM, raster_to_qimage
from components.transform_widgets import GestureState
from conftest import solid_image
from utils.config import EditorConfig


def _mouse(kind, x, y, button=Qt.LeftButton, buttons=Qt.LeftButton):
    return QMouseEvent(kind, QPointF(x, y), button, buttons, Qt.NoModifier)


@pytest.fixture
def canvas(qtbot, document):
    widget = WatermarkCanvas(document)
    qtbot.addWidget(widget)
    widget.resize(400, 400)
    return widget


# ══════════════════════════════════════════════════════════════════════════
# Geometry
# ══════════════════════════════════════════════════════════════════════════

class TestMapping:

    def test_identity_when_sizes_match(self, canvas):
        assert canvas.widget_to_canvas(QPointF(123, 45)) == pytest.approx((123.0, 45.0))

    def test_letterboxed(self, canvas):
        canvas.resize(800, 400)
        rect = canvas.image_rect()
        assert (rect.x(), rect.y(), rect.width(), rect.height()) == (200.0, 0.0, 400.0, 400.0)
        assert canvas.widget_to_canvas(QPointF(300, 100)) == pytest.approx((100.0, 100.0))

    def test_raster_to_qimage(self, document):
        qimage = raster_to_qimage(document.active_image)
        assert (qimage.width(), qimage.height()) == (400, 400)
        assert qimage.pixelColor(0, 0).red() == 128


# ══════════════════════════════════════════════════════════════════════════
# Transform tool
# ══════════════════════════════════════════════════════════════════════════

class TestTransformTool:

    def test_mouse_drag_moves_layer(self, canvas, logo_layer):
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 210, 210))
        assert canvas.controller.state == GestureState.MOVING
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 250, 230, button=Qt.NoButton))
        canvas.mouseReleaseEvent(_mouse(QEvent.MouseButtonRelease, 250, 230, buttons=Qt.NoButton))

        assert logo_layer.pos_x == pytest.approx(60.0)
        assert logo_layer.pos_y == pytest.approx(55.0)
        assert canvas.controller.state == GestureState.IDLE

    def test_escape_cancels(self, canvas, logo_layer):
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 210, 210))
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 300, 300, button=Qt.NoButton))
        assert logo_layer.pos_x != 50.0

        canvas.keyPressEvent(QKeyEvent(QEvent.KeyPress, Qt.Key_Escape, Qt.NoModifier))
        assert (logo_layer.pos_x, logo_layer.pos_y) == (50.0, 50.0)
        assert canvas.controller.drag_context is None

    def test_hover_cursor(self, canvas):
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 200, 135, button=Qt.NoButton, buttons=Qt.NoButton))
        assert canvas.cursor().shape() == Qt.CrossCursor
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 5, 5, button=Qt.NoButton, buttons=Qt.NoButton))
        assert canvas.cursor().shape() == Qt.ArrowCursor

    def test_right_button_ignored(self, canvas, logo_layer):
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 210, 210, button=Qt.RightButton,
                                      buttons=Qt.RightButton))
        assert canvas.controller.state == GestureState.IDLE

    def test_repaint_after_change(self, canvas, document):
        canvas.show()
        first = canvas.grab()
        assert not first.isNull()
        document.layers.update_layer(document.layers.active_layer_id, pos_x=20)
        assert canvas._dirty
        assert not canvas.grab().isNull()
        assert not canvas._dirty


# ══════════════════════════════════════════════════════════════════════════
# Mask tool and fill
# ══════════════════════════════════════════════════════════════════════════

class TestMaskTool:

    def test_config_sets_brush_and_iterations(self, qtbot, document):
        widget = WatermarkCanvas(document, EditorConfig(brush_radius=4.0, inpaint_iterations=7))
        qtbot.addWidget(widget)
        assert widget.brush_radius == 4.0
        assert widget.inpaint_iterations == 7

    def test_unknown_tool(self, canvas):
        with pytest.raises(ValueError):
            canvas.set_tool('lasso')

    def test_brush_paints_mask(self, canvas, document, logo_layer):
        canvas.set_tool(TOOL_MASK)
        canvas.brush_radius = 5
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 50, 50))
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 90, 50, button=Qt.NoButton))
        canvas.mouseReleaseEvent(_mouse(QEvent.MouseButtonRelease, 90, 50, buttons=Qt.NoButton))

        assert document.mask.data[50, 50:91].all()
        # Brushing never moves layers
        assert (logo_layer.pos_x, logo_layer.pos_y) == (50.0, 50.0)
        canvas.set_tool(TOOL_TRANSFORM)

    def test_fill_runs_on_event_loop(self, qtbot, canvas, document):
        document.mask.add_rectangle(10, 10, 20, 20)
        canvas.inpaint_iterations = 5
        progress = []
        canvas.fillProgress.connect(progress.append)

        with qtbot.waitSignal(canvas.fillFinished, timeout=5000):
            assert canvas.start_fill() is True
            assert canvas.is_filling

        assert not canvas.is_filling
        assert progress[-1] == 1.0
        assert document.mask.is_empty()

    def test_slot_change_cancels_fill(self, qtbot, canvas, document):
        first = document.active_image
        other = document.add_image(solid_image(30, 20), 'other.png')
        document.mask.add_rectangle(10, 10, 20, 20)
        canvas.inpaint_iterations = 50

        with qtbot.waitSignal(canvas.fillCancelled, timeout=5000):
            assert canvas.start_fill() is True
            document.select_image(1)

        assert not canvas.is_filling
        assert document.slots[0].image is first
        assert other.image.size == (30, 20)

    def test_fill_empty_mask_refused(self, canvas, document):
        before = document.active_image
        assert canvas.start_fill() is False
        assert document.active_image is before


class TestLayerActions:

    def test_remove_last_layer_refused(self, canvas, document):
        assert canvas.remove_active_layer() is False
        assert len(document.layers) == 1

    def test_remove_layer(self, canvas, document):
        document.layers.add_layer()
        assert canvas.remove_active_layer() is True
        assert len(document.layers) == 1
