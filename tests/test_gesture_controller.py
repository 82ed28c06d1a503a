"""
Tests for the gesture controller state machine.

All scenarios use the 400x400 canvas with the 100x50 logo at size 250,
which gives a content box of 100x50 centred at (200, 200), a padded box of
140x90, a handle radius of 20, the rotate handle at (200, 135) and the
resize handle at (270, 245).
"""

import pytest

from models.layer import Layer, ImageContent
from models.transform import PointerEvent, PointerPhase
from components.transform_widgets import (
    GestureController, GestureState, normalize_angle_delta,
    BboxMode, TiledMode, MoveHandle, RotationHandle, ResizeHandle,
)
from components.transform_widgets.modes import mode_for_layer

W = H = 400


def down(x, y, pointer_id=0):
    return PointerEvent(pointer_id, x, y, PointerPhase.DOWN)


def move(x, y, pointer_id=0):
    return PointerEvent(pointer_id, x, y, PointerPhase.MOVE)


def up(x, y, pointer_id=0):
    return PointerEvent(pointer_id, x, y, PointerPhase.UP)


def cancel(pointer_id=0):
    return PointerEvent(pointer_id, 0, 0, PointerPhase.CANCEL)


@pytest.fixture
def controller(logo_stack, assets):
    return GestureController(logo_stack, assets)


def feed(controller, *events):
    return [controller.handle(event, W, H) for event in events]


class TestSinglePointer:
    def test_move(self, controller, logo_layer):
        feed(controller, down(210, 210))
        assert controller.state == GestureState.MOVING
        feed(controller, move(250, 230))
        assert logo_layer.pos_x == pytest.approx(60.0)
        assert logo_layer.pos_y == pytest.approx(55.0)

        feed(controller, up(250, 230))
        assert controller.state == GestureState.IDLE
        assert controller.drag_context is None
        assert logo_layer.pos_x == pytest.approx(60.0)

    def test_rotate(self, controller, logo_layer):
        feed(controller, down(200, 135))
        assert controller.state == GestureState.ROTATING
        assert feed(controller, move(300, 200)) == [True]
        assert logo_layer.rotation == pytest.approx(90.0)
        assert logo_layer.size == 250.0

    def test_resize(self, controller, logo_layer):
        feed(controller, down(270, 245))
        assert controller.state == GestureState.RESIZING
        feed(controller, move(340, 290))
        assert logo_layer.size == pytest.approx(500.0)
        assert (logo_layer.pos_x, logo_layer.pos_y) == (50.0, 50.0)

    def test_resize_keeps_floor(self, controller, logo_layer):
        feed(controller, down(270, 245), move(201, 201))
        assert logo_layer.size == 10.0

    def test_handles_win_over_box(self, controller):
        # (200, 140) is inside the padded box and on the rotate handle
        feed(controller, down(200, 140))
        assert controller.state == GestureState.ROTATING

    def test_move_from_other_pointer_ignored(self, controller, logo_layer):
        feed(controller, down(210, 210))
        assert feed(controller, move(300, 300, pointer_id=5)) == [False]
        assert logo_layer.pos_x == 50.0

    def test_cancel_restores(self, controller, logo_layer):
        feed(controller, down(210, 210), move(300, 300))
        assert logo_layer.pos_x != 50.0
        assert feed(controller, cancel()) == [True]
        assert (logo_layer.pos_x, logo_layer.pos_y) == (50.0, 50.0)
        assert controller.state == GestureState.IDLE

    def test_cancel_when_idle(self, controller):
        assert feed(controller, cancel()) == [False]

    def test_cursor(self, controller):
        assert controller.cursor_at(200, 135, W, H) == 'rotate'
        assert controller.cursor_at(270, 245, W, H) == 'resize'
        assert controller.cursor_at(200, 200, W, H) == 'move'
        assert controller.cursor_at(5, 5, W, H) is None

    def test_zero_canvas_ignored(self, controller):
        assert controller.handle(down(1, 1), 0, 0) is False
        assert controller.state == GestureState.IDLE


class TestRepick:
    def test_miss_selects_layer_under_pointer(self, logo_stack, assets, logo_layer):
        other = Layer(ImageContent(asset_id='logo'), size=250, pos_x=20, pos_y=20)
        logo_stack.insert_layer(other)
        logo_stack.set_active(other.id)
        controller = GestureController(logo_stack, assets)

        assert feed(controller, down(200, 200)) == [True]
        assert logo_stack.active_layer_id == logo_layer.id
        # Re-picking does not start a transform
        assert controller.state == GestureState.IDLE
        assert feed(controller, move(260, 260)) == [False]
        assert logo_layer.pos_x == 50.0

    def test_miss_on_empty_area(self, controller, logo_stack, logo_layer):
        assert feed(controller, down(5, 5)) == [False]
        assert logo_stack.active_layer_id == logo_layer.id

    def test_hidden_active_layer_not_grabbed(self, controller, logo_layer):
        logo_layer.visible = False
        feed(controller, down(200, 200))
        assert controller.state == GestureState.IDLE


class TestTwoPointerGesture:
    def test_pinch_rotate(self, controller, logo_layer):
        feed(controller, down(150, 200, 1), down(250, 200, 2))
        assert controller.state == GestureState.GESTURE

        feed(controller, move(200, 100, 1), move(200, 300, 2))
        assert logo_layer.size == pytest.approx(500.0)
        assert logo_layer.rotation == pytest.approx(90.0)
        assert logo_layer.pos_x == pytest.approx(50.0)
        assert logo_layer.pos_y == pytest.approx(50.0)

    def test_pan(self, controller, logo_layer):
        feed(controller, down(150, 200, 1), down(250, 200, 2))
        feed(controller, move(190, 240, 1), move(290, 240, 2))
        assert logo_layer.pos_x == pytest.approx(60.0)
        assert logo_layer.pos_y == pytest.approx(60.0)
        assert logo_layer.size == pytest.approx(250.0)

    def test_angle_wraps(self, controller, logo_layer):
        # Start pointing left (180 degrees), end just above left (-170)
        feed(controller, down(250, 200, 1), down(150, 200, 2))
        feed(controller, move(250, 200, 1))
        assert logo_layer.rotation == pytest.approx(0.0)
        feed(controller, move(151.5192, 182.6352, 2))
        assert logo_layer.rotation == pytest.approx(10.0, abs=0.01)

    def test_cancel_after_switch_restores_pre_drag(self, controller, logo_layer):
        feed(controller, down(210, 210, 1), move(230, 210, 1))
        assert logo_layer.pos_x == pytest.approx(55.0)

        feed(controller, down(300, 210, 2), move(330, 210, 2))
        assert controller.state == GestureState.GESTURE

        feed(controller, cancel(1))
        assert (logo_layer.pos_x, logo_layer.pos_y) == (50.0, 50.0)
        assert logo_layer.size == 250.0

    def test_gesture_starts_off_layer(self, controller, logo_layer):
        # Gestures act on the active layer wherever the fingers land
        feed(controller, down(10, 10, 1), down(10, 110, 2))
        assert controller.state == GestureState.GESTURE
        feed(controller, move(10, 210, 2))
        assert logo_layer.size == pytest.approx(500.0)

    def test_degenerate_start(self, controller, logo_layer):
        feed(controller, down(100, 100, 1), down(100, 100, 2))
        assert feed(controller, move(150, 150, 2)) == [False]
        assert logo_layer.size == 250.0

    def test_third_pointer_ignored(self, controller, logo_layer):
        feed(controller, down(150, 200, 1), down(250, 200, 2), down(0, 0, 3))
        feed(controller, move(399, 399, 3))
        assert logo_layer.size == 250.0
        assert set(controller.active_pointers) == {1, 2, 3}

    def test_third_pointer_lift_keeps_gesture(self, controller, logo_layer):
        feed(controller, down(150, 200, 1), down(250, 200, 2), down(0, 0, 3), up(0, 0, 3))
        assert controller.state == GestureState.GESTURE
        assert set(controller.active_pointers) == {1, 2}

        feed(controller, move(350, 200, 2))
        assert logo_layer.size == pytest.approx(500.0)

    def test_third_pointer_cancel_keeps_gesture(self, controller, logo_layer):
        feed(controller, down(150, 200, 1), down(250, 200, 2), move(350, 200, 2))
        assert feed(controller, down(0, 0, 3), cancel(3)) == [False, False]
        assert controller.state == GestureState.GESTURE
        assert logo_layer.size == pytest.approx(500.0)

    def test_lift_ends_gesture(self, controller):
        feed(controller, down(150, 200, 1), down(250, 200, 2), up(250, 200, 2))
        assert controller.state == GestureState.IDLE
        assert feed(controller, move(100, 100, 1)) == [False]


class TestTiledLayers:
    @pytest.fixture
    def tiled(self, logo_layer):
        logo_layer.tiled = True
        return logo_layer

    def test_no_single_pointer_transform(self, controller, tiled):
        feed(controller, down(200, 200), move(260, 260))
        assert controller.state == GestureState.IDLE
        assert tiled.pos_x == 50.0

    def test_gesture_skips_position(self, controller, tiled):
        feed(controller, down(150, 200, 1), down(250, 200, 2))
        feed(controller, move(150, 300, 1), move(350, 300, 2))
        assert tiled.size == pytest.approx(500.0)
        assert (tiled.pos_x, tiled.pos_y) == (50.0, 50.0)

    def test_modes(self, tiled):
        assert isinstance(mode_for_layer(tiled), TiledMode)
        tiled.tiled = False
        mode = mode_for_layer(tiled)
        assert isinstance(mode, BboxMode)
        assert [type(mode.handles[key]) for key in mode.check_order] == [
            RotationHandle, ResizeHandle, MoveHandle]


class TestLayerRemoved:
    def test_drag_on_removed_layer_resets(self, logo_stack, assets, logo_layer):
        spare = logo_stack.add_layer()
        logo_stack.set_active(logo_layer.id)
        controller = GestureController(logo_stack, assets)
        feed(controller, down(210, 210))
        logo_stack.remove_layer(logo_layer.id)

        assert feed(controller, move(260, 260)) == [False]
        assert controller.state == GestureState.IDLE
        assert spare.pos_x == 52.0


class TestNormalizeAngleDelta:
    @pytest.mark.parametrize('delta, expected', [
        (0, 0), (90, 90), (180, 180), (-180, 180), (190, -170), (-190, 170), (720, 0),
    ])
    def test_wrap(self, delta, expected):
        assert normalize_angle_delta(delta) == pytest.approx(expected)
