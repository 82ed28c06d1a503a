"""
Tests for rotated layer boxes, handle positions and layer picking.
"""

import math

import pytest

from models.layer import Layer, ImageContent
from services.hit_testing import handle_radius, layer_center, layer_box, pick_layer, LayerBox


class TestHandleRadius:
    def test_minimum(self):
        assert handle_radius(100) == 20.0

    def test_scales_with_width(self):
        assert handle_radius(2000) == pytest.approx(80.0)


class TestLayerBox:
    def test_padded_extents(self, logo_layer, assets):
        box = layer_box(logo_layer, 400, 400, assets)
        assert (box.center_x, box.center_y) == (200.0, 200.0)
        assert box.half_w == pytest.approx(70.0)
        assert box.half_h == pytest.approx(45.0)

    def test_contains_unrotated(self, logo_layer, assets):
        box = layer_box(logo_layer, 400, 400, assets)
        assert box.contains(265, 240)
        assert not box.contains(275, 200)
        assert not box.contains(200, 250)

    def test_contains_rotated(self, logo_layer, assets):
        logo_layer.rotation = 90
        box = layer_box(logo_layer, 400, 400, assets)
        # Long axis is now vertical
        assert box.contains(200, 265)
        assert not box.contains(265, 200)

    def test_handles(self, logo_layer, assets):
        box = layer_box(logo_layer, 400, 400, assets)
        assert box.rotate_handle_pos(20) == pytest.approx((200.0, 135.0))
        assert box.resize_handle_pos() == pytest.approx((270.0, 245.0))

    def test_handles_follow_rotation(self):
        box = LayerBox(0.0, 0.0, 10.0, 5.0, 90.0)
        # Top edge faces +X after a clockwise quarter turn
        assert box.rotate_handle_pos(3) == pytest.approx((8.0, 0.0))
        assert box.resize_handle_pos() == pytest.approx((-5.0, 10.0))

    def test_local_roundtrip(self):
        box = LayerBox(30.0, 40.0, 10.0, 5.0, 33.0)
        lx, ly = box.to_local(*box.to_canvas(4.0, -2.0))
        assert (lx, ly) == pytest.approx((4.0, -2.0))

    def test_corners(self):
        box = LayerBox(0.0, 0.0, 2.0, 1.0, 0.0)
        assert box.corners() == [(-2.0, -1.0), (2.0, -1.0), (2.0, 1.0), (-2.0, 1.0)]

    def test_tiled_has_no_box(self, logo_layer, assets):
        logo_layer.tiled = True
        assert layer_box(logo_layer, 400, 400, assets) is None

    def test_missing_asset_has_no_box(self, assets):
        layer = Layer(ImageContent(asset_id='missing'))
        assert layer_box(layer, 400, 400, assets) is None

    def test_layer_center(self):
        layer = Layer(pos_x=25, pos_y=10)
        assert layer_center(layer, 800, 600) == (200.0, 60.0)


class TestPickLayer:
    def test_topmost_wins(self, assets):
        bottom = Layer(ImageContent(asset_id='logo'), size=250, layer_id='bottom')
        top = Layer(ImageContent(asset_id='logo'), size=250, layer_id='top')
        picked = pick_layer([top, bottom], 200, 200, 400, 400, assets)
        assert picked is top

    def test_skips_hidden_and_tiled(self, assets):
        hidden = Layer(ImageContent(asset_id='logo'), size=250, visible=False)
        tiled = Layer(ImageContent(asset_id='logo'), size=250, tiled=True)
        below = Layer(ImageContent(asset_id='logo'), size=250)
        assert pick_layer([hidden, tiled, below], 200, 200, 400, 400, assets) is below

    def test_miss(self, assets, logo_layer):
        assert pick_layer([logo_layer], 5, 5, 400, 400, assets) is None

    def test_rotated_hit(self, assets, logo_layer):
        logo_layer.rotation = 45
        # Along the rotated long axis, outside the unrotated box height
        d = 65 / math.sqrt(2)
        assert pick_layer([logo_layer], 200 + d, 200 + d, 400, 400, assets) is logo_layer
