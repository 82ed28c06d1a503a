"""
Tests for LayerStack: the single owner of layer order, the active layer
and every layer mutation.
"""

import pytest

from models.layer import Layer, TextContent, ImageContent
from models.layer_stack import LayerStack, LastLayerError


class TestMinimumLayer:
    def test_new_stack_has_one_layer(self):
        stack = LayerStack()
        assert len(stack) == 1
        assert stack.active_layer_id == stack[0].id

    def test_cannot_remove_last_layer(self):
        stack = LayerStack()
        only = stack[0]
        with pytest.raises(LastLayerError):
            stack.remove_layer(only.id)
        assert len(stack) == 1
        assert stack[0] is only

    def test_last_layer_error_is_value_error(self):
        assert issubclass(LastLayerError, ValueError)

    def test_empty_list_gets_default_layer(self):
        stack = LayerStack([])
        assert len(stack) == 1
        assert stack[0].is_text

    def test_replace_all_with_nothing_keeps_one(self):
        stack = LayerStack()
        stack.replace_all([])
        assert len(stack) == 1


class TestLayerCrud:
    def test_add_layer_offsets(self):
        stack = LayerStack()
        second = stack.add_layer('text')
        third = stack.add_layer('image', asset_id='logo')

        assert (second.pos_x, second.pos_y) == (52.0, 52.0)
        assert (third.pos_x, third.pos_y) == (54.0, 54.0)
        assert third.is_image and third.content.asset_id == 'logo'
        assert stack.active_layer_id == third.id
        assert stack.ids[-1] == third.id

    def test_add_unknown_kind(self):
        with pytest.raises(ValueError):
            LayerStack().add_layer('video')

    def test_remove_active_falls_back_to_top(self):
        stack = LayerStack()
        a = stack[0]
        b = stack.add_layer()
        c = stack.add_layer()
        stack.set_active(b.id)

        stack.remove_layer(b.id)
        assert stack.ids == [a.id, c.id]
        assert stack.active_layer_id == c.id

    def test_remove_inactive_keeps_active(self):
        stack = LayerStack()
        a = stack[0]
        b = stack.add_layer()
        stack.remove_layer(a.id)
        assert stack.active_layer_id == b.id

    def test_unknown_id(self):
        stack = LayerStack()
        with pytest.raises(ValueError):
            stack.get('missing')
        with pytest.raises(ValueError):
            stack.update_layer('missing', size=20)
        with pytest.raises(ValueError):
            stack.set_active('missing')

    def test_duplicate(self):
        stack = LayerStack([Layer(TextContent(text='x'), name='Mark', pos_x=10, pos_y=20)])
        source = stack[0]
        copy = stack.duplicate_layer(source.id)

        assert copy.id != source.id
        assert copy.name == 'Mark (copy)'
        assert (copy.pos_x, copy.pos_y) == (15.0, 25.0)
        assert copy.content == source.content
        assert stack.ids == [source.id, copy.id]
        assert stack.active_layer_id == copy.id

    def test_duplicate_ids_rejected(self):
        layer = Layer()
        with pytest.raises(ValueError):
            LayerStack([layer, layer.copy()])

    def test_update_layer_notifies(self):
        stack = LayerStack()
        calls = []
        stack.add_listener(lambda: calls.append(1))
        stack.update_layer(stack[0].id, size=300, opacity=0.25)
        assert stack[0].size == 300.0
        assert stack[0].opacity == 0.25
        assert calls == [1]

    def test_toggle_visibility(self):
        stack = LayerStack()
        assert stack.toggle_visibility(stack[0].id) is False
        assert stack[0].visible is False
        assert stack.toggle_visibility(stack[0].id) is True


class TestSyncProperty:
    def test_confirm_declined(self):
        stack = LayerStack()
        stack.add_layer()
        applied = stack.sync_property('opacity', 0.3, confirm=lambda: False)
        assert applied is False
        assert all(layer.opacity == 0.8 for layer in stack)

    def test_applies_to_all(self):
        stack = LayerStack()
        stack.add_layer()
        stack.add_layer()
        assert stack.sync_property('rotation', 45, confirm=lambda: True)
        assert [layer.rotation for layer in stack] == [45.0, 45.0, 45.0]

    def test_text_field_skips_image_layers(self):
        stack = LayerStack()
        image = stack.add_layer('image', asset_id='logo')
        stack.sync_property('text', 'Shared', confirm=lambda: True)
        assert stack[0].content.text == 'Shared'
        assert image.content == ImageContent(asset_id='logo')

    def test_no_layer_accepts(self):
        stack = LayerStack([Layer(ImageContent())])
        with pytest.raises(ValueError):
            stack.sync_property('text', 'x')


class TestOrdering:
    @pytest.fixture
    def stack(self):
        stack = LayerStack()
        stack.add_layer()
        stack.add_layer()
        return stack

    def test_move_up_down(self, stack):
        a, b, c = stack.ids
        stack.move_layer_up(a)
        assert stack.ids == [b, a, c]
        stack.move_layer_down(c)
        assert stack.ids == [b, c, a]

    def test_move_clamped(self, stack):
        a, b, c = stack.ids
        stack.move_layer_up(c)
        assert stack.ids == [a, b, c]
        stack.move_layer(a, 99)
        assert stack.ids == [b, c, a]

    def test_to_top_bottom(self, stack):
        a, b, c = stack.ids
        stack.move_layer_to_top(a)
        assert stack.ids == [b, c, a]
        stack.move_layer_to_bottom(a)
        assert stack.ids == [a, b, c]

    def test_swap(self, stack):
        a, b, c = stack.ids
        stack.swap_layers(a, c)
        assert stack.ids == [c, b, a]

    def test_top_to_bottom(self, stack):
        assert [layer.id for layer in stack.top_to_bottom()] == list(reversed(stack.ids))


class TestSnapshots:
    def test_roundtrip(self):
        stack = LayerStack()
        first = stack[0]
        snapshot = stack.get_snapshot()

        stack.update_layer(first.id, size=999)
        stack.add_layer()
        stack.set_snapshot(snapshot)

        assert len(stack) == 1
        assert stack[0].id == first.id
        assert stack[0].size == 150.0
        assert stack.active_layer_id == first.id

    def test_snapshot_is_independent(self):
        stack = LayerStack()
        snapshot = stack.get_snapshot()
        stack.update_layer(stack[0].id, rotation=33)
        assert snapshot['layers'][0].rotation == 0.0

    def test_replace_all(self):
        stack = LayerStack()
        new_layers = [Layer(), Layer()]
        stack.replace_all(new_layers)
        assert stack.ids == [layer.id for layer in new_layers]
        assert stack.active_layer_id == new_layers[0].id


class TestRejectedUpdate:
    def test_text_field_on_image_layer_changes_nothing(self):
        stack = LayerStack()
        image = stack.add_layer('image', asset_id='logo')
        calls = []
        stack.add_listener(lambda: calls.append(1))

        with pytest.raises(ValueError):
            stack.update_layer(image.id, opacity=0.1, text='oops')
        assert image.opacity == 0.8
        assert image.content == ImageContent(asset_id='logo')
        assert calls == []

    def test_unknown_key_after_valid_ones(self):
        stack = LayerStack()
        layer = stack[0]
        before = layer.content
        with pytest.raises(ValueError):
            stack.update_layer(layer.id, size=300, text='changed', shine=True)
        assert layer.size == 150.0
        assert layer.content == before

    def test_accepted_update_keeps_identity(self):
        stack = LayerStack()
        layer = stack[0]
        stack.update_layer(layer.id, text='Kept', pos_x=12)
        assert stack[0] is layer
        assert layer.content.text == 'Kept'
        assert layer.pos_x == 12.0
