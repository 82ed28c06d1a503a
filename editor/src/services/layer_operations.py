"""
Watermark Editor - Layer Operations Service

This module handles layer creation, sizing helpers and layer
serialisation. These functions provide layer manipulation logic
independent of the UI.

Layer files are JSON:
    {"version": 1, "active_layer_id": "...", "layers": [{...}, ...]}
Keys are snake_case; the camelCase names used by earlier exports
(posX, isTiled, logoId, ...) are accepted on load.
"""

import json
import logging

from models.layer import Layer, TextContent, ImageContent, TEXT_FIELDS, LAYER_FIELDS
from models.layer_stack import LayerStack
from services.mark_renderer import content_metrics
from constants import DEFAULT_POSITION_X, DEFAULT_POSITION_Y, SIZE_UNITS, MIN_LAYER_SIZE

logger = logging.getLogger(__name__)

LAYER_FILE_VERSION = 1

# Legacy camelCase key -> current key
KEY_ALIASES = {
    'type': 'kind',
    'blendMode': 'blend_mode',
    'posX': 'pos_x',
    'posY': 'pos_y',
    'isTiled': 'tiled',
    'tileDensity': 'tile_density',
    'textColor': 'text_color',
    'isBold': 'bold',
    'isItalic': 'italic',
    'strokeWidth': 'stroke_width',
    'strokeColor': 'stroke_color',
    'logoId': 'asset_id',
    'hasBackground': 'has_background',
    'backgroundColor': 'background_color',
    'backgroundPadding': 'background_padding',
    'hasShadow': 'has_shadow',
}


def create_default_layer(kind='text', asset_id=None, **overrides):
    """Create new layer with default values

    Args:
        kind: 'text' or 'image'
        asset_id: Logo asset id for image layers
        **overrides: Optional property overrides (pos_x, size, text, ...)

    Returns:
        Layer object
    """
    if kind == 'text':
        content = TextContent()
    elif kind == 'image':
        content = ImageContent(asset_id=asset_id)
    else:
        raise ValueError(f"Unknown layer kind: {kind!r}")

    layer = Layer(content, pos_x=DEFAULT_POSITION_X, pos_y=DEFAULT_POSITION_Y)
    layer.update(**overrides)
    return layer


def fill_canvas_size(layer, canvas_width, assets=None):
    """Size at which the layer's content spans the full canvas width

    Content width grows linearly with size, so one measurement at the
    current size is enough.

    Returns:
        float size, or None when the content has no width (empty text,
        missing asset)
    """
    if isinstance(layer.content, ImageContent):
        if assets is None or assets.get(layer.content.asset_id) is None:
            return None
        return float(SIZE_UNITS)
    metrics = content_metrics(layer, canvas_width, assets)
    if metrics is None or metrics[0] <= 0:
        return None
    return max(MIN_LAYER_SIZE, layer.size * canvas_width / metrics[0])


# ======================================================================
# Serialisation
# ======================================================================

def layer_to_dict(layer):
    """Serialize one layer to a JSON-safe dict"""
    data = {'id': layer.id, 'kind': layer.kind}
    for key, value in layer.properties().items():
        data[key] = value.value if key == 'blend_mode' else value
    content = layer.content
    if isinstance(content, TextContent):
        for key, attr in TEXT_FIELDS.items():
            data[key] = getattr(content, attr)
    elif isinstance(content, ImageContent):
        data['asset_id'] = content.asset_id
    else:
        raise TypeError(f"Unsupported layer content: {type(content).__name__}")
    return data


def _normalise_keys(data):
    normalised = {}
    for key, value in data.items():
        normalised[KEY_ALIASES.get(key, key)] = value
    return normalised


def layer_from_dict(data):
    """Build a Layer from a dict written by layer_to_dict()

    Unknown keys are ignored with a debug log.

    Raises:
        ValueError: If the kind is unknown
    """
    data = _normalise_keys(data)
    kind = data.pop('kind', 'text')
    layer_id = data.pop('id', None)
    if layer_id is not None:
        layer_id = str(layer_id)

    if kind == 'text':
        content = TextContent()
        accepted = set(LAYER_FIELDS) | set(TEXT_FIELDS)
    elif kind == 'image':
        content = ImageContent()
        accepted = set(LAYER_FIELDS) | {'asset_id'}
    else:
        raise ValueError(f"Unknown layer kind: {kind!r}")

    changes = {}
    for key, value in data.items():
        if key in accepted:
            changes[key] = value
        else:
            logger.debug(f"Ignoring layer key {key!r} for a {kind} layer")

    # Asset ids are string keys; older files store numbers
    if changes.get('asset_id') is not None:
        changes['asset_id'] = str(changes['asset_id'])

    # Route through update() so setters clamp and coerce
    layer = Layer(content, layer_id=layer_id)
    layer.update(**changes)
    return layer


def stack_to_dict(layer_stack):
    return {
        'version': LAYER_FILE_VERSION,
        'active_layer_id': layer_stack.active_layer_id,
        'layers': [layer_to_dict(layer) for layer in layer_stack],
    }


def save_layers(layer_stack, filename):
    """Save a layer stack to a JSON file

    Args:
        layer_stack: LayerStack to write
        filename: Path to save file
    """
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(stack_to_dict(layer_stack), f, indent=2, ensure_ascii=False)
    logger.info(f"Layers saved to {filename}")


def layers_from_data(data):
    """Parse a layer file payload (dict, or a bare list of layer dicts)"""
    if isinstance(data, list):
        entries, active_id = data, None
    elif isinstance(data, dict):
        entries, active_id = data.get('layers', []), data.get('active_layer_id')
    else:
        raise ValueError("Layer data must be an object or a list")
    layers = [layer_from_dict(entry) for entry in entries]
    if not layers:
        raise ValueError("Layer data contains no layers")
    return layers, active_id


def load_layers(filename, layer_stack=None):
    """Load layers from a JSON file

    Args:
        filename: Path to layer file
        layer_stack: Stack to replace in place; a new one is created if None

    Returns:
        The LayerStack holding the loaded layers

    Raises:
        ValueError: If the file holds no valid layers
    """
    with open(filename, 'r', encoding='utf-8') as f:
        data = json.load(f)
    layers, active_id = layers_from_data(data)

    if layer_stack is None:
        layer_stack = LayerStack(layers)
    else:
        layer_stack.replace_all(layers)
    if active_id in layer_stack:
        layer_stack.set_active(active_id)
    logger.info(f"Loaded {len(layers)} layer(s) from {filename}")
    return layer_stack
