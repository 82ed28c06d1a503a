"""
Watermark Editor - Layer Data Model

One Layer is one watermark element (text or logo) in the paint stack.

Layer content is a tagged union:
    TextContent  - text run with fill, stroke and style flags
    ImageContent - reference to a LogoAsset by id

Consumers dispatch with isinstance() and raise TypeError on anything
else, so a new content kind can never fall through silently.

Property setters clamp invalid values at the mutation boundary
(size floor, opacity range) so rendering never sees bad state.

This is part of the MODEL layer - pure data, no rendering logic.
"""

import uuid as uuid_module
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from models.transform import Vec2
from constants import (
    DEFAULT_TEXT, DEFAULT_TEXT_LAYER_NAME, DEFAULT_IMAGE_LAYER_NAME,
    DEFAULT_OPACITY, DEFAULT_SIZE, DEFAULT_POSITION_X, DEFAULT_POSITION_Y,
    DEFAULT_ROTATION, DEFAULT_TILE_DENSITY,
    DEFAULT_TEXT_COLOR, DEFAULT_STROKE_COLOR, DEFAULT_STROKE_WIDTH,
    DEFAULT_BOLD, DEFAULT_ITALIC,
    DEFAULT_HAS_SHADOW, DEFAULT_HAS_BACKGROUND,
    DEFAULT_BACKGROUND_COLOR, DEFAULT_BACKGROUND_PADDING,
    MIN_LAYER_SIZE, OPACITY_MIN, OPACITY_MAX, TILE_DENSITY_MIN,
)


class BlendMode(Enum):
    """Separable blend modes applied when painting a layer."""
    NORMAL = 'normal'
    MULTIPLY = 'multiply'
    SCREEN = 'screen'
    OVERLAY = 'overlay'
    SOFT_LIGHT = 'soft-light'
    HARD_LIGHT = 'hard-light'
    COLOR_DODGE = 'color-dodge'
    COLOR_BURN = 'color-burn'
    DARKEN = 'darken'
    LIGHTEN = 'lighten'
    DIFFERENCE = 'difference'
    EXCLUSION = 'exclusion'

    @classmethod
    def parse(cls, value) -> 'BlendMode':
        """Accept a BlendMode, its value, its name, or the canvas alias 'source-over'.

        Raises:
            ValueError: If the value names no known mode
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('_', '-')
        if key == 'source-over':
            return cls.NORMAL
        for mode in cls:
            if mode.value == key:
                return mode
        raise ValueError(f"Unknown blend mode: {value!r}")


@dataclass(frozen=True)
class TextContent:
    text: str = DEFAULT_TEXT
    color: str = DEFAULT_TEXT_COLOR
    bold: bool = DEFAULT_BOLD
    italic: bool = DEFAULT_ITALIC
    stroke_width: float = DEFAULT_STROKE_WIDTH
    stroke_color: str = DEFAULT_STROKE_COLOR


@dataclass(frozen=True)
class ImageContent:
    asset_id: Optional[str] = None


LayerContent = Union[TextContent, ImageContent]

# Text fields editable through Layer.update()/LayerStack.update_layer()
TEXT_FIELDS = {
    'text': 'text',
    'text_color': 'color',
    'bold': 'bold',
    'italic': 'italic',
    'stroke_width': 'stroke_width',
    'stroke_color': 'stroke_color',
}

# Plain layer attributes settable through Layer.update()
LAYER_FIELDS = (
    'name', 'visible', 'blend_mode', 'opacity', 'size', 'pos_x', 'pos_y',
    'rotation', 'tiled', 'tile_density', 'has_background',
    'background_color', 'background_padding', 'has_shadow',
)


def new_layer_id() -> str:
    return str(uuid_module.uuid4())


class Layer:
    """A single watermark mark with its placement and style

    Layer Properties:
        id (read-only), name, content (TextContent | ImageContent), visible,
        blend_mode, opacity, size, pos (Vec2, percent), rotation, tiled,
        tile_density, has_background, background_color, background_padding,
        has_shadow
    """

    def __init__(self, content: Optional[LayerContent] = None, layer_id: Optional[str] = None,
                 name: Optional[str] = None, **properties):
        """Create a layer

        Args:
            content: TextContent or ImageContent (defaults to TextContent())
            layer_id: Existing id to preserve (snapshots); a new uuid otherwise
            name: Display name, defaults by content kind
            **properties: Any of LAYER_FIELDS
        """
        if content is None:
            content = TextContent()
        self._check_content(content)
        self._id = layer_id or new_layer_id()
        self._content = content

        self._visible = True
        self._blend_mode = BlendMode.NORMAL
        self._opacity = DEFAULT_OPACITY
        self._size = DEFAULT_SIZE
        self._pos = Vec2(DEFAULT_POSITION_X, DEFAULT_POSITION_Y)
        self._rotation = DEFAULT_ROTATION
        self._tiled = False
        self._tile_density = DEFAULT_TILE_DENSITY
        self._has_background = DEFAULT_HAS_BACKGROUND
        self._background_color = DEFAULT_BACKGROUND_COLOR
        self._background_padding = DEFAULT_BACKGROUND_PADDING
        self._has_shadow = DEFAULT_HAS_SHADOW

        if name is None:
            name = DEFAULT_TEXT_LAYER_NAME if isinstance(content, TextContent) else DEFAULT_IMAGE_LAYER_NAME
        self.name = name
        self._apply(properties)

    @staticmethod
    def _check_content(content):
        if not isinstance(content, (TextContent, ImageContent)):
            raise TypeError(f"Unsupported layer content: {type(content).__name__}")

    def __repr__(self):
        return f"Layer(id={self._id!r}, name={self.name!r}, kind={self.kind!r})"

    # ========================================
    # Identity and content
    # ========================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> str:
        if isinstance(self._content, TextContent):
            return 'text'
        if isinstance(self._content, ImageContent):
            return 'image'
        raise TypeError(f"Unsupported layer content: {type(self._content).__name__}")

    @property
    def content(self) -> LayerContent:
        return self._content

    @content.setter
    def content(self, value: LayerContent):
        self._check_content(value)
        self._content = value

    @property
    def is_text(self) -> bool:
        return isinstance(self._content, TextContent)

    @property
    def is_image(self) -> bool:
        return isinstance(self._content, ImageContent)

    # ========================================
    # Appearance
    # ========================================

    @property
    def visible(self) -> bool:
        return self._visible

    @visible.setter
    def visible(self, value):
        self._visible = bool(value)

    @property
    def blend_mode(self) -> BlendMode:
        return self._blend_mode

    @blend_mode.setter
    def blend_mode(self, value):
        self._blend_mode = BlendMode.parse(value)

    @property
    def opacity(self) -> float:
        return self._opacity

    @opacity.setter
    def opacity(self, value):
        self._opacity = min(OPACITY_MAX, max(OPACITY_MIN, float(value)))

    @property
    def has_shadow(self) -> bool:
        return self._has_shadow

    @has_shadow.setter
    def has_shadow(self, value):
        self._has_shadow = bool(value)

    @property
    def shadow_active(self) -> bool:
        """Shadow is only drawn when no background rect covers it"""
        return self._has_shadow and not self._has_background

    @property
    def has_background(self) -> bool:
        return self._has_background

    @has_background.setter
    def has_background(self, value):
        self._has_background = bool(value)

    @property
    def background_color(self) -> str:
        return self._background_color

    @background_color.setter
    def background_color(self, value):
        self._background_color = str(value)

    @property
    def background_padding(self) -> float:
        return self._background_padding

    @background_padding.setter
    def background_padding(self, value):
        self._background_padding = max(0.0, float(value))

    # ========================================
    # Transform
    # ========================================

    @property
    def size(self) -> float:
        return self._size

    @size.setter
    def size(self, value):
        self._size = max(MIN_LAYER_SIZE, float(value))

    @property
    def pos(self) -> Vec2:
        return Vec2(self._pos.x, self._pos.y)

    @pos.setter
    def pos(self, value):
        x, y = value
        self._pos = Vec2(float(x), float(y))

    @property
    def pos_x(self) -> float:
        return self._pos.x

    @pos_x.setter
    def pos_x(self, value):
        self._pos = Vec2(float(value), self._pos.y)

    @property
    def pos_y(self) -> float:
        return self._pos.y

    @pos_y.setter
    def pos_y(self, value):
        self._pos = Vec2(self._pos.x, float(value))

    @property
    def rotation(self) -> float:
        return self._rotation

    @rotation.setter
    def rotation(self, value):
        self._rotation = float(value)

    @property
    def tiled(self) -> bool:
        return self._tiled

    @tiled.setter
    def tiled(self, value):
        self._tiled = bool(value)

    @property
    def tile_density(self) -> float:
        return self._tile_density

    @tile_density.setter
    def tile_density(self, value):
        self._tile_density = max(TILE_DENSITY_MIN, float(value))

    # ========================================
    # Bulk update / copy
    # ========================================

    def update(self, **changes):
        """Apply several property changes at once

        Text fields (text, text_color, bold, italic, stroke_width,
        stroke_color) rewrite the TextContent; asset_id rewrites the
        ImageContent.

        Changes are staged on a copy, so a rejected update leaves the
        layer as it was.

        Raises:
            ValueError: For an unknown key or a text field on an image layer
        """
        staged = self.copy()
        staged._apply(changes)
        self.__dict__.update(vars(staged))

    def _apply(self, changes):
        text_changes = {}
        for key, value in changes.items():
            if key in TEXT_FIELDS:
                text_changes[TEXT_FIELDS[key]] = value
            elif key == 'asset_id':
                if not self.is_image:
                    raise ValueError(f"Layer {self._id} is not an image layer")
                self._content = ImageContent(asset_id=value)
            elif key == 'content':
                self.content = value
            elif key in LAYER_FIELDS:
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown layer property: {key!r}")

        if text_changes:
            if not self.is_text:
                raise ValueError(f"Layer {self._id} is not a text layer")
            if 'text' in text_changes:
                text_changes['text'] = str(text_changes['text'])
            if 'stroke_width' in text_changes:
                text_changes['stroke_width'] = max(0.0, float(text_changes['stroke_width']))
            self._content = replace(self._content, **text_changes)

    def get_property(self, key):
        """Read a property by the same keys update() accepts"""
        if key in TEXT_FIELDS:
            if not self.is_text:
                raise ValueError(f"Layer {self._id} is not a text layer")
            return getattr(self._content, TEXT_FIELDS[key])
        if key == 'asset_id':
            if not self.is_image:
                raise ValueError(f"Layer {self._id} is not an image layer")
            return self._content.asset_id
        if key in LAYER_FIELDS or key == 'content':
            return getattr(self, key)
        raise ValueError(f"Unknown layer property: {key!r}")

    def properties(self) -> dict:
        """All plain layer attributes as a dict (content excluded)"""
        return {key: getattr(self, key) for key in LAYER_FIELDS}

    def copy(self, new_id: bool = False) -> 'Layer':
        """Copy this layer, keeping the id unless new_id is set"""
        return Layer(
            content=self._content,
            layer_id=None if new_id else self._id,
            **self.properties()
        )
