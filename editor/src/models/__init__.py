"""
Watermark Editor - Data Models

This module contains the data model classes for the editor.
This is the MODEL in MVC architecture.

Public API: Layer and its content types, LayerStack, AssetLibrary,
RasterImage, MaskBuffer and the Document store.
"""

from .layer import Layer, TextContent, ImageContent, BlendMode
from .layer_stack import LayerStack, LastLayerError
from .asset_library import AssetLibrary, LogoAsset
from .raster import RasterImage
from .mask import MaskBuffer, RegionDetector
from .document import Document, ImageSlot

__all__ = [
    'Layer', 'TextContent', 'ImageContent', 'BlendMode',
    'LayerStack', 'LastLayerError',
    'AssetLibrary', 'LogoAsset',
    'RasterImage',
    'MaskBuffer', 'RegionDetector',
    'Document', 'ImageSlot',
]
