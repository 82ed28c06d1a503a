"""
Shared fixtures for Watermark Editor tests.

Provides base images, logo assets, layer stacks and documents.
"""
import sys
import os
import pytest

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))

# Widget tests run without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import numpy as np


# ── Images ──────────────────────────────────────────────────────────────

def solid_image(width, height, color=(0, 0, 0, 255)):
    from models.raster import RasterImage
    return RasterImage.blank(width, height, color)


def ink_bbox(rendered, base, threshold=64):
    """(top, bottom, left, right) of pixels that differ from the base, or None"""
    diff = np.abs(rendered.pixels[..., :3].astype(int) - base.pixels[..., :3].astype(int)).max(axis=-1)
    rows = np.flatnonzero((diff > threshold).any(axis=1))
    cols = np.flatnonzero((diff > threshold).any(axis=0))
    if rows.size == 0:
        return None
    return rows[0], rows[-1], cols[0], cols[-1]


@pytest.fixture
def black_100():
    """100x100 opaque black base image"""
    return solid_image(100, 100)


@pytest.fixture
def gray_400():
    """400x400 opaque mid-gray base image"""
    return solid_image(400, 400, (128, 128, 128, 255))


@pytest.fixture
def logo_image():
    """100x50 opaque red logo"""
    return solid_image(100, 50, (255, 0, 0, 255))


@pytest.fixture
def assets(logo_image):
    """Asset library holding the red logo under id 'logo'"""
    from models.asset_library import AssetLibrary
    library = AssetLibrary()
    library.add(logo_image, name='logo.png', asset_id='logo')
    return library


@pytest.fixture
def logo_layer():
    """Image layer: 'logo' at the centre, size 250, no shadow, full opacity"""
    from models.layer import Layer, ImageContent
    return Layer(ImageContent(asset_id='logo'), size=250, opacity=1.0, has_shadow=False)


@pytest.fixture
def logo_stack(logo_layer):
    """Single-layer stack holding logo_layer"""
    from models.layer_stack import LayerStack
    return LayerStack([logo_layer])


@pytest.fixture
def document(gray_400, assets, logo_stack):
    """Document with one 400x400 image and the logo layer"""
    from models.document import Document
    doc = Document(layer_stack=logo_stack, assets=assets)
    doc.add_image(gray_400, 'photo.png')
    return doc
