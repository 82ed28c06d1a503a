"""
Watermark Editor - Constants and Configuration

This module contains all constant values used throughout the application:
- Default layer settings
- Min/max values and constraints
- Rendering constants for the compositor (tiling, shadow, overlay)
- Transform controller and hit-test constants
- Inpainting defaults

Sizes are expressed in per-mille of the target image width so a mark keeps
the same proportions on images of different resolution.
"""

# ======================================================================
# LAYER DEFAULTS
# ======================================================================

DEFAULT_TEXT = '© Watermark'
DEFAULT_TEXT_LAYER_NAME = 'Text watermark'
DEFAULT_IMAGE_LAYER_NAME = 'Logo watermark'
DUPLICATE_NAME_SUFFIX = ' (copy)'

DEFAULT_OPACITY = 0.8
DEFAULT_SIZE = 150.0        # 150/1000 of image width
DEFAULT_POSITION_X = 50.0   # Percent of image width
DEFAULT_POSITION_Y = 50.0   # Percent of image height
DEFAULT_ROTATION = 0.0
DEFAULT_TILE_DENSITY = 50.0

DEFAULT_TEXT_COLOR = '#ffffff'
DEFAULT_STROKE_COLOR = '#000000'
DEFAULT_STROKE_WIDTH = 2.0  # 2/2000 of image width
DEFAULT_BOLD = True
DEFAULT_ITALIC = False

DEFAULT_HAS_SHADOW = True
DEFAULT_HAS_BACKGROUND = False
DEFAULT_BACKGROUND_COLOR = '#000000'
DEFAULT_BACKGROUND_PADDING = 10.0  # 10/1000 of image width

# ======================================================================
# LAYER CONSTRAINTS
# ======================================================================

# Size floor keeps marks from collapsing to nothing; there is no ceiling
# ("fill frame" workflows pick sizes far larger than the canvas)
MIN_LAYER_SIZE = 10.0

OPACITY_MIN = 0.0
OPACITY_MAX = 1.0

TILE_DENSITY_MIN = 0.0

# ======================================================================
# LAYER STACK OPERATIONS
# ======================================================================

# Each new layer is offset by this many percent per existing layer
NEW_LAYER_OFFSET = 2.0

# Duplicates are offset so they are visible on top of the source
DUPLICATE_OFFSET = 5.0

# ======================================================================
# COMPOSITING
# ======================================================================

# Font size = size / SIZE_UNITS * canvas width
SIZE_UNITS = 1000.0

# Stroke width in pixels = stroke_width / STROKE_UNITS * canvas width
STROKE_UNITS = 2000.0
MIN_STROKE_PIXELS = 1.0

# Tiling: gap = content * TILE_GAP_FACTOR + canvas_width * density / TILE_DENSITY_DIVISOR
TILE_GAP_FACTOR = 1.2
TILE_DENSITY_DIVISOR = 300.0
TILE_MIN_GAP = 1.0
# Grid extends this multiple of max(width, height) past every canvas edge
TILE_BUFFER_FACTOR = 1.0

# Drop shadow (canvas pixels, not rotated with the mark)
SHADOW_COLOR = (0, 0, 0)
SHADOW_ALPHA = 0.3
TEXT_SHADOW_MIN_BLUR = 2.0
TEXT_SHADOW_BLUR_DIVISOR = 100.0    # blur = max(2, size / 100)
TEXT_SHADOW_MIN_OFFSET = 1.0
TEXT_SHADOW_OFFSET_DIVISOR = 200.0  # offset = max(1, size / 200)
IMAGE_SHADOW_BLUR = 4.0
IMAGE_SHADOW_OFFSET = 2.0

# Sprite margin around text for stroke and italic shear (multiple of font size)
TEXT_SPRITE_MARGIN = 0.25

# Synthetic italic shear when no italic face is installed
ITALIC_SHEAR = 0.2

# Font file candidates tried before Pillow's bundled default face
FONT_CANDIDATES = {
    (False, False): ['DejaVuSans.ttf', 'Arial.ttf', 'LiberationSans-Regular.ttf'],
    (True, False): ['DejaVuSans-Bold.ttf', 'Arial Bold.ttf', 'LiberationSans-Bold.ttf'],
    (False, True): ['DejaVuSans-Oblique.ttf', 'Arial Italic.ttf', 'LiberationSans-Italic.ttf'],
    (True, True): ['DejaVuSans-BoldOblique.ttf', 'Arial Bold Italic.ttf', 'LiberationSans-BoldItalic.ttf'],
}

# ======================================================================
# SELECTION OVERLAY / TRANSFORM HANDLES
# ======================================================================

# Handle radius = max(HANDLE_MIN_RADIUS, canvas_width * HANDLE_RADIUS_FACTOR)
HANDLE_MIN_RADIUS = 20.0
HANDLE_RADIUS_FACTOR = 0.04

# Padding added to each side of the content box for hit tests and overlay
HIT_TEST_PADDING = 20.0

OVERLAY_COLOR = (90, 141, 191, 230)
OVERLAY_HANDLE_FILL = (90, 141, 191, 255)
OVERLAY_HANDLE_OUTLINE = (255, 255, 255, 255)
OVERLAY_DASH_LENGTH = 8.0
OVERLAY_GAP_LENGTH = 6.0
OVERLAY_LINE_WIDTH = 2

# ======================================================================
# INPAINTING
# ======================================================================

INPAINT_ITERATIONS = 30
DEFAULT_BRUSH_RADIUS = 12.0

# ======================================================================
# EXPORT
# ======================================================================

EXPORT_FILENAME_PREFIX = 'watermarked_'
DEFAULT_EXPORT_FORMAT = 'PNG'     # for inputs with no extension
DEFAULT_JPEG_QUALITY = 95
