"""UI components for the Watermark Editor

This package contains the Qt presentation layer and the interactive
transform controller:
- canvas_widget: WatermarkCanvas, the live preview and input surface
- transform_widgets: gesture state machine and transform handles

The transform controller is toolkit-free; only canvas_widget needs PyQt5.
"""
