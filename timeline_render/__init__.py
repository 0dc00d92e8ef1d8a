"""timeline_render - compile gallery timelines into FFmpeg filter graphs and render them."""

__version__ = "0.1.0"
