"""tracescope: trace model builder, zoomable timeline viewport and view state."""

__version__ = "0.1.0"
