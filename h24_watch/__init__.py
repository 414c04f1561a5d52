"""H24 watch face: a 24-hour single-hand dial with ambient dimming."""

__version__ = "1.0.0"
