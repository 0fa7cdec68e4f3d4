"""Output module for rendered images.

Components:
    ppm: Plain-text pixmap (P3) sinks and helpers
"""

from .ppm import (
    PixelBuffer,
    PixelSink,
    PPMWriter,
    TripleSink,
    format_header,
    format_ppm,
    parse_ppm,
    write_ppm,
)

__all__ = [
    "PixelSink",
    "PPMWriter",
    "PixelBuffer",
    "TripleSink",
    "format_header",
    "format_ppm",
    "write_ppm",
    "parse_ppm",
]
