"""Plain-text portable pixmap (PPM, magic ``P3``) output.

The renderer hands finished scanlines to a *pixel sink*. A sink is told the
image size once, then receives the rows top-to-bottom, each row left-to-right
as ``(r, g, b)`` integers in [0, 255], and is finally closed.

Sinks provided here:
    - PPMWriter: streams a P3 pixmap into a text stream
    - PixelBuffer: collects the rows into a NumPy array
    - TripleSink: forwards every pixel to a callback

A P3 file is a header ``P3\\n<W> <H>\\n255\\n`` followed by one ``r g b`` line
per pixel.

Example:
    >>> import sys
    >>> from pathtracer.output.ppm import PPMWriter
    >>> writer = PPMWriter(sys.stdout)
    >>> writer.begin(2, 1)
    P3
    2 1
    255
    >>> writer.write_rows([[(255, 0, 0), (0, 0, 255)]])
    255 0 0
    0 0 255
    >>> writer.end()
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Protocol, TextIO

import numpy as np
import numpy.typing as npt

# Maximum channel value written into the header
MAX_VALUE = 255

Pixel = tuple[int, int, int]
Row = Sequence[Sequence[int]]


class PixelSink(Protocol):
    """Destination for rendered scanlines."""

    def begin(self, width: int, height: int) -> None:
        """Start an image of the given size."""
        ...

    def write_rows(self, rows: Iterable[Row]) -> None:
        """Consume rows in top-to-bottom order."""
        ...

    def end(self) -> None:
        """Finish the image."""
        ...


def format_header(width: int, height: int) -> str:
    """Return the exact P3 header for an image size."""
    return f"P3\n{width} {height}\n{MAX_VALUE}\n"


def _check_pixel(pixel: Sequence[int]) -> Pixel:
    if len(pixel) != 3:
        raise ValueError(f"Pixel {tuple(pixel)} does not have three channels")
    r, g, b = (int(pixel[0]), int(pixel[1]), int(pixel[2]))
    for value in (r, g, b):
        if not 0 <= value <= MAX_VALUE:
            raise ValueError(f"Channel value {value} is outside [0, {MAX_VALUE}]")
    return r, g, b


class _CountingSink:
    """Shared bookkeeping: image size, row count and row width checks."""

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.rows_written = 0
        self._started = False

    def begin(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.rows_written = 0
        self._started = True

    def _accept_row(self, row: Row) -> list[Pixel]:
        if not self._started:
            raise RuntimeError("begin() must be called before write_rows()")
        if self.rows_written >= self.height:
            raise ValueError(f"More than {self.height} rows written")
        if len(row) != self.width:
            raise ValueError(f"Row has {len(row)} pixels, expected {self.width}")
        pixels = [_check_pixel(pixel) for pixel in row]
        self.rows_written += 1
        return pixels

    def end(self) -> None:
        if self.rows_written != self.height:
            raise ValueError(
                f"Image ended after {self.rows_written} of {self.height} rows"
            )
        self._started = False


class PPMWriter(_CountingSink):
    """Stream a P3 pixmap into a text stream.

    The header is written by ``begin``; every row is written as soon as it
    arrives, so a cancelled render leaves a well-formed prefix.

    Args:
        stream: A writable text stream (file, ``sys.stdout``, ``io.StringIO``).
    """

    def __init__(self, stream: TextIO) -> None:
        super().__init__()
        self.stream = stream

    def begin(self, width: int, height: int) -> None:
        super().begin(width, height)
        self.stream.write(format_header(width, height))

    def write_rows(self, rows: Iterable[Row]) -> None:
        for row in rows:
            pixels = self._accept_row(row)
            self.stream.write("".join(f"{r} {g} {b}\n" for r, g, b in pixels))

    def end(self) -> None:
        super().end()
        self.stream.flush()


class PixelBuffer(_CountingSink):
    """Collect rendered rows into an ``(H, W, 3)`` uint8 array."""

    def __init__(self) -> None:
        super().__init__()
        self.image: npt.NDArray[np.uint8] = np.zeros((0, 0, 3), dtype=np.uint8)

    def begin(self, width: int, height: int) -> None:
        super().begin(width, height)
        self.image = np.zeros((height, width, 3), dtype=np.uint8)

    def write_rows(self, rows: Iterable[Row]) -> None:
        for row in rows:
            index = self.rows_written
            self.image[index] = np.asarray(self._accept_row(row), dtype=np.uint8)


class TripleSink(_CountingSink):
    """Forward every pixel, in emission order, to a callback.

    Args:
        callback: Called with one ``(r, g, b)`` tuple per pixel.
    """

    def __init__(self, callback: Callable[[Pixel], None]) -> None:
        super().__init__()
        self.callback = callback

    def write_rows(self, rows: Iterable[Row]) -> None:
        for row in rows:
            for pixel in self._accept_row(row):
                self.callback(pixel)


# =============================================================================
# Whole-image helpers
# =============================================================================


def format_ppm(image: npt.ArrayLike) -> str:
    """Format an ``(H, W, 3)`` image (first row on top) as P3 text.

    Raises:
        ValueError: If the array is not (H, W, 3) or a value is out of range.
    """
    array = np.asarray(image)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {array.shape}")
    lines = [format_header(array.shape[1], array.shape[0])]
    for row in array:
        lines.extend(f"{r} {g} {b}\n" for r, g, b in (_check_pixel(p) for p in row))
    return "".join(lines)


def write_ppm(path: str | Path, image: npt.ArrayLike) -> None:
    """Write an ``(H, W, 3)`` image to a P3 file."""
    Path(path).write_text(format_ppm(image), encoding="ascii")


def parse_ppm(text: str) -> npt.NDArray[np.uint8]:
    """Parse P3 text into an ``(H, W, 3)`` uint8 array.

    Tokens may be separated by any whitespace and ``#`` comments are ignored.

    Raises:
        ValueError: If the text is not a valid 8-bit P3 pixmap.
    """
    tokens = []
    for line in text.splitlines():
        tokens.extend(line.split("#", 1)[0].split())

    if len(tokens) < 4 or tokens[0] != "P3":
        raise ValueError("Not a P3 pixmap")
    width, height, max_value = (int(tokens[1]), int(tokens[2]), int(tokens[3]))
    if max_value != MAX_VALUE:
        raise ValueError(f"Unsupported max value {max_value}")

    values = tokens[4:]
    expected = width * height * 3
    if len(values) != expected:
        raise ValueError(f"Expected {expected} channel values, found {len(values)}")

    data = np.array([int(v) for v in values], dtype=np.int64)
    if data.size and (data.min() < 0 or data.max() > MAX_VALUE):
        raise ValueError(f"Channel values must be in [0, {MAX_VALUE}]")
    return data.astype(np.uint8).reshape(height, width, 3)
