"""Scanline renderer: the host-facing entry point of the path tracer.

This module drives the integrator over a whole image and hands the result to a
pixel sink. It supports:
- A one-call ``render()`` API taking scene, camera, sizes and a sink
- Scanline bands rendered in parallel and emitted strictly top-to-bottom
- A generator interface so callers can stop between scanlines
- Progress callbacks for command-line or UI progress reporting

The Renderer class activates its scene, sets up the camera and seeds the RNG
each time it renders, so a render is a pure function of its inputs.

Example:
    >>> import sys
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.renderer import render
    >>> from pathtracer.output.ppm import PPMWriter
    >>> from pathtracer.scene.presets import create_three_sphere_scene
    >>>
    >>> scene, camera = create_three_sphere_scene(aspect_ratio=16.0 / 9.0)
    >>> render(scene, camera, 400, 225, 100, 50, PPMWriter(sys.stdout))
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
from pathtracer.config import RenderConfig
from pathtracer.core import rng
from pathtracer.core.integrator import render_rows
from pathtracer.output.ppm import PixelBuffer, PixelSink
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)
# A single scanline has to fit into the RNG slots; the height is unbounded
MAX_IMAGE_WIDTH = rng.MAX_STREAMS

# Default number of scanlines rendered per kernel launch
DEFAULT_ROWS_PER_BATCH = 16

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


def validate_render_settings(
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
) -> None:
    """Reject render settings the sampler cannot honour.

    Raises:
        ValueError: If the width is outside [1, MAX_IMAGE_WIDTH], the height
            is below 1, fewer than one sample per pixel is requested or
            max_depth is negative.
    """
    if not 1 <= width <= MAX_IMAGE_WIDTH:
        raise ValueError(f"Image width {width} is outside [1, {MAX_IMAGE_WIDTH}]")
    if height < 1:
        raise ValueError(f"Image height must be at least 1, got {height}")
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


class Renderer:
    """Renders a scene through a camera into scanlines.

    Attributes:
        scene: The scene to render.
        camera: The camera to render through.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples per pixel.
        max_depth: Maximum scatter depth of each path.
        seed: Seed of the render RNG.
        rows_per_batch: Number of scanlines per kernel launch.
    """

    def __init__(
        self,
        scene: SceneManager,
        camera: ThinLensCamera,
        width: int,
        height: int,
        samples_per_pixel: int = 100,
        max_depth: int = 50,
        *,
        seed: int = 0,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If the render settings or the camera are invalid.
        """
        validate_render_settings(width, height, samples_per_pixel, max_depth)
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")
        camera.validate()

        self.scene = scene
        self.camera = camera
        self.width = width
        self.height = height
        self.samples_per_pixel = samples_per_pixel
        self.max_depth = max_depth
        self.seed = seed
        self.rows_per_batch = rows_per_batch
        # Rows of one band share the RNG slots, one slot per pixel
        self._max_band_rows = rng.MAX_STREAMS // width

    def _prepare(self) -> None:
        """Load the scene, camera and RNG state into the Taichi fields."""
        self.scene.activate()
        setup_camera(self.camera)
        rng.seed(self.seed)
        logger.debug(
            "Rendering %dx%d, %d spp, max depth %d, seed %d",
            self.width,
            self.height,
            self.samples_per_pixel,
            self.max_depth,
            self.seed,
        )

    def render_bands(
        self,
        callback: ProgressCallback | None = None,
    ) -> Generator[tuple[int, npt.NDArray[np.uint8]], None, None]:
        """Render the image band by band, top band first.

        Yields:
            Tuple of (row_top, band) where row_top is the image row index of
            the band's first row (rows count up from the bottom) and band is
            a (rows, width, 3) uint8 array in top-to-bottom order.
        """
        self._prepare()
        start = time.perf_counter()

        rows_done = 0
        row_top = self.height - 1
        while row_top >= 0:
            band_rows = min(self.rows_per_batch, self._max_band_rows, row_top + 1)
            band = np.zeros((band_rows, self.width, 3), dtype=np.int32)
            render_rows(
                band,
                row_top,
                self.width,
                self.height,
                self.samples_per_pixel,
                self.max_depth,
            )
            rows_done += band_rows
            logger.debug(
                "Scanlines %d..%d done, %d remaining",
                row_top,
                row_top - band_rows + 1,
                self.height - rows_done,
            )
            if callback is not None:
                callback(rows_done, self.height)

            yield row_top, band.astype(np.uint8)
            row_top -= band_rows

        logger.info(
            "Rendered %dx%d image at %d spp in %.2fs",
            self.width,
            self.height,
            self.samples_per_pixel,
            time.perf_counter() - start,
        )

    def render_scanlines(
        self,
        callback: ProgressCallback | None = None,
    ) -> Generator[tuple[int, npt.NDArray[np.uint8]], None, None]:
        """Render the image one scanline at a time, top row first.

        Stopping the iteration cancels the render at a scanline boundary.

        Yields:
            Tuple of (row_index, row) where row_index counts up from the
            bottom (the first row yielded is height - 1) and row is a
            (width, 3) uint8 array ordered left to right.
        """
        for row_top, band in self.render_bands(callback):
            for offset, row in enumerate(band):
                yield row_top - offset, row

    def render_to(self, sink: PixelSink, callback: ProgressCallback | None = None) -> None:
        """Render the image into a pixel sink.

        Exceptions raised by the sink propagate unchanged.
        """
        sink.begin(self.width, self.height)
        for _, band in self.render_bands(callback):
            sink.write_rows(band)
        sink.end()

    def render_image(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint8]:
        """Render the image into an (height, width, 3) uint8 array, top row first."""
        buffer = PixelBuffer()
        self.render_to(buffer, callback)
        return buffer.image

    def __repr__(self) -> str:
        """Return a string representation of the renderer settings."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.samples_per_pixel}, max_depth={self.max_depth}, "
            f"seed={self.seed})"
        )


def render(
    scene: SceneManager,
    camera: ThinLensCamera,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    sink: PixelSink,
    *,
    seed: int = 0,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    callback: ProgressCallback | None = None,
) -> None:
    """Render a scene and emit its pixels top-to-bottom into a sink.

    Args:
        scene: The scene to render.
        camera: The camera to render through.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples per pixel.
        max_depth: Maximum scatter depth of each path.
        sink: Receives the image size, then the rows, then ``end()``.
        seed: Seed of the render RNG.
        rows_per_batch: Number of scanlines per kernel launch.
        callback: Optional progress callback receiving (rows_done, total_rows).

    Raises:
        ValueError: If the render settings or the camera are invalid.
    """
    renderer = Renderer(
        scene,
        camera,
        width,
        height,
        samples_per_pixel,
        max_depth,
        seed=seed,
        rows_per_batch=rows_per_batch,
    )
    renderer.render_to(sink, callback)


def render_config(
    config: RenderConfig,
    scene: SceneManager,
    sink: PixelSink,
    *,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    callback: ProgressCallback | None = None,
) -> None:
    """Render a scene with every setting taken from a RenderConfig.

    Raises:
        ValueError: If the configuration is invalid.
    """
    config.validate()
    render(
        scene,
        config.to_camera(),
        config.image_width,
        config.image_height,
        config.samples_per_pixel,
        config.max_depth,
        sink,
        seed=config.seed,
        rows_per_batch=rows_per_batch,
        callback=callback,
    )
