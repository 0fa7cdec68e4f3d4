"""Render configuration.

``RenderConfig`` gathers every option a render recognises: image size,
sampling parameters and the camera pose and lens. The image height is not
stored; it is derived from the width and the aspect ratio.

Example:
    >>> from pathtracer.config import RenderConfig
    >>> config = RenderConfig(image_width=200, samples_per_pixel=10)
    >>> config.image_height
    113
    >>> camera = config.to_camera()
"""

from dataclasses import asdict, dataclass, fields
from typing import Any

from pathtracer.camera.thin_lens import ThinLensCamera


@dataclass
class RenderConfig:
    """Settings of a single render.

    Attributes:
        image_width: Number of columns.
        aspect_ratio: Width divided by height, shared by image and camera.
        samples_per_pixel: Monte Carlo samples per pixel.
        max_depth: Maximum scatter depth of each path.
        vfov_degrees: Vertical field of view in degrees.
        aperture: Lens diameter. 0 disables defocus blur.
        focus_dist: Distance to the plane of perfect focus.
        lookfrom: Camera position.
        lookat: Point the camera looks at.
        vup: Camera up direction.
        seed: Seed of the render RNG.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    vfov_degrees: float = 90.0
    aperture: float = 0.0
    focus_dist: float = 1.0
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    seed: int = 0

    @property
    def image_height(self) -> int:
        """Number of rows: the width divided by the aspect ratio, halves rounded up."""
        return max(1, int(self.image_width / self.aspect_ratio + 0.5))

    def validate(self) -> None:
        """Check every option.

        Raises:
            ValueError: If a sampling option is out of range or the camera
                options are degenerate.
        """
        if self.image_width < 1:
            raise ValueError(f"image_width must be at least 1, got {self.image_width}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        self.to_camera()

    def to_camera(self) -> ThinLensCamera:
        """Build the camera described by this configuration.

        Raises:
            ValueError: If the camera options are degenerate.
        """
        return ThinLensCamera(
            lookfrom=tuple(self.lookfrom),
            lookat=tuple(self.lookat),
            vup=tuple(self.vup),
            vfov=self.vfov_degrees,
            aspect_ratio=self.aspect_ratio,
            aperture=self.aperture,
            focus_dist=self.focus_dist,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ("lookfrom", "lookat", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a configuration from a dictionary.

        Missing keys keep their defaults.

        Raises:
            ValueError: If the dictionary has keys that are not options.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown render options: {', '.join(unknown)}")

        values = dict(data)
        for key in ("lookfrom", "lookat", "vup"):
            if key in values:
                v = values[key]
                values[key] = (float(v[0]), float(v[1]), float(v[2]))
        return cls(**values)
