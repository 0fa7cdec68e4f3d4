"""Positionable camera with a thin lens for depth of field.

The camera sits at ``lookfrom`` and looks at ``lookat``, rolled so ``vup``
projects onto the image's up direction. ``vfov`` is the vertical opening
angle in degrees. From these it builds the frame

    w = unit(lookfrom - lookat)    (points backward)
    u = unit(cross(vup, w))        (image right)
    v = cross(w, u)                (image up)

and a viewport placed ``focus_dist`` in front of the lens. Primary rays start
at a random point of a disk of radius ``aperture / 2`` and pass through the
viewport point for their pixel coordinates, so geometry on the focus plane is
sharp and everything else blurs. With ``aperture == 0`` every ray starts at
``lookfrom`` and the camera is a pinhole.

The derived frame lives in Taichi fields written by ``setup_camera`` and read
by ``get_ray`` inside kernels; one camera is active at a time.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>> # In a kernel: ray = get_ray(0.5, 0.5, stream) goes through the center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray, random_in_unit_disk

# Smallest |cross(vup, w)| accepted before vup counts as collinear
_COLLINEAR_EPSILON = 1e-12


@dataclass
class ThinLensCamera:
    """Camera parameters, validated on construction.

    Attributes:
        lookfrom: Lens center in world space.
        lookat: Point the camera aims at.
        vup: World direction that should appear as up.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width over height.
        aperture: Lens diameter; 0 for a pinhole.
        focus_dist: Distance from the lens to the sharp plane.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    aperture: float = 0.0
    focus_dist: float = 1.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ValueError for parameters that cannot define a camera.

        Every comparison is written so that NaN fails it.
        """
        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        for name, vector in (("lookfrom", lookfrom), ("lookat", lookat), ("vup", vup)):
            if not np.isfinite(vector).all():
                raise ValueError(f"{name} = {tuple(vector)} must be finite")

        view = lookfrom - lookat
        if not np.any(view):
            raise ValueError(f"lookfrom and lookat are the same point: {self.lookfrom}")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if not 0.0 < self.aspect_ratio < math.inf:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive and finite")
        if not 0.0 <= self.aperture < math.inf:
            raise ValueError(f"aperture = {self.aperture} must be non-negative and finite")
        if not 0.0 < self.focus_dist < math.inf:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive and finite")
        if not np.any(vup):
            raise ValueError("vup must be a non-zero vector")

        w = view / np.linalg.norm(view)
        side = np.cross(vup / np.linalg.norm(vup), w)
        if np.linalg.norm(side) < _COLLINEAR_EPSILON:
            raise ValueError(f"vup {self.vup} is collinear with the view direction")

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0


# =============================================================================
# Active camera state
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_w = ti.Vector.field(3, dtype=ti.f64, shape=())

# Viewport on the focus plane: full width, full height, lower-left corner
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f64, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f64, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f64, shape=())

_lens_radius = ti.field(dtype=ti.f64, shape=())


def setup_camera(camera: ThinLensCamera) -> None:
    """Make ``camera`` the one ``get_ray`` uses.

    Call from Python scope before launching a render kernel.

    Raises:
        ValueError: If the camera parameters are degenerate.
    """
    camera.validate()

    half_height = math.tan(math.radians(camera.vfov) / 2.0)
    viewport_height = 2.0 * half_height
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)
    v = np.cross(w, u)

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius


@ti.func
def get_ray(s: ti.f64, t: ti.f64, stream: ti.i32) -> Ray:
    """Primary ray for image coordinates (s, t).

    Args:
        s: 0 at the left edge of the image, 1 at the right edge.
        t: 0 at the bottom edge, 1 at the top edge.
        stream: RNG stream for the lens sample.

    Returns:
        Ray from a point on the lens toward the matching focus-plane point.
        The direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )
    return make_ray(origin, direction)


# =============================================================================
# Python-side inspection
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Snapshot of the active camera's frame, viewport and lens radius."""

    def _triple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _triple(_camera_origin),
        "u": _triple(_camera_u),
        "v": _triple(_camera_v),
        "w": _triple(_camera_w),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }


# Result slots for Python-side ray queries
_query_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _generate_ray(s: ti.f64, t: ti.f64, stream: ti.i32):
    ray = get_ray(s, t, stream)
    _query_origin[None] = ray.origin
    _query_direction[None] = ray.direction


def generate_ray(
    s: float, t: float, stream: int = 0
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Python-side wrapper around ``get_ray`` for the active camera.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        stream: The RNG stream used for the lens sample.

    Returns:
        Tuple of (origin, direction).
    """
    _generate_ray(s, t, stream)
    o = _query_origin[None]
    d = _query_direction[None]
    return (
        (float(o[0]), float(o[1]), float(o[2])),
        (float(d[0]), float(d[1]), float(d[2])),
    )
