"""Radiance estimation and the per-pixel sampling kernel.

A camera ray bounces from sphere to sphere, each material choosing the next
direction and tinting the path, until it leaves the scene and picks up the
sky color or is cut off after ``max_depth`` hits. The sky gradient is the
only light in the scene, so a path that is cut off contributes black.

``ray_color`` keeps the running product of attenuations in a loop rather
than recursing, so kernel stack use does not depend on ``max_depth``. Every
intersection query starts at ``T_MIN`` to keep scattered rays from hitting
the surface they leave.

``render_rows`` averages ``samples_per_pixel`` jittered rays per pixel and
converts the mean to 8-bit channels with a gamma of 2.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> import numpy as np
    >>> from pathtracer.core.integrator import render_rows
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>>
    >>> setup_camera(ThinLensCamera(aspect_ratio=4.0 / 3.0))
    >>> band = np.zeros((3, 4, 3), dtype=np.int32)
    >>> render_rows(band, 2, 4, 3, 1, 1)  # all three rows of a 4x3 image
"""

import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.ray import unit_vector, vec3
from pathtracer.core.rng import begin_sample, bind_stream, random_real
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from pathtracer.scene.world import hit_world

ivec3 = ti.types.vector(3, ti.i32)

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for ray intersection. A t_min of 0 re-hits the surface a
# scattered ray starts on.
T_MIN = 0.001
T_MAX = float("inf")

# Sky gradient endpoints: horizon (t = 0) and zenith (t = 1)
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# Largest tone-mapped channel value before scaling to 8 bits
MAX_CHANNEL = 0.999


# =============================================================================
# Background
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Radiance arriving from the sky along a direction.

    Blends linearly from white at the horizon to sky blue straight up,
    based on the height of the unit direction.

    Args:
        direction: The ray direction (any non-zero length).

    Returns:
        The background color.
    """
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Call the scatter function of the material behind a shared ID.

    Args:
        material_id: Shared material ID from the hit record.
        incident_direction: Direction of the arriving ray.
        normal: Unit normal facing the arriving ray.
        front_face: 1 when the ray arrived from outside the sphere.
        stream: RNG stream of the pixel being traced.

    Returns:
        ``(direction, attenuation, did_scatter)`` from the material, or
        ``did_scatter == 0`` for an ID no material owns.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Unknown material IDs absorb the ray
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Each hit multiplies the throughput by the material's attenuation and
    continues from the hit point along the scattered direction. The path
    ends when the ray escapes (background times throughput), is absorbed
    (black) or has used up ``max_depth`` hits (black).

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        max_depth: Maximum number of surface interactions. 0 gives black.
        stream: The RNG stream of the pixel being traced.

    Returns:
        The estimated radiance (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = hit_world(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return radiance


@ti.func
def tone_map(pixel_sum: vec3, samples_per_pixel: ti.i32) -> ivec3:
    """Convert a sum of samples into 8-bit channel values.

    Averages the samples, applies gamma 2 (square root), clamps each channel
    to [0, 0.999] and scales by 256 with truncation.

    Args:
        pixel_sum: Sum of the radiance samples of one pixel.
        samples_per_pixel: Number of samples in the sum.

    Returns:
        The (R, G, B) integers, each in [0, 255].
    """
    scale = 1.0 / ti.cast(samples_per_pixel, ti.f64)
    result = ivec3(0, 0, 0)
    for c in ti.static(range(3)):
        value = tm.clamp(ti.sqrt(scale * pixel_sum[c]), 0.0, MAX_CHANNEL)
        result[c] = ti.cast(256.0 * value, ti.i32)
    return result


@ti.func
def sample_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    """Sum the jittered radiance samples of one pixel.

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples to take.
        max_depth: Maximum scatter depth of each path.
        stream: RNG slot owned by this pixel for the duration of the kernel.
            It is bound to the pixel key, so the draws do not depend on
            which slot is used.

    Returns:
        The sum (not the average) of the sample radiances.
    """
    bind_stream(stream, ti.cast(j, ti.u32) * ti.cast(width, ti.u32) + ti.cast(i, ti.u32))
    # Single-column or single-row images sample the whole viewport edge
    s_span = ti.cast(ti.max(width - 1, 1), ti.f64)
    t_span = ti.cast(ti.max(height - 1, 1), ti.f64)

    pixel_sum = vec3(0.0, 0.0, 0.0)
    for sample in range(samples_per_pixel):
        begin_sample(stream, sample)
        s = (ti.cast(i, ti.f64) + random_real(stream)) / s_span
        t = (ti.cast(j, ti.f64) + random_real(stream)) / t_span
        ray = get_ray(s, t, stream)
        color = ray_color(ray.origin, ray.direction, max_depth, stream)

        # Drop numerically broken samples
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        pixel_sum += color
    return pixel_sum


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def render_rows(
    out: ti.types.ndarray(dtype=ti.i32, ndim=3),
    row_top: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render a band of scanlines into an integer array.

    Row ``r`` of the band is image row ``row_top - r`` (rows count up from
    the bottom), so the band is stored in top-to-bottom emission order.
    Pixels are rendered in parallel. Pixel (i, r) of the band uses RNG slot
    ``r * width + i``, so the band may hold at most ``rng.MAX_STREAMS`` pixels.

    Args:
        out: Array of shape (band_rows, width, 3) receiving 8-bit values.
        row_top: Image row index of the first (highest) row of the band.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples per pixel.
        max_depth: Maximum scatter depth of each path.
    """
    for r, i in ti.ndrange(out.shape[0], width):
        j = row_top - r
        stream = r * width + i
        pixel_sum = sample_pixel(i, j, width, height, samples_per_pixel, max_depth, stream)
        rgb = tone_map(pixel_sum, samples_per_pixel)
        for c in ti.static(range(3)):
            out[r, i, c] = rgb[c]


# =============================================================================
# Python-side Queries
# =============================================================================

_trace_result = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32):
    _trace_result[None] = ray_color(origin, direction, max_depth, stream)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along one ray from Python.

    Uses the active world and material registries. Useful for testing the
    estimator without the camera.

    Args:
        origin: The ray origin.
        direction: The ray direction.
        max_depth: Maximum scatter depth.
        stream: The RNG stream to draw from.

    Returns:
        Tuple of (R, G, B) radiance.
    """
    _trace_ray_kernel(
        vec3(float(origin[0]), float(origin[1]), float(origin[2])),
        vec3(float(direction[0]), float(direction[1]), float(direction[2])),
        max_depth,
        stream,
    )
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))
