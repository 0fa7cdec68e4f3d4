"""Rays and the small double-precision vector helpers the kernels share.

Directions are allowed to have any non-zero length: the sphere test divides
by the squared direction length, and scattered directions go straight into
the next ray without normalizing. Everything here is a ``@ti.func`` apart
from the constants.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> # In a kernel:
    >>> # ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
    >>> # ray_at(ray, 5.0) is (0, 0, -5)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_real

vec3 = ti.types.vector(3, ti.f64)

# Rejection sampling gives up after this many candidates. With a uniform
# source the chance of getting there is below 1e-30.
MAX_REJECTION_ATTEMPTS = 100

# Components below this magnitude count as zero (degenerate scatter direction)
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """Origin and direction; the direction need not be unit length."""

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """``origin + t * direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector helpers
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f64:
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def length(v: vec3) -> ti.f64:
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """v scaled to length 1. v must not be zero."""
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 when every component of v is within NEAR_ZERO_EPSILON of zero."""
    eps = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < eps and ti.abs(v.y) < eps and ti.abs(v.z) < eps


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Computes v - 2 * dot(v, n) * n. The result has the same length as v
    and dot(result, n) == -dot(v, n).

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal. Must be unit length.

    Returns:
        The reflected direction.
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit direction through a surface with Snell's law.

    The caller checks for total internal reflection first; this function
    does not. The perpendicular part of the refracted ray is
    etai_over_etat * (uv + cos_theta * n) and the parallel part is
    -sqrt(max(0, 1 - |perp|^2)) * n.

    Args:
        uv: The incoming direction. Must be unit length and point into the
            surface.
        n: The surface normal facing the incoming ray. Must be unit length.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction. Unit length whenever refraction is possible.
    """
    cos_theta = tm.min(dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(tm.max(0.0, 1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - ref_idx) / (1 + ref_idx))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Sampling
# =============================================================================


@ti.func
def random_vec3(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> vec3:
    """Three independent uniform draws in [lo, hi)."""
    x = lo + (hi - lo) * random_real(stream)
    y = lo + (hi - lo) * random_real(stream)
    z = lo + (hi - lo) * random_real(stream)
    return vec3(x, y, z)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Uniform random point strictly inside the unit ball.

    Rejection-samples the cube [-1, 1]^3 until a point with squared length
    below one turns up.

    Args:
        stream: The RNG stream to draw from.

    Returns:
        A random point with length < 1.
    """
    p = random_vec3(stream, -1.0, 1.0)
    attempts = 1
    while length_squared(p) >= 1.0 and attempts < MAX_REJECTION_ATTEMPTS:
        p = random_vec3(stream, -1.0, 1.0)
        attempts += 1
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a unit vector uniformly distributed on the sphere.

    Picks an azimuth a in [0, 2*pi) and a height z in [-1, 1); the point
    (r cos a, r sin a, z) with r = sqrt(1 - z^2) is uniform on the sphere.
    Adding it to a surface normal gives the cosine distribution of a true
    Lambertian reflector.

    Args:
        stream: The RNG stream to draw from.

    Returns:
        A random unit vector.
    """
    a = 2.0 * tm.pi * random_real(stream)
    z = -1.0 + 2.0 * random_real(stream)
    r = ti.sqrt(1.0 - z * z)
    return vec3(r * ti.cos(a), r * ti.sin(a), z)


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Uniform random point strictly inside the unit disk at z = 0.

    Used by the thin-lens camera to sample the aperture.

    Args:
        stream: The RNG stream to draw from.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(-1.0 + 2.0 * random_real(stream), -1.0 + 2.0 * random_real(stream), 0.0)
    attempts = 1
    while p.x * p.x + p.y * p.y >= 1.0 and attempts < MAX_REJECTION_ATTEMPTS:
        p = vec3(-1.0 + 2.0 * random_real(stream), -1.0 + 2.0 * random_real(stream), 0.0)
        attempts += 1
    return p
