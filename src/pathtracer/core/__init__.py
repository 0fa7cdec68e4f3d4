"""Ray math, random numbers, the path-tracing kernel and its driver.

``ray`` and ``rng`` are re-exported here. ``integrator`` and ``renderer``
import the scene and camera packages, which import this package, so they
have to be imported by their full module path.
"""

from .ray import (
    MAX_REJECTION_ATTEMPTS,
    NEAR_ZERO_EPSILON,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "MAX_REJECTION_ATTEMPTS",
    "NEAR_ZERO_EPSILON",
]
