"""Sphere primitive with analytic ray-sphere intersection.

The ray-sphere intersection is found by solving:
    |ray_origin + t * ray_direction - center|^2 = radius^2

which, with oc = ray_origin - center, becomes a*t^2 + 2*half_b*t + c = 0 with
    a = |direction|^2
    half_b = dot(oc, direction)
    c = |oc|^2 - radius^2

The near root is tried first, then the far root. Both have to lie strictly
inside (t_min, t_max).

A negative radius leaves the surface unchanged but turns the outward normal
inward. Nesting a negative-radius sphere inside a positive one of the same
dielectric material models a hollow glass shell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.ray import dot, vec3


@ti.dataclass
class Sphere:
    """Center and signed radius; a negative radius points the normal inward."""

    center: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Where and how a ray met a sphere.

    Attributes:
        hit: 1 on a hit, 0 on a miss. The other fields are meaningless on a
            miss.
        t: Ray parameter of the hit.
        point: ``origin + t * direction``.
        normal: Unit normal flipped to face the arriving ray.
        front_face: 1 when the ray arrived from outside the sphere.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Turn an outward normal so it opposes the ray.

    Returns:
        ``(front_face, normal)``; ``front_face`` is 1 when the outward normal
        already opposed the ray.
    """
    front_face = 0
    normal = -outward_normal
    if dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Intersect a ray with one sphere.

    Args:
        ray_origin: Ray origin.
        ray_direction: Ray direction, not necessarily unit length.
        sphere: Sphere to test.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        HitRecord of the nearest root inside the interval.
    """
    oc = ray_origin - sphere.center
    a = dot(ray_direction, ray_direction)
    half_b = dot(oc, ray_direction)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi needs every branch result declared up front
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = t > t_min and t < t_max
        if not valid:
            t = (-half_b + root) / a
            valid = t > t_min and t < t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            # Dividing by the signed radius gives a unit vector, inward for r < 0
            outward_normal = (hit_point - sphere.center) / sphere.radius
            is_front_face, hit_normal = set_face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
