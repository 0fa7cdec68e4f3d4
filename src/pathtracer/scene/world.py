"""The hittable list: every sphere of the scene and the closest-hit query.

The world stores its spheres in Taichi fields so the rendering kernels can
read them without synchronisation. Each sphere carries the unified material
ID assigned by the scene manager.

``hit_world`` walks all spheres and shrinks the upper bound of the search
interval every time a sphere is hit, so the record it returns belongs to the
closest surface in (t_min, t_max). The result does not depend on insertion
order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use hit_world within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.ray import vec3
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere


@ti.dataclass
class WorldHitRecord:
    """Closest hit of a ray against the whole world.

    Attributes:
        hit: 1 when some sphere was hit, 0 otherwise.
        t: Ray parameter of the hit.
        point: Hit position.
        normal: Unit normal on the side the ray came from.
        front_face: 1 when the ray arrived from outside the sphere.
        material_id: Shared material ID of the sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

# One entry per sphere, first num_spheres entries valid
sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f64, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_world() -> None:
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere and return its slot.

    The material ID is stored as given; ``SceneManager.add_sphere`` is the
    place that checks it refers to a real material.

    Raises:
        ValueError: If the radius is zero or NaN.
        RuntimeError: If MAX_SPHERES spheres already exist.
    """
    if not (radius > 0.0 or radius < 0.0):
        raise ValueError(f"Sphere radius must be non-zero, got {radius}")

    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[slot] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[slot] = float(radius)
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return slot


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def _to_world_hit_record(rec: HitRecord, material_id: ti.i32) -> WorldHitRecord:
    return WorldHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> WorldHitRecord:
    return WorldHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_world(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
) -> WorldHitRecord:
    """Find the nearest sphere a ray hits with t strictly inside (t_min, t_max).

    Returns:
        The WorldHitRecord of that hit, or a record with ``hit == 0`` and
        ``material_id == -1``.
    """
    closest_so_far = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = _to_world_hit_record(rec, sphere_material_ids[i])

    return result


# Result slots for Python-side queries
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f64, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_closest(origin: vec3, direction: vec3, t_min: ti.f64, t_max: ti.f64):
    rec = hit_world(origin, direction, t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_id[None] = rec.material_id


def closest_hit(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float = 0.001,
    t_max: float = float("inf"),
) -> dict | None:
    """Query the closest hit from Python.

    Args:
        origin: The ray origin.
        direction: The ray direction.
        t_min: Lower bound of the search interval (exclusive).
        t_max: Upper bound of the search interval (exclusive).

    Returns:
        None on a miss, otherwise a dictionary with t, point, normal,
        front_face and material_id.
    """
    _trace_closest(
        vec3(float(origin[0]), float(origin[1]), float(origin[2])),
        vec3(float(direction[0]), float(direction[1]), float(direction[2])),
        t_min,
        t_max,
    )
    if _query_hit[None] == 0:
        return None
    p = _query_point[None]
    n = _query_normal[None]
    return {
        "t": float(_query_t[None]),
        "point": (float(p[0]), float(p[1]), float(p[2])),
        "normal": (float(n[0]), float(n[1]), float(n[2])),
        "front_face": bool(_query_front_face[None]),
        "material_id": int(_query_material_id[None]),
    }
