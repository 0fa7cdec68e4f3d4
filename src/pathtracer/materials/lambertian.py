"""Diffuse material.

A diffuse hit bounces toward ``normal + random_unit_vector()``. Shifting a
uniform point on the unit sphere by the normal gives directions with a
cos(theta) density about the normal, which is exactly Lambert's law, so no
extra weighting is needed and the attenuation is the albedo itself.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti

from pathtracer.core.ray import near_zero, random_unit_vector, vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Bounce a ray off a diffuse surface.

    Args:
        albedo: RGB attenuation.
        normal: Unit normal at the hit, on the side the ray came from.
        stream: RNG stream of the pixel being rendered.

    Returns:
        ``(direction, attenuation, did_scatter)``. The direction is not
        normalized and ``did_scatter`` is always 1.
    """
    direction = normal + random_unit_vector(stream)

    # The random vector can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal

    return direction, albedo, 1


# =============================================================================
# Registry
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Empty the registry. Stale albedos are overwritten by later adds."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse material and return its slot in the registry.

    Raises:
        ValueError: If an albedo channel is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    for channel, value in zip("RGB", albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Albedo {channel} = {value} is outside [0, 1]")

    slot = num_lambertian_materials[None]
    if slot >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[slot] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """``scatter_lambertian`` with the albedo read from registry slot ``material_idx``."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), normal, stream)
