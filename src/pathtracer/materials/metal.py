"""Reflective metal material.

The incoming direction is mirrored about the normal, ``R = I - 2(I . N)N``,
then shifted by ``fuzz * random_in_unit_sphere()`` to blur the reflection.
A shifted ray that ends up pointing into the surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti

from pathtracer.core.ray import dot, random_in_unit_sphere, reflect, unit_vector, vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: RGB attenuation.
        fuzz: Blur radius.
        incident_direction: Direction of the arriving ray, any length.
        normal: Unit normal on the side the ray came from.
        stream: RNG stream of the pixel being rendered.

    Returns:
        ``(direction, attenuation, did_scatter)``; ``did_scatter`` is 0 when
        the blurred direction goes below the surface.
    """
    mirrored = reflect(unit_vector(incident_direction), normal)
    direction = mirrored + fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    if dot(direction, normal) > 0.0:
        did_scatter = 1

    return direction, albedo, did_scatter


# =============================================================================
# Registry
# =============================================================================

MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Store a metal material and return its slot in the registry.

    Fuzz above 1 is stored as 1.

    Raises:
        ValueError: If an albedo channel is outside [0, 1] or fuzz is negative or NaN.
        RuntimeError: If the registry is full.
    """
    for channel, value in zip("RGB", albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Albedo {channel} = {value} is outside [0, 1]")

    if not fuzz >= 0.0:
        raise ValueError(f"Fuzz must not be negative, got {fuzz}")
    fuzz = min(fuzz, 1.0)

    slot = num_metal_materials[None]
    if slot >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[slot] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    metal_fuzzes[slot] = float(fuzz)
    num_metal_materials[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


def get_metal_fuzz_value(material_idx: int) -> float:
    """Read back the fuzz actually stored for a slot, after clamping."""
    return float(metal_fuzzes[material_idx])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f64:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """``scatter_metal`` with albedo and fuzz read from registry slot ``material_idx``."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        normal,
        stream,
    )
