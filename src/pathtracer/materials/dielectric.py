"""Clear glass-like material.

Each hit either reflects or refracts. Reflection is forced when Snell's law
has no solution (total internal reflection) and otherwise happens with the
probability given by Schlick's approximation; the rest of the time the ray
bends through the surface. Nothing is absorbed, so the attenuation is white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ir, incident_dir, normal, front_face, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    dot,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from pathtracer.core.rng import random_real


@ti.func
def _refraction_ratio(ir: ti.f64, front_face: ti.i32) -> ti.f64:
    """eta / eta': 1/ir when entering the material, ir when leaving it."""
    ratio = ir
    if front_face == 1:
        ratio = 1.0 / ir
    return ratio


@ti.func
def _cos_theta(unit_direction: vec3, normal: vec3) -> ti.f64:
    return tm.min(dot(-unit_direction, normal), 1.0)


@ti.func
def scatter_dielectric(
    ir: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Reflect or refract a ray at a glass surface.

    Args:
        ir: Refractive index of the material.
        incident_direction: Direction of the arriving ray, any length.
        normal: Unit normal on the side the ray came from.
        front_face: 1 when the ray arrives from outside, 0 from inside.
        stream: RNG stream of the pixel being rendered.

    Returns:
        ``(direction, attenuation, did_scatter)`` with a white attenuation
        and ``did_scatter`` always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    refraction_ratio = _refraction_ratio(ir, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = _cos_theta(unit_direction, normal)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    must_reflect = 0
    if refraction_ratio * sin_theta > 1.0:
        must_reflect = 1
    elif schlick_reflectance(cos_theta, refraction_ratio) > random_real(stream):
        must_reflect = 1

    direction = vec3(0.0, 0.0, 0.0)
    if must_reflect == 1:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, refraction_ratio)

    return direction, attenuation, 1


@ti.func
def cannot_refract(
    ir: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """1 when the ray is totally internally reflected, else 0.

    Takes the same geometry arguments as ``scatter_dielectric``.
    """
    refraction_ratio = _refraction_ratio(ir, front_face)
    cos_theta = _cos_theta(unit_vector(incident_direction), normal)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    result = 0
    if refraction_ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def dielectric_reflectance(
    ir: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f64:
    """Probability that ``scatter_dielectric`` reflects when refraction is possible."""
    refraction_ratio = _refraction_ratio(ir, front_face)
    cos_theta = _cos_theta(unit_vector(incident_direction), normal)
    return schlick_reflectance(cos_theta, refraction_ratio)


# =============================================================================
# Registry
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_irs = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ir: float = 1.5) -> int:
    """Store a glass material and return its slot in the registry.

    Args:
        ir: Refractive index relative to air (water 1.33, glass 1.5,
            diamond 2.4).

    Raises:
        ValueError: If ``ir`` is zero, negative or NaN.
        RuntimeError: If the registry is full.
    """
    if not ir > 0.0:
        raise ValueError(f"Refractive index must be positive, got {ir}")

    slot = num_dielectric_materials[None]
    if slot >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_irs[slot] = float(ir)
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ir(material_idx: ti.i32) -> ti.f64:
    return dielectric_irs[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """``scatter_dielectric`` with the index read from registry slot ``material_idx``."""
    return scatter_dielectric(
        get_dielectric_ir(material_idx),
        incident_direction,
        normal,
        front_face,
        stream,
    )
