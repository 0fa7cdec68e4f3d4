"""Surface materials a sphere can be made of.

Three models are available: ``lambertian`` (matte), ``metal`` (mirror with
optional fuzz) and ``dielectric`` (clear glass using Schlick's reflectance).
Each module offers a ``scatter_*`` Taichi function returning
``(direction, attenuation, did_scatter)`` and a field registry of parameters
addressed by a slot number. ``scene.manager`` maps shared material IDs onto
these slots.
"""

# Glass
from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    dielectric_reflectance,
    get_dielectric_ir,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)

# Diffuse
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)

# Metal
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_fuzz_value,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_fuzz_value",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ir",
    "cannot_refract",
    "dielectric_reflectance",
]
