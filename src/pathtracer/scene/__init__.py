"""Scene contents: the sphere list, the material ID table and preset scenes.

``world`` holds the spheres and answers closest-hit queries, ``manager``
builds scenes and assigns shared material IDs, and ``presets`` constructs
the demo scenes together with matching cameras.
"""

from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import create_random_scene, create_three_sphere_scene
from .world import (
    MAX_SPHERES,
    WorldHitRecord,
    add_sphere,
    clear_world,
    closest_hit,
    get_sphere_count,
    hit_world,
)

__all__ = [
    # world
    "WorldHitRecord",
    "add_sphere",
    "clear_world",
    "closest_hit",
    "get_sphere_count",
    "hit_world",
    "MAX_SPHERES",
    # manager
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # presets
    "create_three_sphere_scene",
    "create_random_scene",
]
