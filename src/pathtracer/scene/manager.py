"""Scene building: spheres, the materials they carry, and their shared IDs.

A scene is a list of spheres, each pointing at one material. Materials of all
three kinds share a single ID sequence (0, 1, 2, ... in creation order) so a
sphere can hold one integer regardless of what it is made of. Behind that ID
each material lives in the registry of its own kind; two small lookup fields
translate the shared ID into ``(kind, index within that kind)`` for the
integrator's dispatch.

The Taichi fields behind the world and the material registries are shared by
every SceneManager. ``activate()`` uploads one manager's spheres and
materials again, which the renderer does before drawing a scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ir=1.5)
    >>> scene.add_sphere(center=(-1, 0, -1), radius=0.5, material_id=glass)
    >>> scene.add_sphere(center=(-1, 0, -1), radius=-0.45, material_id=glass)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_fuzz_value,
)
from pathtracer.scene.world import (
    MAX_SPHERES,
    add_sphere,
    clear_world,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Kind of a material; selects the scatter function in the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Upper bound on material IDs in one scene
MAX_MATERIALS = 1024

# Shared ID -> MaterialType value
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# Shared ID -> slot in that kind's registry. The third metal created is slot 2
# of the metal registry whatever its shared ID.
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Forget every shared material ID."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Look up the kind of a material inside a kernel.

    Args:
        material_id: A shared material ID.

    Returns:
        The MaterialType value, or -1 if no material has this ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Look up where a material sits in its kind's registry.

    Args:
        material_id: A shared material ID.

    Returns:
        The registry slot (e.g. the argument for ``get_metal_albedo``), or -1
        if no material has this ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """A material as the scene remembers it.

    Attributes:
        material_id: Shared ID handed out when the material was added.
        material_type: Which registry the material lives in.
        type_index: Slot in that registry.
        params: Parameters after validation; metal fuzz is already clamped.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """A sphere as the scene remembers it.

    Attributes:
        sphere_index: Slot in the world's sphere fields.
        center: Sphere center.
        radius: Signed radius; negative makes the normals point inward.
        material_id: Shared ID of the sphere's material.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene, ready for JSON.

    Attributes:
        materials: One dict per material with a ``type`` key and its params.
        spheres: One dict per sphere with ``center``, ``radius`` and
            ``material_id``.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds a scene of spheres and hands out shared material IDs.

    Every ``add_*_material`` call validates its parameters through the
    material module, stores the material in that module's registry and
    returns the next shared ID. Spheres are then added with one of those IDs.
    A Python-side copy of everything is kept so the scene can be exported or
    uploaded again with ``activate()``.

    Attributes:
        materials: MaterialInfo per shared ID, in ID order.
        spheres: SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_fields(self) -> None:
        clear_world()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

    def _clear_all(self) -> None:
        self._clear_fields()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Remove every sphere and material, here and in the Taichi fields."""
        self._clear_all()

    # =========================================================================
    # Materials
    # =========================================================================

    def _upload_material(self, material_type: MaterialType, params: dict[str, Any]) -> tuple[int, int]:
        """Store a material in its registry and record its shared ID.

        Returns:
            ``(material_id, type_index)``.
        """
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        if material_type == MaterialType.LAMBERTIAN:
            type_index = add_lambertian_material(params["albedo"])
        elif material_type == MaterialType.METAL:
            type_index = add_metal_material(params["albedo"], params["fuzz"])
        else:
            type_index = add_dielectric_material(params["ir"])

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1
        return material_id, type_index

    def _register_material(self, material_type: MaterialType, params: dict[str, Any]) -> int:
        material_id, type_index = self._upload_material(material_type, params)
        if material_type == MaterialType.METAL:
            params["fuzz"] = get_metal_fuzz_value(type_index)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
    ) -> int:
        """Register a diffuse material.

        Args:
            albedo: RGB attenuation, each channel in [0, 1].

        Returns:
            The new shared material ID.

        Raises:
            RuntimeError: If MAX_MATERIALS materials already exist.
            ValueError: If a channel is outside [0, 1].
        """
        return self._register_material(MaterialType.LAMBERTIAN, {"albedo": _as_triple(albedo)})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a reflective material.

        Args:
            albedo: RGB attenuation, each channel in [0, 1].
            fuzz: Radius of the random offset added to the mirror direction.
                0 is a perfect mirror; anything above 1 is stored as 1.

        Returns:
            The new shared material ID.

        Raises:
            RuntimeError: If MAX_MATERIALS materials already exist.
            ValueError: If a channel is outside [0, 1] or fuzz is negative.
        """
        return self._register_material(
            MaterialType.METAL, {"albedo": _as_triple(albedo), "fuzz": float(fuzz)}
        )

    def add_dielectric_material(
        self,
        ir: float = 1.5,
    ) -> int:
        """Register a clear refracting material.

        Args:
            ir: Refractive index relative to the surrounding air, e.g. 1.33
                for water or 1.5 for glass.

        Returns:
            The new shared material ID.

        Raises:
            RuntimeError: If MAX_MATERIALS materials already exist.
            ValueError: If ir is not positive.
        """
        return self._register_material(MaterialType.DIELECTRIC, {"ir": float(ir)})

    def get_material_count(self) -> int:
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the stored MaterialInfo, or None for an unused ID."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of the ``get_material_type`` Taichi function.

        Returns:
            The MaterialType, or None for an unused ID.
        """
        info = self.get_material_info(material_id)
        if info is None:
            return None
        return info.material_type

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere made of an already registered material.

        Args:
            center: Sphere center (x, y, z).
            radius: Signed radius. Pair a positive and a slightly smaller
                negative sphere of the same glass to build a hollow bubble.
            material_id: Shared ID returned by one of the ``add_*_material``
                methods.

        Returns:
            Slot of the sphere in the world.

        Raises:
            RuntimeError: If the world is full.
            ValueError: If the material ID is unknown or the radius is zero.
        """
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center)
        sphere_index = add_sphere(center, float(radius), material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Register a diffuse material and place one sphere made of it.

        Returns:
            ``(sphere_index, material_id)``.
        """
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Metal version of ``add_lambertian_sphere``."""
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ir: float = 1.5,
    ) -> tuple[int, int]:
        """Glass version of ``add_lambertian_sphere``."""
        material_id = self.add_dielectric_material(ir)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    # =========================================================================
    # Field ownership
    # =========================================================================

    def is_active(self) -> bool:
        """True when the shared fields hold as many spheres and materials as this scene."""
        return (
            get_sphere_count() == len(self.spheres)
            and int(num_materials[None]) == len(self.materials)
        )

    def activate(self) -> None:
        """Upload this scene's materials and spheres into the Taichi fields.

        Another SceneManager may have overwritten the shared fields since this
        scene was built. Activation clears them and adds every material and
        sphere again in their original order, so material IDs and sphere
        indices are unchanged.
        """
        self._clear_fields()
        for info in self.materials:
            _, info.type_index = self._upload_material(info.material_type, info.params)
        for sphere in self.spheres:
            add_sphere(sphere.center, sphere.radius, sphere.material_id)
        logger.debug(
            "Activated scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    # =========================================================================
    # Import / export
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Describe the scene as plain lists and dicts."""
        config = SceneConfig()

        for mat in self.materials:
            entry: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(entry)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the one described by ``config``.

        Materials are added in list order, so a sphere's ``material_id`` is
        the index of its material in ``config.materials``.

        Raises:
            ValueError: For an unknown material type or invalid parameters.
        """
        self.clear()

        for entry in config.materials:
            kind = str(entry.get("type", "")).lower()
            if kind == "lambertian":
                self.add_lambertian_material(_as_triple(entry.get("albedo", [0.5, 0.5, 0.5])))
            elif kind == "metal":
                self.add_metal_material(
                    _as_triple(entry.get("albedo", [0.8, 0.8, 0.8])),
                    entry.get("fuzz", 0.0),
                )
            elif kind == "dielectric":
                self.add_dielectric_material(entry.get("ir", 1.5))
            else:
                raise ValueError(f"Unknown material type: {kind}")

        for entry in config.spheres:
            self.add_sphere(
                _as_triple(entry.get("center", [0, 0, 0])),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene written by ``to_dict`` (e.g. after a JSON round trip)."""
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
            )
        )

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
