"""Preset sphere scenes.

This module provides factory functions for two standard scenes:

- The three-sphere scene: a large ground sphere, a diffuse sphere in the
  middle, a hollow glass sphere on the left and a metal sphere on the right.
- The random scene: a grid of small randomly placed spheres (mostly diffuse,
  some metal, a few glass) around three large feature spheres, viewed from
  far away with a narrow field of view and a slight defocus blur.

Each factory returns ``(scene, camera)``. Sphere placement in the random scene
uses NumPy's generator and does not touch the render RNG.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.presets import create_random_scene
    >>> scene, camera = create_random_scene(aspect_ratio=3.0 / 2.0, seed=1)
"""

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Three-Sphere Scene
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
RIGHT_METAL_ALBEDO = (0.8, 0.6, 0.2)
GLASS_IR = 1.5


def create_three_sphere_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-sphere scene.

    The left sphere is a hollow glass shell: an outer sphere of radius 0.5
    and an inner sphere of radius -0.45 sharing the same dielectric.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera). The camera sits at the origin looking down
        -z with a 90 degree vertical field of view.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IR)
    metal = scene.add_metal_material(RIGHT_METAL_ALBEDO, fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


# =============================================================================
# Random Scene
# =============================================================================

# Grid extent of the small spheres: a, b in [-GRID_HALF_SIZE, GRID_HALF_SIZE)
GRID_HALF_SIZE = 11
SMALL_RADIUS = 0.2

# Material choice thresholds for the small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15

# Small spheres closer than this to (4, 0.2, 0) are skipped
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE_RADIUS = 0.9


def create_random_scene(
    aspect_ratio: float = 3.0 / 2.0,
    seed: int | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random scene of many small spheres.

    Small spheres: 80% diffuse with albedo ``random * random``, 15% metal
    with albedo in [0.5, 1) and fuzz in [0, 0.5), 5% glass.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.
        seed: Seed for sphere placement. None draws fresh entropy.

    Returns:
        Tuple of (scene, camera). The camera sits at (13, 2, 3) looking at the
        origin with vfov 20, aperture 0.1 and focus distance 10.
    """
    generator = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-GRID_HALF_SIZE, GRID_HALF_SIZE):
        for b in range(-GRID_HALF_SIZE, GRID_HALF_SIZE):
            choose_mat = generator.random()
            center = np.array(
                [a + 0.9 * generator.random(), SMALL_RADIUS, b + 0.9 * generator.random()]
            )
            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE_RADIUS:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = generator.random(3) * generator.random(3)
                scene.add_lambertian_sphere(position, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = generator.uniform(0.5, 1.0, size=3)
                fuzz = generator.uniform(0.0, 0.5)
                scene.add_metal_sphere(position, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(position, SMALL_RADIUS, GLASS_IR)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera
