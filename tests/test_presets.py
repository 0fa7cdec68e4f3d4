"""Unit tests for the preset scenes."""

import numpy as np
import pytest


class TestThreeSphereScene:
    """Tests for create_three_sphere_scene."""

    def test_layout(self):
        """Test the five spheres and four materials of the scene."""
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.presets import create_three_sphere_scene

        scene, camera = create_three_sphere_scene()
        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4

        radii = [sphere.radius for sphere in scene.spheres]
        assert radii == [100.0, 0.5, 0.5, -0.45, 0.5]
        glass_outer, glass_inner = scene.spheres[2], scene.spheres[3]
        assert glass_outer.material_id == glass_inner.material_id
        assert scene.get_material_type_python(glass_outer.material_id) == MaterialType.DIELECTRIC

        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.vfov == 90.0
        assert camera.aspect_ratio == pytest.approx(16.0 / 9.0)

    def test_center_ray_hits_center_sphere(self):
        """Test the view axis meets the diffuse center sphere at t = 0.5."""
        from pathtracer.scene.presets import create_three_sphere_scene
        from pathtracer.scene.world import closest_hit

        scene, _ = create_three_sphere_scene()
        rec = closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert rec["t"] == pytest.approx(0.5)
        assert rec["material_id"] == scene.spheres[1].material_id


class TestRandomScene:
    """Tests for create_random_scene."""

    def test_seeded_placement_is_reproducible(self):
        """Test the same seed gives the same scene."""
        from pathtracer.scene.presets import create_random_scene

        first, _ = create_random_scene(seed=4)
        data = first.to_dict()
        second, _ = create_random_scene(seed=4)
        assert second.to_dict() == data

    def test_structure(self):
        """Test the ground, the small spheres and the three large spheres."""
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.presets import CLEARANCE_POINT, CLEARANCE_RADIUS, create_random_scene

        scene, camera = create_random_scene(seed=1)
        spheres = scene.spheres

        assert spheres[0].radius == 1000.0
        assert [s.radius for s in spheres[-3:]] == [1.0, 1.0, 1.0]
        small = spheres[1:-3]
        assert 400 <= len(small) <= 484
        for sphere in small:
            assert sphere.radius == 0.2
            assert np.linalg.norm(np.array(sphere.center) - CLEARANCE_POINT) > CLEARANCE_RADIUS

        types = [scene.get_material_type_python(s.material_id) for s in small]
        share = types.count(MaterialType.LAMBERTIAN) / len(types)
        assert 0.7 < share < 0.9

        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.lens_radius == pytest.approx(0.05)
        assert camera.focus_dist == 10.0
