"""Unit tests for the world sphere list and closest-hit queries."""

import pytest


class TestWorldStorage:
    """Tests for adding and clearing spheres."""

    def test_add_and_count(self):
        """Test spheres are indexed in insertion order."""
        from pathtracer.scene.world import add_sphere, get_sphere_count

        assert get_sphere_count() == 0
        assert add_sphere((0.0, 0.0, -1.0), 0.5, material_id=2) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5) == 1
        assert get_sphere_count() == 2

    def test_clear(self):
        """Test clear_world empties the list."""
        from pathtracer.scene.world import add_sphere, clear_world, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5)
        clear_world()
        assert get_sphere_count() == 0

    @pytest.mark.parametrize("radius", [0.0, float("nan")])
    def test_zero_or_nan_radius_rejected(self, radius):
        """Test a zero or NaN radius raises ValueError."""
        from pathtracer.scene.world import add_sphere, get_sphere_count

        with pytest.raises(ValueError):
            add_sphere((0.0, 0.0, 0.0), radius)
        assert get_sphere_count() == 0

    def test_capacity(self):
        """Test adding past MAX_SPHERES raises RuntimeError."""
        from pathtracer.scene.world import MAX_SPHERES, add_sphere

        for k in range(MAX_SPHERES):
            add_sphere((float(k), 0.0, 0.0), 0.1)
        with pytest.raises(RuntimeError):
            add_sphere((0.0, 0.0, 0.0), 0.1)


class TestClosestHit:
    """Tests for hit_world through the Python query."""

    def test_empty_world_misses(self):
        """Test a world with no spheres never reports a hit."""
        from pathtracer.scene.world import closest_hit

        assert closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_closest_sphere_wins(self):
        """Test the nearest of two spheres along the ray is returned."""
        from pathtracer.scene.world import add_sphere, closest_hit

        add_sphere((0.0, 0.0, -5.0), 0.5, material_id=1)
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=7)

        rec = closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert rec is not None
        assert rec["t"] == pytest.approx(1.5)
        assert rec["material_id"] == 7
        assert rec["front_face"] is True

    def test_insertion_order_does_not_matter(self):
        """Test the result is the same whichever sphere was added first."""
        from pathtracer.scene.world import add_sphere, clear_world, closest_hit

        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=3)
        add_sphere((0.0, 0.0, -5.0), 0.5, material_id=4)
        first = closest_hit((0.0, 0.1, 0.0), (0.0, 0.0, -1.0))

        clear_world()
        add_sphere((0.0, 0.0, -5.0), 0.5, material_id=4)
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=3)
        second = closest_hit((0.0, 0.1, 0.0), (0.0, 0.0, -1.0))

        assert first == second

    def test_t_max_limits_search(self):
        """Test hits beyond t_max are ignored."""
        from pathtracer.scene.world import add_sphere, closest_hit

        add_sphere((0.0, 0.0, -5.0), 0.5)
        assert closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=3.0) is None

    def test_point_and_normal(self):
        """Test point and normal of the hit on a ground sphere."""
        from pathtracer.scene.world import add_sphere, closest_hit

        add_sphere((0.0, -100.5, -1.0), 100.0)
        rec = closest_hit((0.0, 0.0, -1.0), (0.0, -1.0, 0.0))

        assert rec["t"] == pytest.approx(0.5)
        assert rec["point"] == pytest.approx((0.0, -0.5, -1.0))
        assert rec["normal"] == pytest.approx((0.0, 1.0, 0.0))

    def test_surface_point_does_not_rehit_itself(self):
        """Test a ray leaving a surface point is not stopped by that surface."""
        from pathtracer.scene.world import add_sphere, closest_hit

        add_sphere((0.0, 0.0, -1.0), 0.5)
        rec = closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        bounce = closest_hit(rec["point"], rec["normal"])
        assert bounce is None
