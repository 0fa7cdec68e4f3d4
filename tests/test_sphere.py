"""Unit tests for sphere geometry and ray-sphere intersection.

Tests cover:
- Hits from outside and inside the sphere
- Misses, tangent rays and spheres behind the origin
- The open interval (t_min, t_max)
- Face orientation and negative radii
"""

import pytest
import taichi as ti


def _make_hit_kernel():
    """Build a kernel that intersects one ray with one sphere."""
    from pathtracer.core.ray import vec3
    from pathtracer.geometry.sphere import Sphere, hit_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f64, shape=())
    point = ti.Vector.field(3, dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def run(
        ox: ti.f64, oy: ti.f64, oz: ti.f64,
        dx: ti.f64, dy: ti.f64, dz: ti.f64,
        cx: ti.f64, cy: ti.f64, cz: ti.f64,
        radius: ti.f64, t_min: ti.f64, t_max: ti.f64,
    ):
        sphere = Sphere(center=vec3(cx, cy, cz), radius=radius)
        rec = hit_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), sphere, t_min, t_max)
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal
        front_face[None] = rec.front_face

    def query(origin, direction, center, radius, t_min=0.001, t_max=1e30):
        run(*origin, *direction, *center, radius, t_min, t_max)
        return {
            "hit": hit[None],
            "t": t[None],
            "point": tuple(point[None].to_numpy()),
            "normal": tuple(normal[None].to_numpy()),
            "front_face": front_face[None],
        }

    return query


class TestSphereHit:
    """Tests for rays that hit the sphere."""

    def test_hit_from_outside(self):
        """Test a ray down -z hits the front of a sphere at z=-1."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.5)
        assert rec["point"] == pytest.approx((0.0, 0.0, -0.5))
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0))
        assert rec["front_face"] == 1

    def test_unnormalized_direction(self):
        """Test t is measured in units of the direction vector."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -2.0), (0.0, 0.0, -1.0), 0.5)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.25)
        assert rec["point"] == pytest.approx((0.0, 0.0, -0.5))

    def test_hit_from_inside(self):
        """Test a ray from the center hits the far wall with an inward normal."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, -1.0), (1.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0.5)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.5)
        assert rec["front_face"] == 0
        assert rec["normal"] == pytest.approx((-1.0, 0.0, 0.0))

    def test_normal_faces_ray(self):
        """Test the normal always opposes the ray direction."""
        query = _make_hit_kernel()
        direction = (0.3, -0.2, -1.0)
        rec = query((0.0, 0.0, 0.0), direction, (0.1, -0.1, -2.0), 0.7)

        assert rec["hit"] == 1
        n = rec["normal"]
        assert sum(a * b for a, b in zip(direction, n)) < 0.0
        assert sum(c * c for c in n) == pytest.approx(1.0)

    def test_negative_radius_flips_normal(self):
        """Test a negative radius sphere reports hits from the inside."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), -0.5)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.5)
        assert rec["front_face"] == 0
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0))


class TestSphereMiss:
    """Tests for rays that miss the sphere."""

    def test_miss_to_the_side(self):
        """Test a ray passing beside the sphere misses."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (2.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 0

    def test_sphere_behind_origin(self):
        """Test a sphere behind the ray is not hit."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 3.0), 0.5)
        assert rec["hit"] == 0

    def test_tangent_ray_misses(self):
        """Test a ray grazing the sphere (zero discriminant) is a miss."""
        query = _make_hit_kernel()
        rec = query((0.5, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 0

    def test_far_root_used_when_near_root_excluded(self):
        """Test the far root is returned when the near one is below t_min."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_min=0.6)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(1.5)
        assert rec["front_face"] == 0

    def test_t_max_excludes_hits(self):
        """Test hits at or beyond t_max are rejected."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_max=0.5)
        assert rec["hit"] == 0

    def test_t_min_is_exclusive(self):
        """Test a root exactly at t_min is not accepted."""
        query = _make_hit_kernel()
        rec = query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_min=0.5, t_max=1.0)
        assert rec["hit"] == 0


class TestSetFaceNormal:
    """Tests for set_face_normal."""

    def test_front_and_back(self):
        """Test the normal is flipped only for rays from inside."""
        from pathtracer.core.ray import vec3
        from pathtracer.geometry.sphere import set_face_normal

        fronts = ti.field(dtype=ti.i32, shape=2)
        normals = ti.Vector.field(3, dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            outward = vec3(0.0, 1.0, 0.0)
            f0, n0 = set_face_normal(vec3(0.0, -1.0, 0.0), outward)
            f1, n1 = set_face_normal(vec3(0.0, 1.0, 0.0), outward)
            fronts[0] = f0
            normals[0] = n0
            fronts[1] = f1
            normals[1] = n1

        test_kernel()
        assert fronts[0] == 1
        assert normals[0][1] == pytest.approx(1.0)
        assert fronts[1] == 0
        assert normals[1][1] == pytest.approx(-1.0)
