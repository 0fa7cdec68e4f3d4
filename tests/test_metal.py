"""Unit tests for the metal (specular) material.

Tests cover:
- Mirror reflection when fuzz is 0
- Fuzzy reflection stays within the fuzz sphere around the mirror direction
- Absorption of rays scattered below the surface
- Material registry and fuzz clamping
"""

import numpy as np
import pytest
import taichi as ti


class TestScatterMetal:
    """Tests for scatter_metal."""

    def test_perfect_mirror(self):
        """Test fuzz 0 reflects about the normal."""
        from pathtracer.core.ray import vec3
        from pathtracer.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f64, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, att, did = scatter_metal(
                vec3(0.8, 0.6, 0.2), 0.0, vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 0
            )
            direction[None] = d
            attenuation[None] = att
            scattered[None] = did

        test_kernel()
        s = 1.0 / np.sqrt(2.0)
        np.testing.assert_allclose(direction[None].to_numpy(), [s, s, 0.0], atol=1e-12)
        np.testing.assert_allclose(attenuation[None].to_numpy(), [0.8, 0.6, 0.2])
        assert scattered[None] == 1

    def test_fuzz_offsets_stay_in_fuzz_sphere(self):
        """Test the scattered direction lies within fuzz of the mirror direction."""
        from pathtracer.core.ray import length, reflect, unit_vector, vec3
        from pathtracer.materials.metal import scatter_metal

        n = 2000
        offsets = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                incident = vec3(0.3, -1.0, 0.2)
                normal = vec3(0.0, 1.0, 0.0)
                d, _, _ = scatter_metal(vec3(1.0, 1.0, 1.0), 0.3, incident, normal, k)
                offsets[k] = length(d - reflect(unit_vector(incident), normal))

        test_kernel()
        values = offsets.to_numpy()
        assert values.max() < 0.3
        assert values.mean() > 0.1

    def test_grazing_fuzzy_reflection_can_be_absorbed(self):
        """Test rays pushed below the surface are reported as absorbed."""
        from pathtracer.core.ray import vec3
        from pathtracer.materials.metal import scatter_metal

        n = 2000
        scattered = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                incident = vec3(1.0, -0.02, 0.0)
                _, _, did = scatter_metal(vec3(1.0, 1.0, 1.0), 1.0, incident, vec3(0.0, 1.0, 0.0), k)
                scattered[k] = did

        test_kernel()
        values = scattered.to_numpy()
        assert 0 < values.sum() < n


class TestMetalRegistry:
    """Tests for the metal material registry."""

    def test_add_and_read_back(self):
        """Test stored albedo and fuzz are readable by index."""
        from pathtracer.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzz,
            get_metal_material_count,
        )

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=0.25)
        assert idx == 0
        assert get_metal_material_count() == 1

        albedo = ti.Vector.field(3, dtype=ti.f64, shape=())
        fuzz = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            albedo[None] = get_metal_albedo(0)
            fuzz[None] = get_metal_fuzz(0)

        test_kernel()
        np.testing.assert_allclose(albedo[None].to_numpy(), [0.8, 0.6, 0.2])
        assert fuzz[None] == pytest.approx(0.25)

    def test_fuzz_clamped_to_one(self):
        """Test fuzz above 1 is stored as 1."""
        from pathtracer.materials.metal import add_metal_material, get_metal_fuzz_value

        idx = add_metal_material((0.5, 0.5, 0.5), fuzz=3.0)
        assert get_metal_fuzz_value(idx) == pytest.approx(1.0)

    @pytest.mark.parametrize("fuzz", [-0.1, float("nan")])
    def test_negative_or_nan_fuzz_rejected(self, fuzz):
        """Test negative or NaN fuzz raises ValueError."""
        from pathtracer.materials.metal import add_metal_material, get_metal_material_count

        with pytest.raises(ValueError):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)
        assert get_metal_material_count() == 0

    def test_invalid_albedo_rejected(self):
        """Test albedo components outside [0, 1] raise ValueError."""
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 1.5, 0.5))
        with pytest.raises(ValueError):
            add_metal_material((float("nan"), 0.5, 0.5))
