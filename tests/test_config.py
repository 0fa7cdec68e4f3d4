"""Unit tests for RenderConfig."""

import pytest


class TestRenderConfig:
    """Tests for RenderConfig."""

    def test_defaults(self):
        """Test the default configuration."""
        from pathtracer.config import RenderConfig

        config = RenderConfig()
        assert config.image_width == 400
        assert config.image_height == 225
        assert config.samples_per_pixel == 100
        assert config.max_depth == 50

    @pytest.mark.parametrize(
        "width,aspect,height",
        [(200, 16.0 / 9.0, 113), (8, 16.0 / 9.0, 5), (1200, 1.5, 800), (1, 16.0 / 9.0, 1), (10, 0.5, 20)],
    )
    def test_image_height(self, width, aspect, height):
        """Test the height is width / aspect_ratio with halves rounded up."""
        from pathtracer.config import RenderConfig

        assert RenderConfig(image_width=width, aspect_ratio=aspect).image_height == height

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"image_width": 0},
            {"aspect_ratio": 0.0},
            {"aspect_ratio": float("nan")},
            {"focus_dist": float("nan")},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"vfov_degrees": 180.0},
            {"lookat": (0.0, 0.0, 0.0)},
        ],
    )
    def test_validate_rejects(self, kwargs):
        """Test invalid options raise ValueError."""
        from pathtracer.config import RenderConfig

        with pytest.raises(ValueError):
            RenderConfig(**kwargs).validate()

    def test_to_camera(self):
        """Test the camera carries the pose and lens options."""
        from pathtracer.config import RenderConfig

        camera = RenderConfig(
            aspect_ratio=1.5,
            vfov_degrees=20.0,
            aperture=0.1,
            focus_dist=10.0,
            lookfrom=(13.0, 2.0, 3.0),
            lookat=(0.0, 0.0, 0.0),
        ).to_camera()

        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.vfov == 20.0
        assert camera.aspect_ratio == 1.5
        assert camera.lens_radius == pytest.approx(0.05)
        assert camera.focus_dist == 10.0

    def test_dict_round_trip(self):
        """Test to_dict and from_dict preserve every option."""
        from pathtracer.config import RenderConfig

        config = RenderConfig(image_width=64, seed=7, lookfrom=(1.0, 2.0, 3.0))
        data = config.to_dict()
        assert data["lookfrom"] == [1.0, 2.0, 3.0]
        assert RenderConfig.from_dict(data) == config

    def test_from_dict_partial(self):
        """Test missing keys keep their defaults."""
        from pathtracer.config import RenderConfig

        config = RenderConfig.from_dict({"samples_per_pixel": 8})
        assert config.samples_per_pixel == 8
        assert config.image_width == 400

    def test_from_dict_unknown_key(self):
        """Test unknown keys are rejected."""
        from pathtracer.config import RenderConfig

        with pytest.raises(ValueError, match="image_heigth"):
            RenderConfig.from_dict({"image_heigth": 10})
