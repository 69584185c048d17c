"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Reinhard tone mapping
- Gamma correction
- 8-bit conversion and PNG export
- RMSE computation
"""

import numpy as np
import pytest
from PIL import Image as PILImage


class TestToneMapReinhard:
    """Test Reinhard tone mapping."""

    def test_reinhard_preserves_black(self):
        from src.spherepath.preview.display import tone_map_reinhard

        image = np.zeros((4, 4, 3), dtype=np.float32)
        assert np.allclose(tone_map_reinhard(image), 0.0)

    def test_reinhard_formula(self):
        """L / (1 + L) for a few values."""
        from src.spherepath.preview.display import tone_map_reinhard

        for val in [0.5, 1.0, 2.0, 10.0]:
            image = np.full((2, 2, 3), val, dtype=np.float32)
            assert np.allclose(tone_map_reinhard(image), val / (1.0 + val), atol=1e-6)

    def test_reinhard_handles_negative_input(self):
        from src.spherepath.preview.display import tone_map_reinhard

        image = np.full((2, 2, 3), -1.0, dtype=np.float32)
        assert np.all(tone_map_reinhard(image) == 0.0)


class TestGamma:
    def test_gamma_one_is_identity(self):
        from src.spherepath.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        assert np.array_equal(apply_gamma(image, 1.0), image)

    def test_gamma_two(self):
        from src.spherepath.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        assert np.allclose(apply_gamma(image, 2.0), 0.5)

    def test_gamma_clamps_out_of_range(self):
        from src.spherepath.preview.display import apply_gamma

        image = np.array([[[-1.0, 4.0, 1.0]]], dtype=np.float32)
        result = apply_gamma(image, 2.2)
        assert np.allclose(result, [[[0.0, 1.0, 1.0]]])

    def test_rejects_non_positive_gamma(self):
        from src.spherepath.preview.display import apply_gamma

        with pytest.raises(ValueError, match="Gamma"):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), 0.0)


class TestProcessImageForDisplay:
    def test_output_in_unit_range(self):
        from src.spherepath.preview.display import process_image_for_display

        image = np.array([[[0.0, 0.5, 20.0]]], dtype=np.float32)
        for tone_map in ("none", "reinhard"):
            result = process_image_for_display(image, tone_map=tone_map, gamma=2.2)
            assert result.dtype == np.float32
            assert np.all(result >= 0.0)
            assert np.all(result <= 1.0)

    def test_does_not_modify_input(self):
        from src.spherepath.preview.display import process_image_for_display

        image = np.full((2, 2, 3), 3.0, dtype=np.float32)
        process_image_for_display(image, tone_map="reinhard")
        assert np.all(image == 3.0)

    def test_unknown_tone_map(self):
        from src.spherepath.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Unknown tone mapping"):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), tone_map="aces")


class TestExport:
    def test_image_to_uint8(self):
        from src.spherepath.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [2.0, -1.0, 0.25]]], dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)
        assert result.dtype == np.uint8
        assert result.tolist() == [[[0, 128, 255], [255, 0, 64]]]

    def test_save_png_from_array(self, tmp_path):
        from src.spherepath.preview.export import save_png_from_array

        image = np.zeros((3, 5, 3), dtype=np.float32)
        image[0, 0] = (1.0, 0.0, 0.0)
        path = tmp_path / "frame.png"
        save_png_from_array(image, str(path), gamma=1.0)

        with PILImage.open(path) as saved:
            assert saved.size == (5, 3)
            pixels = np.asarray(saved)
        assert tuple(pixels[0, 0]) == (255, 0, 0)
        assert tuple(pixels[2, 4]) == (0, 0, 0)


class TestComputeRmse:
    def test_identical_images(self):
        from src.spherepath.preview.export import compute_rmse

        image = np.random.default_rng(0).random((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_known_value(self):
        from src.spherepath.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        from src.spherepath.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
