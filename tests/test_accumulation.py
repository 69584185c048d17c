"""Tests for the accumulation buffer.

Tests cover:
- Adding samples and the global sample counter
- Reset
- Normalization by the global counter and exposure
- Image orientation (row 0 at the bottom of the buffer)
- Input validation
"""

import numpy as np
import pytest


class TestAccumulationBuffer:
    """Tests for host-side buffer operations."""

    def test_starts_empty(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(4, 3)
        assert buffer.pixel_count == 12
        assert buffer.sample_count == 0
        assert np.all(buffer.sums_numpy() == 0.0)

    def test_rejects_bad_dimensions(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        with pytest.raises(ValueError, match="positive"):
            AccumulationBuffer(0, 3)

    def test_pixel_index(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(4, 3)
        assert buffer.pixel_index(0, 0) == 0
        assert buffer.pixel_index(3, 0) == 3
        assert buffer.pixel_index(1, 2) == 9
        with pytest.raises(IndexError):
            buffer.pixel_index(4, 0)
        with pytest.raises(IndexError):
            buffer.pixel_index(0, -1)

    def test_add_sample_sums_and_counts(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        buffer.add_sample(1, (0.5, 0.25, 0.0))
        buffer.add_sample(1, (0.5, 0.25, 2.0))
        buffer.add_sample(3, (1.0, 1.0, 1.0))

        sums = buffer.sums_numpy()
        np.testing.assert_allclose(sums[1], [1.0, 0.5, 2.0])
        np.testing.assert_allclose(sums[3], [1.0, 1.0, 1.0])
        np.testing.assert_allclose(sums[0], [0.0, 0.0, 0.0])
        assert buffer.sample_count == 3

    def test_black_sample_still_counts(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(1, 1)
        buffer.add_sample(0, (0.0, 0.0, 0.0))
        assert buffer.sample_count == 1

    def test_overwrite_replaces_value(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 1)
        buffer.add_sample(0, (3.0, 3.0, 3.0))
        buffer.overwrite(0, (1.0, 0.0, 0.0))
        np.testing.assert_allclose(buffer.sums_numpy()[0], [1.0, 0.0, 0.0])
        assert buffer.sample_count == 2

    def test_reset(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        for i in range(4):
            buffer.add_sample(i, (1.0, 2.0, 3.0))
        buffer.reset()
        assert buffer.sample_count == 0
        assert np.all(buffer.sums_numpy() == 0.0)
        assert np.all(buffer.normalize() == 0.0)

    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_add_sample_rejects_bad_index(self, index):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        with pytest.raises(IndexError):
            buffer.add_sample(index, (1.0, 1.0, 1.0))
        assert buffer.sample_count == 0

    @pytest.mark.parametrize(
        "color",
        [(1.0, -0.1, 0.0), (float("nan"), 0.0, 0.0), (1.0, 1.0), (float("inf"), 0.0, 0.0)],
    )
    def test_add_sample_rejects_bad_color(self, color):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        with pytest.raises(ValueError):
            buffer.add_sample(0, color)
        assert buffer.sample_count == 0

    def test_record_samples(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        buffer.record_samples(10)
        buffer.record_samples(0)
        assert buffer.sample_count == 10
        with pytest.raises(ValueError):
            buffer.record_samples(-1)


class TestNormalize:
    """Tests for turning sums into an image."""

    def test_zero_samples_gives_black_image(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        image = AccumulationBuffer(3, 2).normalize(exposure=5.0)
        assert image.shape == (2, 3, 3)
        assert image.dtype == np.float32
        assert np.all(image == 0.0)

    def test_single_pixel_average(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(1, 1)
        for _ in range(4):
            buffer.add_sample(0, (1.0, 0.5, 0.0))
        np.testing.assert_allclose(buffer.normalize()[0, 0], [1.0, 0.5, 0.0], atol=1e-6)

    def test_scales_by_pixels_over_samples(self):
        """Two pixels, two samples in pixel 0: factor is 2 / 2."""
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 1)
        buffer.add_sample(0, (1.0, 1.0, 1.0))
        buffer.add_sample(0, (1.0, 1.0, 1.0))
        image = buffer.normalize()
        np.testing.assert_allclose(image[0, 0], [2.0, 2.0, 2.0], atol=1e-6)
        np.testing.assert_allclose(image[0, 1], [0.0, 0.0, 0.0])

    def test_exposure_is_linear(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(2, 2)
        for i in range(4):
            buffer.add_sample(i, (0.25 * i, 0.5, 1.0))
        base = buffer.normalize(exposure=1.0)
        np.testing.assert_allclose(buffer.normalize(exposure=3.0), base * 3.0, rtol=1e-6)
        assert np.all(buffer.normalize(exposure=0.0) == 0.0)

    def test_rejects_bad_exposure(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(1, 1)
        with pytest.raises(ValueError, match="Exposure"):
            buffer.normalize(exposure=-1.0)
        with pytest.raises(ValueError, match="Exposure"):
            buffer.normalize(exposure=float("inf"))

    def test_bottom_row_is_last_image_row(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(3, 2)
        buffer.add_sample(buffer.pixel_index(2, 0), (1.0, 0.0, 0.0))
        buffer.add_sample(buffer.pixel_index(0, 1), (0.0, 0.0, 1.0))

        image = buffer.snapshot()
        np.testing.assert_allclose(image[1, 2], [1.0, 0.0, 0.0])
        np.testing.assert_allclose(image[0, 0], [0.0, 0.0, 1.0])

    def test_more_samples_never_lower_the_sum(self):
        from src.spherepath.core.accumulation import AccumulationBuffer

        buffer = AccumulationBuffer(1, 1)
        previous = buffer.sums_numpy()[0].copy()
        for value in (0.0, 0.3, 0.0, 1.2):
            buffer.add_sample(0, (value, value, value))
            current = buffer.sums_numpy()[0]
            assert np.all(current >= previous)
            previous = current.copy()
