"""Tests for card-image preprocessing."""

import numpy as np
import pytest

from src.preprocessing.pipeline import (
    PreprocessingPipeline,
    QualityMetrics,
    binarize,
    calculate_contrast,
    calculate_sharpness,
    denoise,
    enhance_contrast,
    to_gray,
    upscale,
)
from src.utils.config import PreprocessingConfig


class TestToGray:
    """Tests for grayscale conversion."""

    def test_rgb(self, sample_image: np.ndarray) -> None:
        assert to_gray(sample_image).shape == (120, 200)

    def test_rgba(self) -> None:
        rgba = np.zeros((10, 20, 4), dtype=np.uint8)
        assert to_gray(rgba).shape == (10, 20)

    def test_gray_passthrough(self) -> None:
        gray = np.zeros((10, 20), dtype=np.uint8)
        assert to_gray(gray) is gray


class TestQualityMeasures:
    """Tests for sharpness and contrast measures."""

    def test_flat_image(self) -> None:
        flat = np.full((50, 50), 128, dtype=np.uint8)
        assert calculate_sharpness(flat) == 0.0
        assert calculate_contrast(flat) == 0.0

    def test_text_band_has_contrast(self, sample_image: np.ndarray) -> None:
        assert calculate_contrast(sample_image) > 0
        assert calculate_sharpness(sample_image) > 0


class TestUpscale:
    """Tests for proportional upscaling."""

    def test_small_image_enlarged(self, sample_image: np.ndarray) -> None:
        result = upscale(sample_image, 1000)
        assert result.shape == (600, 1000, 3)

    def test_wide_image_unchanged(self, sample_image: np.ndarray) -> None:
        assert upscale(sample_image, 200) is sample_image


class TestFilters:
    """Tests for denoising, contrast enhancement and binarization."""

    @pytest.mark.parametrize("method", ["bilateral", "gaussian"])
    def test_denoise_keeps_shape(self, sample_image: np.ndarray, method: str) -> None:
        gray = to_gray(sample_image)
        assert denoise(gray, method).shape == gray.shape

    def test_denoise_unknown_method(self, sample_image: np.ndarray) -> None:
        with pytest.raises(ValueError, match="Unsupported denoise method"):
            denoise(sample_image, "median")

    def test_enhance_contrast_returns_gray(self, sample_image: np.ndarray) -> None:
        result = enhance_contrast(sample_image, clip_limit=3.0, tile_size=4)
        assert result.shape == (120, 200)
        assert result.dtype == np.uint8

    def test_binarize(self, sample_image: np.ndarray) -> None:
        result = binarize(sample_image)
        assert set(np.unique(result)) <= {0, 255}


class TestPreprocessingPipeline:
    """Tests for the configurable pipeline."""

    def test_default_pipeline(self, sample_image: np.ndarray) -> None:
        result, metrics = PreprocessingPipeline(PreprocessingConfig()).process(
            sample_image
        )

        assert result.ndim == 2
        assert result.shape == (600, 1000)
        assert isinstance(metrics, QualityMetrics)
        assert metrics.contrast_before > 0
        assert metrics.contrast_after > 0

    def test_all_steps_disabled(self, sample_image: np.ndarray) -> None:
        config = PreprocessingConfig(
            grayscale=False,
            upscale_min_width=0,
            denoise_enabled=False,
            contrast_enabled=False,
            binarize_enabled=False,
        )

        result, _ = PreprocessingPipeline(config).process(sample_image)

        np.testing.assert_array_equal(result, sample_image)
        assert result is not sample_image

    def test_binarize_enabled(self, sample_image: np.ndarray) -> None:
        config = PreprocessingConfig(binarize_enabled=True, upscale_min_width=0)

        result, _ = PreprocessingPipeline(config).process(sample_image)

        assert set(np.unique(result)) <= {0, 255}
