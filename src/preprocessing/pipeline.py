"""Image cleanup for phone photos of identity cards.

Card photos are small, unevenly lit and compressed; upscaling and local
contrast enhancement help Tesseract more than deskewing does. Each step
can be switched off in configuration.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) image to grayscale; grayscale input is returned as is."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def calculate_sharpness(image: np.ndarray) -> float:
    """Laplacian variance; higher means sharper."""
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Standard deviation of grayscale intensities."""
    return float(to_gray(image).std())


def upscale(image: np.ndarray, min_width: int) -> np.ndarray:
    """Enlarge an image proportionally until it is at least ``min_width`` wide.

    Args:
        image: Input image.
        min_width: Target minimum width in pixels. Wider images are unchanged.

    Returns:
        The resized image, or the input if no resize was needed.
    """
    height, width = image.shape[:2]
    if width == 0 or width >= min_width:
        return image
    scale = min_width / width
    resized = cv2.resize(
        image,
        (min_width, max(1, round(height * scale))),
        interpolation=cv2.INTER_CUBIC,
    )
    logger.debug("Upscaled card image %dx%d by %.2f", width, height, scale)
    return resized


def denoise(image: np.ndarray, method: str = "bilateral") -> np.ndarray:
    """Reduce sensor and compression noise.

    Args:
        image: Input image.
        method: ``"bilateral"`` (edge preserving) or ``"gaussian"``.

    Raises:
        ValueError: If an unsupported method is specified.
    """
    if method == "bilateral":
        return cv2.bilateralFilter(image, 9, 75, 75)
    if method == "gaussian":
        return cv2.GaussianBlur(image, (5, 5), 0)
    raise ValueError(f"Unsupported denoise method: {method}")


def enhance_contrast(
    image: np.ndarray, clip_limit: float = 2.0, tile_size: int = 8
) -> np.ndarray:
    """Apply CLAHE to even out the glare typical of laminated cards."""
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    return clahe.apply(to_gray(image))


def binarize(image: np.ndarray) -> np.ndarray:
    """Otsu thresholding to pure black and white."""
    _, binary = cv2.threshold(
        to_gray(image), 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU
    )
    return binary


class PreprocessingPipeline:
    """Configurable card-image cleanup run before OCR.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Run the enabled steps on an image.

        Args:
            image: RGB, RGBA or grayscale card image.

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = image.copy()

        if self.config.grayscale:
            result = to_gray(result)

        result = upscale(result, self.config.upscale_min_width)

        if self.config.denoise_enabled:
            result = denoise(result, method=self.config.denoise_method)

        if self.config.contrast_enabled:
            result = enhance_contrast(
                result,
                clip_limit=self.config.clahe_clip_limit,
                tile_size=self.config.clahe_tile_size,
            )

        if self.config.binarize_enabled:
            result = binarize(result)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics
