"""PDF rasterisation for downloaded identity documents.

Electronic ID cards are often issued as PDFs; only the first pages carry
the card itself, so conversion stops after ``max_pages``.
"""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path

from src.utils.errors import RecognitionError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Converts PDF pages to RGB images for OCR.

    Args:
        dpi: Rendering resolution.
        max_pages: Number of leading pages to convert.
    """

    def __init__(self, dpi: int = 300, max_pages: int = 2) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Convert the leading pages of a PDF to images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            List of page images as numpy arrays (RGB).

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RecognitionError: If the PDF cannot be rendered.
        """
        options = {"dpi": self.dpi, "first_page": 1, "last_page": self.max_pages}
        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                pil_images = convert_from_path(str(path), **options)
            else:
                pil_images = convert_from_bytes(pdf_source, **options)
        except FileNotFoundError:
            raise
        except Exception as exc:
            raise RecognitionError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
