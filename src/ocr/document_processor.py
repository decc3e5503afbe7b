"""Uploaded identity document to recognized text.

Loads an image or PDF, cleans each page up for OCR and runs Tesseract.
Any failure along the way surfaces as :class:`RecognitionError`; the
caller reports it and the user re-submits.
"""

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.preprocessing.pipeline import PreprocessingPipeline, QualityMetrics
from src.utils.config import AppConfig
from src.utils.errors import RecognitionError
from src.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .tesseract_engine import OCRResult, TesseractEngine

logger = get_logger(__name__)

PAGE_SEPARATOR = "\n\n"


@dataclass
class PageResult:
    """OCR output and image quality for one page."""

    page_number: int
    ocr_result: OCRResult
    quality_metrics: QualityMetrics


@dataclass
class DocumentResult:
    """Recognized text for a whole document."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str

    @property
    def confidence(self) -> float:
        """Mean OCR confidence over pages."""
        if not self.pages:
            return 0.0
        return sum(p.ocr_result.confidence for p in self.pages) / len(self.pages)


class DocumentProcessor:
    """Image/PDF loading, preprocessing and OCR in one call.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(dpi=config.ocr.pdf_dpi)
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
            psm=config.ocr.psm,
        )

    def process(
        self, source: Path | bytes, filename: str = "document"
    ) -> DocumentResult:
        """Recognize the text of a document given as a path or raw bytes.

        Args:
            source: Path to an image/PDF file, or its raw bytes.
            filename: Display name used in logs.

        Returns:
            Per-page OCR results and the combined text.

        Raises:
            RecognitionError: If the file cannot be decoded or recognized.
        """
        logger.info("Processing document: %s", filename)
        images = self._load_images(source)
        pages: list[PageResult] = []

        for i, image in enumerate(images):
            processed, metrics = self.preprocessing.process(image)
            pages.append(
                PageResult(
                    page_number=i + 1,
                    ocr_result=self.ocr_engine.extract_text(processed),
                    quality_metrics=metrics,
                )
            )

        combined_text = PAGE_SEPARATOR.join(p.ocr_result.text for p in pages)
        logger.info("Processed %d pages from %s", len(pages), filename)
        return DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=combined_text,
        )

    def _load_images(self, source: Path | bytes) -> list[np.ndarray]:
        """Load document pages as RGB numpy arrays.

        Raises:
            RecognitionError: If the content is neither a PDF nor an image.
        """
        if isinstance(source, bytes):
            if source[:4] == b"%PDF":
                return self.pdf_handler.pdf_to_images(source)
            return [self._open_image(io.BytesIO(source))]

        path = Path(source)
        if path.suffix.lower() == ".pdf":
            return self.pdf_handler.pdf_to_images(path)
        return [self._open_image(path)]

    @staticmethod
    def _open_image(fp: Path | io.BytesIO) -> np.ndarray:
        try:
            with Image.open(fp) as img:
                return np.array(img.convert("RGB"))
        except (UnidentifiedImageError, OSError) as exc:
            raise RecognitionError(f"Unreadable image: {exc}") from exc
