"""Tesseract OCR engine wrapper for identity-card images."""

from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from src.utils.errors import RecognitionError
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Recognized text for one page with Tesseract's mean word confidence."""

    text: str
    language: str
    confidence: float
    word_count: int


class TesseractEngine:
    """Wrapper around Tesseract for plain-text recognition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code. Only English cards are supported.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm

    def extract_text(self, image: np.ndarray) -> OCRResult:
        """Recognize the text in an image.

        Args:
            image: Preprocessed image as a numpy array.

        Returns:
            OCRResult with the raw text and average word confidence (0-1).

        Raises:
            RecognitionError: If Tesseract is missing or fails on the image.
        """
        config = f"--psm {self.psm}"
        pil_image = Image.fromarray(image)

        try:
            text = pytesseract.image_to_string(
                pil_image, lang=self.default_lang, config=config
            )
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.default_lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise RecognitionError(f"Tesseract failed: {exc}") from exc

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and word.strip()
        ]
        avg_conf = sum(confidences) / len(confidences) / 100.0 if confidences else 0.0

        logger.info(
            "OCR extracted %d words with average confidence %.2f",
            len(confidences),
            avg_conf,
        )
        return OCRResult(
            text=text,
            language=self.default_lang,
            confidence=avg_conf,
            word_count=len(confidences),
        )
