"""Tesseract-backed recognition worker.

Turns a normalized document into plain text. PDFs are rendered first,
every page is enhanced and recognized, and page texts are joined with a
page break marker.
"""

import io

import numpy as np
import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError
from pytesseract import TesseractError, TesseractNotFoundError

from billscan.exceptions import RecognitionError, SessionClosedError
from billscan.models import RawDocument
from billscan.preprocessing.enhance import OCREnhancer
from billscan.utils.config import OCRConfig, PreprocessingConfig
from billscan.utils.logger import get_logger

from .pdf_handler import PDFHandler

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


class TesseractEngine:
    """Recognition worker wrapping the Tesseract command-line engine.

    Construction checks that the Tesseract binary is usable, so a
    misconfigured host fails on the first recognition request rather
    than silently returning no text.

    Args:
        config: Language, page segmentation mode and PDF rendering options.
        preprocessing: Enhancement applied to each page before OCR.

    Raises:
        RecognitionError: If the Tesseract binary cannot be found or run.
    """

    def __init__(
        self,
        config: OCRConfig,
        preprocessing: PreprocessingConfig | None = None,
    ) -> None:
        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd
        try:
            version = pytesseract.get_tesseract_version()
        except (TesseractNotFoundError, TesseractError, OSError) as exc:
            raise RecognitionError(
                "Tesseract is not available",
                {"tesseract_cmd": config.tesseract_cmd},
            ) from exc

        self.config = config
        self.enhancer = OCREnhancer(preprocessing or PreprocessingConfig())
        self.pdf_handler = PDFHandler(dpi=config.pdf_dpi, max_pages=config.pdf_max_pages)
        self._terminated = False
        logger.info("Tesseract %s ready (lang=%s)", version, config.default_lang)

    def recognize(self, document: RawDocument) -> str:
        """Run OCR over every page of a document.

        Args:
            document: A validated, normalized document.

        Returns:
            The recognized text, possibly empty.

        Raises:
            RecognitionError: If the document cannot be decoded or
                Tesseract fails.
            SessionClosedError: If the engine was terminated.
        """
        if self._terminated:
            raise SessionClosedError("Tesseract engine has been terminated")

        pages = self._load_images(document)
        tess_config = f"--psm {self.config.psm}"
        texts: list[str] = []

        for page_number, image in enumerate(pages, 1):
            prepared = self.enhancer.process(image)
            try:
                text = pytesseract.image_to_string(
                    Image.fromarray(prepared),
                    lang=self.config.default_lang,
                    config=tess_config,
                )
            except (TesseractError, TesseractNotFoundError, RuntimeError) as exc:
                raise RecognitionError(
                    f"Tesseract failed on page {page_number}: {exc}",
                    {"filename": document.filename, "page": page_number},
                ) from exc
            texts.append(text)

        logger.info(
            "Recognized %d characters from %d page(s) of %s",
            sum(len(t) for t in texts),
            len(texts),
            document.filename,
        )
        return PAGE_BREAK.join(texts)

    def terminate(self) -> None:
        """Stop accepting work. Tesseract runs per call, so nothing is killed."""
        self._terminated = True
        logger.info("Tesseract engine terminated")

    def _load_images(self, document: RawDocument) -> list[np.ndarray]:
        if document.media_type == "application/pdf" or document.data[:4] == b"%PDF":
            return self.pdf_handler.pdf_to_images(document.data)

        try:
            with Image.open(io.BytesIO(document.data)) as img:
                upright = ImageOps.exif_transpose(img)
                return [np.array(upright.convert("RGB"))]
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise RecognitionError(
                f"Cannot decode image: {exc}",
                {"filename": document.filename, "media_type": document.media_type},
            ) from exc
