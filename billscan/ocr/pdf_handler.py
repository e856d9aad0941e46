"""PDF page rendering for bills uploaded as PDF documents.

Tesseract only reads raster images, so PDF uploads are rendered page by
page before recognition.
"""

import numpy as np
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from billscan.exceptions import RecognitionError
from billscan.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Renders PDF bytes to RGB page images.

    Args:
        dpi: Rendering resolution. 300 keeps small print legible to OCR.
        max_pages: Only the first ``max_pages`` pages are rendered; bills
            rarely run longer and later pages are usually terms and
            conditions.
    """

    def __init__(self, dpi: int = 300, max_pages: int = 5) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, data: bytes) -> list[np.ndarray]:
        """Render the leading pages of a PDF.

        Raises:
            RecognitionError: If poppler is missing or the PDF is unreadable.
        """
        try:
            pil_images = convert_from_bytes(
                data,
                dpi=self.dpi,
                first_page=1,
                last_page=self.max_pages,
            )
        except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as exc:
            raise RecognitionError(
                f"PDF conversion failed: {exc}", {"dpi": self.dpi}
            ) from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
