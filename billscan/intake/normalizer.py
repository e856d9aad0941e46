"""Upload validation and image downscaling before recognition.

Oversized or unaccepted uploads are rejected outright. Accepted raster
images are shrunk to fit the configured bounding box and re-encoded;
anything that cannot be decoded is passed on untouched, since
normalization only saves OCR time and is never required for it.
"""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from billscan.exceptions import ValidationError
from billscan.models import RawDocument
from billscan.utils.config import ProcessingConfig
from billscan.utils.logger import get_logger

logger = get_logger(__name__)

# Pillow encoder names for the media types we know how to re-encode.
_PIL_FORMATS: dict[str, str] = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
    "image/tiff": "TIFF",
    "image/bmp": "BMP",
}

_LOSSY_FORMATS = {"JPEG", "WEBP"}


def compute_scale(
    width: int, height: int, max_width: int, max_height: int
) -> float:
    """Return the uniform scale factor that fits an image in the bounding box.

    Never greater than 1: small images are not enlarged.
    """
    if width <= 0 or height <= 0:
        return 1.0
    return min(1.0, max_width / width, max_height / height)


class DocumentIntake:
    """Validates uploaded documents and normalizes raster images.

    Args:
        config: Size limits, accepted media types and resize targets.
    """

    def __init__(self, config: ProcessingConfig) -> None:
        self.config = config

    def process(self, document: RawDocument) -> RawDocument:
        """Validate a document, then return its normalized form.

        Raises:
            ValidationError: If the document is rejected.
        """
        self.validate(document)
        return self.normalize(document)

    def validate(self, document: RawDocument) -> None:
        """Reject documents that are too large or of an unaccepted type.

        Raises:
            ValidationError: If the size exceeds ``max_file_size`` or the
                media type is not in ``allowed_media_types``.
        """
        if document.size > self.config.max_file_size:
            raise ValidationError(
                f"File too large: {document.size} bytes",
                {
                    "filename": document.filename,
                    "size": document.size,
                    "max_file_size": self.config.max_file_size,
                },
            )
        if document.media_type not in self.config.allowed_media_types:
            raise ValidationError(
                f"File type not allowed: '{document.media_type}'",
                {
                    "filename": document.filename,
                    "media_type": document.media_type,
                    "allowed_media_types": sorted(self.config.allowed_media_types),
                },
            )

    def normalize(self, document: RawDocument) -> RawDocument:
        """Downscale and recompress a raster image.

        Non-image documents (e.g. PDFs) and images that fail to decode or
        encode are returned unchanged.

        Args:
            document: A document that already passed validation.

        Returns:
            A new document with the re-encoded bytes, or ``document``.
        """
        if not document.is_image:
            logger.debug("Skipping normalization for %s", document.media_type)
            return document

        try:
            data = self._reencode(document)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as exc:
            logger.warning(
                "Could not normalize %s, using original file: %s",
                document.filename,
                exc,
            )
            return document

        logger.info(
            "Normalized %s: %d -> %d bytes",
            document.filename,
            document.size,
            len(data),
        )
        return RawDocument(
            data=data,
            media_type=document.media_type,
            filename=document.filename,
        )

    def _reencode(self, document: RawDocument) -> bytes:
        with Image.open(io.BytesIO(document.data)) as img:
            img.load()
            fmt = _PIL_FORMATS.get(document.media_type) or img.format
            if fmt is None:
                raise ValueError(f"No encoder for {document.media_type}")

            # Phone photos store rotation in EXIF; bake it into the pixels so
            # the bounding box applies to the upright page.
            result = ImageOps.exif_transpose(img)
            scale = compute_scale(
                result.width, result.height, self.config.max_width, self.config.max_height
            )
            if scale < 1.0:
                size = (
                    max(1, round(result.width * scale)),
                    max(1, round(result.height * scale)),
                )
                logger.debug(
                    "Resized %s from %dx%d to %dx%d",
                    document.filename,
                    result.width,
                    result.height,
                    size[0],
                    size[1],
                )
                result = result.resize(size, Image.Resampling.LANCZOS)

            if fmt == "JPEG" and result.mode not in ("RGB", "L"):
                result = result.convert("RGB")

            buffer = io.BytesIO()
            if fmt in _LOSSY_FORMATS:
                quality = max(1, round(self.config.image_quality * 100))
                result.save(buffer, format=fmt, quality=quality)
            elif fmt == "PNG":
                result.save(buffer, format=fmt, optimize=True)
            else:
                result.save(buffer, format=fmt)
            return buffer.getvalue()
