"""End-to-end bill extraction: intake, recognition, extraction, assembly.

A :class:`BillPipeline` owns one recognition session. Create one per
upload handler (or share one across sequential requests), and call
:meth:`BillPipeline.close` when done so the OCR worker is released.
"""

from functools import partial
from pathlib import Path

from billscan.extraction.field_extractor import FieldExtractor
from billscan.extraction.line_items import LineItemParser
from billscan.extraction.patterns import split_lines
from billscan.intake.normalizer import DocumentIntake
from billscan.models import BillFields, ExtractionResult, LineItem, RawDocument
from billscan.ocr.session import RecognitionSession
from billscan.ocr.tesseract_engine import TesseractEngine
from billscan.utils.config import AppConfig, load_config
from billscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def assemble_result(
    fields: BillFields, items: list[LineItem], raw_text: str
) -> ExtractionResult:
    """Merge extracted fields, line items and raw text into one result.

    Totals are not checked against the item sum; discrepancies are left
    for the reviewer.
    """
    return ExtractionResult(
        raw_text=raw_text,
        bill_number=fields.bill_number,
        bill_date=fields.bill_date,
        date_was_inferred=fields.date_was_inferred,
        total_amount=fields.total_amount,
        gst_amount=fields.gst_amount,
        customer_info=fields.customer_info,
        payment_info=fields.payment_info,
        items=list(items),
    )


class BillPipeline:
    """Turns uploaded bill documents into extraction results.

    Args:
        config: Application configuration. Defaults are used if omitted.
        session: Recognition session to use. By default a session backed
            by :class:`TesseractEngine` is created; the engine itself
            starts on the first recognition call.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        session: RecognitionSession | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.intake = DocumentIntake(self.config.processing)
        self.session = session or RecognitionSession(
            partial(TesseractEngine, self.config.ocr, self.config.preprocessing)
        )
        self.field_extractor = FieldExtractor(self.config.extraction)
        self.line_item_parser = LineItemParser(self.config.extraction)

    @classmethod
    def from_config(cls, path: Path | None = None) -> "BillPipeline":
        """Build a pipeline from a YAML config file and set up logging."""
        config = load_config(path)
        setup_logging(config.log_level)
        return cls(config)

    def process(self, document: RawDocument) -> ExtractionResult:
        """Validate, recognize and extract one document.

        Raises:
            ValidationError: If the document is rejected by intake.
            RecognitionError: If OCR fails.
            SessionClosedError: If the pipeline was closed.
        """
        logger.info(
            "Processing %s (%s, %d bytes)",
            document.filename,
            document.media_type,
            document.size,
        )
        normalized = self.intake.process(document)
        raw_text = self.session.extract_text(normalized)
        return self.parse_text(raw_text)

    def parse_text(self, raw_text: str) -> ExtractionResult:
        """Extract a result from already-recognized text. Never raises."""
        lines = split_lines(raw_text)
        fields = self.field_extractor.extract_from_lines(lines)
        items = self.line_item_parser.extract_line_items(lines)
        result = assemble_result(fields, items, raw_text)
        logger.info("Extracted: %s", ", ".join(result.extracted_field_names()) or "nothing")
        return result

    def close(self) -> None:
        """Terminate the recognition session."""
        self.session.terminate()

    def __enter__(self) -> "BillPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
