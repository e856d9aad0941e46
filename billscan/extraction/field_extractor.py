"""Recovery of scalar bill fields and customer/payment details from OCR text.

Every field is looked up independently with its own pattern cascade, so
one line can feed several fields (a "BILLED TO: Invoice No. 42" line
yields both a customer name and a bill number). Nothing here raises:
a field that is not found stays ``None``.
"""

import re
from datetime import date

from dateutil import parser as date_parser

from billscan.models import BillFields, CustomerInfo, PaymentInfo
from billscan.utils.config import ExtractionConfig
from billscan.utils.logger import get_logger

from .patterns import (
    ACCOUNT_NAME_PATTERNS,
    ACCOUNT_NUMBER_PATTERNS,
    ADDRESS_PATTERNS,
    BANK_NAME_PATTERNS,
    BILL_DATE_PATTERNS,
    BILL_NUMBER_PATTERNS,
    CUSTOMER_NAME_PATTERNS,
    DUE_DATE_PATTERNS,
    EMAIL_PATTERNS,
    GST_AMOUNT_PATTERNS,
    GSTIN_PATTERNS,
    PHONE_PATTERNS,
    TOTAL_PATTERNS,
    first_match,
    parse_amount,
    split_lines,
)

logger = get_logger(__name__)

# dateutil applies dayfirst even to ISO-style dates, swapping month and day.
_YEAR_FIRST = re.compile(r"^\d{4}[/.\-]")


class FieldExtractor:
    """Pattern-cascade extractor for the non-tabular parts of a bill.

    Args:
        config: Extraction defaults; only ``dayfirst`` is used here.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract_fields(self, raw_text: str) -> BillFields:
        """Extract bill number, date, amounts and sub-records from OCR text."""
        return self.extract_from_lines(split_lines(raw_text))

    def extract_from_lines(self, lines: list[str]) -> BillFields:
        """Extract all fields from pre-split OCR lines."""
        bill_date, inferred = self.extract_bill_date(lines)
        fields = BillFields(
            bill_number=first_match(lines, BILL_NUMBER_PATTERNS),
            bill_date=bill_date,
            date_was_inferred=inferred,
            total_amount=parse_amount(first_match(lines, TOTAL_PATTERNS)),
            gst_amount=parse_amount(first_match(lines, GST_AMOUNT_PATTERNS)),
            customer_info=self.extract_customer_info(lines),
            payment_info=self.extract_payment_info(lines),
        )

        found = sum(
            value is not None
            for record in (fields, fields.customer_info, fields.payment_info)
            for name, value in vars(record).items()
            if name not in ("customer_info", "payment_info", "date_was_inferred")
        )
        logger.info("Field extraction recovered %d fields from %d lines", found, len(lines))
        return fields

    def extract_customer_info(self, lines: list[str]) -> CustomerInfo:
        return CustomerInfo(
            name=first_match(lines, CUSTOMER_NAME_PATTERNS),
            address=first_match(lines, ADDRESS_PATTERNS),
            phone=first_match(lines, PHONE_PATTERNS),
            email=first_match(lines, EMAIL_PATTERNS),
            gstin=first_match(lines, GSTIN_PATTERNS),
        )

    def extract_payment_info(self, lines: list[str]) -> PaymentInfo:
        return PaymentInfo(
            bank_name=first_match(lines, BANK_NAME_PATTERNS),
            account_name=first_match(lines, ACCOUNT_NAME_PATTERNS),
            account_number=first_match(lines, ACCOUNT_NUMBER_PATTERNS),
            payment_due_date=first_match(lines, DUE_DATE_PATTERNS),
        )

    def extract_bill_date(self, lines: list[str]) -> tuple[str | None, bool]:
        """Find the bill date and normalize it to ISO format.

        A date-like string that cannot be parsed is replaced with today's
        date, and the second element of the result is True so callers can
        tell a guessed date from a recognized one.

        Returns:
            ``(iso_date, was_inferred)``; ``(None, False)`` when no
            date-like text is present.
        """
        raw = first_match(lines, BILL_DATE_PATTERNS)
        if raw is None:
            return None, False
        parsed = self.parse_date(raw)
        if parsed is None:
            logger.warning("Could not parse bill date %r, using today", raw)
            return date.today().isoformat(), True
        return parsed, False

    def parse_date(self, value: str) -> str | None:
        """Parse a date string permissively; ``None`` if it is not a date."""
        try:
            dayfirst = self.config.dayfirst and not _YEAR_FIRST.match(value)
            parsed = date_parser.parse(value, dayfirst=dayfirst)
        except (ValueError, OverflowError):
            return None
        return parsed.date().isoformat()
