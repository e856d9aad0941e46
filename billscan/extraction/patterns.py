"""Ordered regex cascades for bill fields, plus the helpers that run them.

Each field has a list of patterns going from specific to loose ("Bill
No" before a bare "Bill"). OCR output is scanned line by line; the first
line on which any pattern of the list matches supplies the value. The
redundancy is intentional: bills vary wildly in layout and OCR mangles
labels, so several weaker patterns recover more fields than one strict
pattern.
"""

import re
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation

from billscan.utils.logger import get_logger

logger = get_logger(__name__)

# Currency markers may precede an amount but are never captured.
CURRENCY = r"(?:₹|Rs\.?|INR|\$|€|£)?"
# Digits with optional thousands separators and decimals, not glued to a word.
AMOUNT = r"(\d[\d,]*(?:\.\d+)?)(?!\w)"
MONEY = rf"{CURRENCY}\s*{AMOUNT}"

_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_NUMERIC_DMY = r"\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}"
_NUMERIC_YMD = r"\d{4}[/.\-]\d{1,2}[/.\-]\d{1,2}"
_DAY_MONTH_YEAR = rf"\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTH},?\s+\d{{2,4}}"
_MONTH_DAY_YEAR = rf"{_MONTH}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{2,4}}"
_ANY_DATE = rf"{_DAY_MONTH_YEAR}|{_MONTH_DAY_YEAR}|{_NUMERIC_YMD}|{_NUMERIC_DMY}"

# A bill identifier token; the lookahead requires at least one digit so
# words like "BILLED" or "Details" are never taken for a number.
_BILL_ID = r"(?=[A-Z0-9\-/]*\d)([A-Z0-9][A-Z0-9\-/]*)"
_TEXT_VALUE = r"([^:\s].*)"
_STREET = (
    r"(?:Road|Rd|Street|St|Avenue|Ave|Lane|Ln|Drive|Dr|Boulevard|Blvd|Place"
    r"|Court|Way|Terrace|Circle|Square|Plaza|Heights|Gardens|Park|Nagar|Marg"
    r"|Colony|Sector)"
)


def compile_patterns(*patterns: str, flags: int = re.IGNORECASE) -> tuple[re.Pattern[str], ...]:
    """Compile a cascade, keeping its order."""
    return tuple(re.compile(p, flags) for p in patterns)


BILL_NUMBER_PATTERNS = compile_patterns(
    rf"\bbill\s*(?:no|number|num)\b\.?[:#\s.]*{_BILL_ID}",
    rf"\binvoice\s*(?:no|number|num)\b\.?[:#\s.]*{_BILL_ID}",
    rf"\b(?:bill|invoice|inv)\s*#\s*{_BILL_ID}",
    rf"\bbill\b[:#\s]+{_BILL_ID}",
    rf"\binvoice\b[:#\s]+{_BILL_ID}",
)

BILL_DATE_PATTERNS = compile_patterns(
    rf"\b(?:bill\s*|invoice\s*)?date\b[:\s]*({_NUMERIC_DMY})\b",
    rf"\b(?:bill\s*|invoice\s*)?date\b[:\s]*({_NUMERIC_YMD})\b",
    rf"\b(?:bill\s*|invoice\s*)?date\b[:\s]*({_DAY_MONTH_YEAR}|{_MONTH_DAY_YEAR})\b",
    rf"\b({_NUMERIC_DMY})\b",
    rf"\b({_NUMERIC_YMD})\b",
    rf"\b({_DAY_MONTH_YEAR})\b",
    rf"\b({_MONTH_DAY_YEAR})\b",
)

TOTAL_PATTERNS = compile_patterns(
    rf"\btotal\b[:\s]*{MONEY}",
    rf"\bgrand\s*total\b[:\s]*{MONEY}",
    rf"\btotal\s+(?:amount|due|payable)\b[:\s]*{MONEY}",
    rf"\b(?:amount|balance)\s+(?:due|payable)\b[:\s]*{MONEY}",
    rf"\bnet\s+amount\b[:\s]*{MONEY}",
    rf"\bamount\b[:\s]*{MONEY}",
    rf"\bsub\s*-?\s*total\b[:\s]*{MONEY}",
)

GST_AMOUNT_PATTERNS = compile_patterns(
    rf"\b(?:[csi]?gst|tax)\s*\([^)]*\)[:\s]*{MONEY}",
    rf"\b(?:[csi]?gst|tax)\s*@\s*[\d.]+\s*%[:\s]*{MONEY}",
    rf"\b[csi]?gst\b(?:\s*amount)?[:\s]*{MONEY}",
    rf"\btax\b(?:\s*amount)?[:\s]*{MONEY}",
)

CUSTOMER_NAME_PATTERNS = compile_patterns(
    rf"\bbill(?:ed)?\s+to\b[:\s]*{_TEXT_VALUE}",
    rf"\bcustomer(?:\s+name)?\b[:\s]*{_TEXT_VALUE}",
    rf"\bclient(?:\s+name)?\b[:\s]*{_TEXT_VALUE}",
    rf"\bbuyer(?:\s+name)?\b[:\s]*{_TEXT_VALUE}",
)

ADDRESS_PATTERNS = compile_patterns(
    rf"\baddress\b[:\s]*{_TEXT_VALUE}",
    rf"(\d+[\w\s,.\-/#]*?\b{_STREET}\b[\w\s,.\-/#]*?\b\d{{5,6}})\b",
)

PHONE_PATTERNS = compile_patterns(
    r"\b(?:phone|ph|tel|telephone|mobile|mob|contact)(?:\s*no)?\b\.?[:\s]*(\+?[\d(][\d\s()\-]{6,}\d)",
    r"(\+\d{1,3}(?:[\s\-]?\(?\d{2,5}\)?){2,4})(?!\d)",
)

EMAIL_PATTERNS = compile_patterns(
    r"\be-?mail\b[:\s]*([\w.%+\-]+@[\w.\-]+\.[A-Za-z]{2,})",
    r"([\w.%+\-]+@[\w.\-]+\.[A-Za-z]{2,})",
)

# Only the label is case-insensitive: a GSTIN is exactly 15 upper-case
# alphanumerics and anything longer or shorter is rejected.
GSTIN_PATTERNS = compile_patterns(
    r"(?i:\bgstin\b)(?:\s*(?i:no|number))?\.?[:\s]*([A-Z0-9]{15})(?![A-Za-z0-9])",
    r"(?i:\bgst\b)(?:\s*(?i:no|number|reg(?:istration)?\s*no))?\.?[:\s]*([A-Z0-9]{15})(?![A-Za-z0-9])",
    flags=0,
)

BANK_NAME_PATTERNS = compile_patterns(
    r"\b(bank\s+of\s+[A-Za-z][A-Za-z\s]*)",
    r"\bbank(?:\s*name)?\b[:\s]+([A-Za-z][A-Za-z\s&.]*)",
    r"\bpayment\s+information\b[:\s]*([A-Za-z][A-Za-z\s]*)",
    r"([A-Za-z][A-Za-z&.\s]*?\bbank)\b",
)

ACCOUNT_NAME_PATTERNS = compile_patterns(
    r"\b(?:account|a/c)\s*(?:holder\s*)?name\b[:\s]*([A-Za-z][A-Za-z\s.]*)",
    r"\baccount\s+holder\b[:\s]*([A-Za-z][A-Za-z\s.]*)",
)

ACCOUNT_NUMBER_PATTERNS = compile_patterns(
    r"\b(?:account|acct|acc)\.?\s*(?:no|number|num)\b\.?[:\s]*(\d[\d\s\-]*\d)",
    r"\ba/c\s*(?:no|number)?\b\.?[:\s]*(\d[\d\s\-]*\d)",
)

DUE_DATE_PATTERNS = compile_patterns(
    rf"\bpay\s+by\b[:\s]*({_ANY_DATE})\b",
    rf"\bdue\s+(?:date|on)\b[:\s]*({_ANY_DATE})\b",
    rf"\bpayment\s+due(?:\s+date)?\b[:\s]*({_ANY_DATE})\b",
)


def split_lines(text: str) -> list[str]:
    """Split OCR text into stripped, non-empty lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def first_match(
    lines: Iterable[str], patterns: Sequence[re.Pattern[str]]
) -> str | None:
    """Return the capture of the first line matching any pattern.

    Lines are scanned in order and, on each line, patterns in cascade
    order. The search stops at the first hit.

    Args:
        lines: Pre-split OCR lines.
        patterns: Compiled cascade whose first group holds the value.

    Returns:
        The stripped capture, or ``None`` when nothing matches.
    """
    for line in lines:
        for pattern in patterns:
            match = pattern.search(line)
            if match:
                value = match.group(1).strip()
                if value:
                    logger.debug("Pattern %r matched %r", pattern.pattern[:40], value)
                    return value
    return None


def parse_amount(value: str | None) -> Decimal | None:
    """Parse a captured money string, dropping thousands separators."""
    if value is None:
        return None
    try:
        return Decimal(value.replace(",", ""))
    except InvalidOperation:
        logger.debug("Unparseable amount %r", value)
        return None
