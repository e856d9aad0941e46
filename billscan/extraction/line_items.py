"""Recovery of the item table of a bill.

Rows are recognized as ``<name> <qty> <unit price> <total price>``. When
OCR scrambles the columns so that no row survives, the bill's subtotal
is turned into a single catch-all item so a recognized amount is never
lost.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

from billscan.models import LineItem
from billscan.utils.config import ExtractionConfig
from billscan.utils.logger import get_logger

from .patterns import MONEY, compile_patterns, first_match, parse_amount

logger = get_logger(__name__)

_CENT = Decimal("0.01")

# Optional serial number, product name, quantity, unit price, total price.
ROW_PATTERN = re.compile(
    r"^(?:\d+[.)]?\s+)?"
    r"([A-Za-z][A-Za-z\s&'.()\-/]*?)\s+"
    r"(\d+)\s+"
    rf"{MONEY}\s+"
    rf"{MONEY}$"
)

SUBTOTAL_PATTERNS = compile_patterns(
    rf"\bsub\s*-?\s*total\b[:\s]*{MONEY}",
)


def tax_for(total_price: Decimal, tax_rate: Decimal) -> Decimal:
    """Tax on a row total at a percentage rate, rounded to cents."""
    return (total_price * tax_rate / 100).quantize(_CENT, rounding=ROUND_HALF_UP)


class LineItemParser:
    """Parses item rows out of OCR lines.

    Args:
        config: Supplies the tax rate assumed for every row and the name
            of the synthesized subtotal item.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract_line_items(self, lines: list[str]) -> list[LineItem]:
        """Return the bill's items in source order.

        Falls back to one item built from the subtotal when no row
        matches. Returns an empty list when neither is present.
        """
        items = [item for item in map(self.parse_row, lines) if item is not None]
        if items:
            logger.info("Parsed %d line items", len(items))
            return items

        fallback = self._subtotal_item(lines)
        if fallback is None:
            logger.info("No line items or subtotal found")
            return []
        logger.info("No item rows found, synthesized one item from the subtotal")
        return [fallback]

    def parse_row(self, line: str) -> LineItem | None:
        """Parse one table row, or return ``None`` if the line is not a row.

        A row whose total is not quantity times unit price is rejected:
        such lines are usually misread columns or discount rows.
        """
        match = ROW_PATTERN.match(line)
        if not match:
            return None

        name, qty_text, unit_text, total_text = match.groups()
        quantity = int(qty_text)
        unit_price = parse_amount(unit_text)
        total_price = parse_amount(total_text)
        if quantity <= 0 or unit_price is None or total_price is None:
            return None
        if abs(quantity * unit_price - total_price) > _CENT:
            logger.debug("Rejected row with inconsistent totals: %r", line)
            return None

        rate = self.config.default_tax_rate
        return LineItem(
            product_name=name.strip(),
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
            tax_rate=rate,
            tax_amount=tax_for(total_price, rate),
        )

    def _subtotal_item(self, lines: list[str]) -> LineItem | None:
        subtotal = parse_amount(first_match(lines, SUBTOTAL_PATTERNS))
        if subtotal is None:
            return None
        return LineItem(
            product_name=self.config.fallback_item_name,
            quantity=1,
            unit_price=subtotal,
            total_price=subtotal,
            tax_rate=self.config.default_tax_rate,
            tax_amount=Decimal("0"),
        )
