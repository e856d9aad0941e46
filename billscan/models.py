"""Data records passed between pipeline stages.

Every field the extractor may fail to find is optional. ``None`` means
"not recognized", which is the normal outcome for noisy scans and is
left for a human to fill in.
"""

import mimetypes
import uuid
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any


def normalize_media_type(media_type: str) -> str:
    """Lower-case a media type and drop any ``;`` parameters."""
    return media_type.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class RawDocument:
    """An uploaded document as received from the caller."""

    data: bytes
    media_type: str
    size: int = -1
    filename: str = "document"

    def __post_init__(self) -> None:
        object.__setattr__(self, "media_type", normalize_media_type(self.media_type))
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")

    @classmethod
    def from_path(cls, path: Path | str, media_type: str | None = None) -> "RawDocument":
        """Read a document from disk.

        Args:
            path: File to read.
            media_type: Declared media type. Guessed from the file
                extension when omitted.

        Returns:
            The document with its on-disk byte size.
        """
        path = Path(path)
        if media_type is None:
            media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(data=path.read_bytes(), media_type=media_type, filename=path.name)


@dataclass
class CustomerInfo:
    """Who the bill is addressed to."""

    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    gstin: str | None = None


@dataclass
class PaymentInfo:
    """Where and by when the bill should be paid."""

    bank_name: str | None = None
    account_name: str | None = None
    account_number: str | None = None
    payment_due_date: str | None = None


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass
class LineItem:
    """One purchased product or service row of a bill."""

    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    id: str = field(default_factory=new_item_id)


@dataclass
class BillFields:
    """Scalar fields and sub-records recovered by the field extractor."""

    bill_number: str | None = None
    bill_date: str | None = None
    date_was_inferred: bool = False
    total_amount: Decimal | None = None
    gst_amount: Decimal | None = None
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)
    payment_info: PaymentInfo = field(default_factory=PaymentInfo)


@dataclass
class ExtractionResult:
    """Everything recovered from one bill, plus the raw OCR text.

    ``date_was_inferred`` is True when a date-like string was found but
    could not be parsed and today's date was used instead.
    """

    raw_text: str
    bill_number: str | None = None
    bill_date: str | None = None
    date_was_inferred: bool = False
    total_amount: Decimal | None = None
    gst_amount: Decimal | None = None
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)
    payment_info: PaymentInfo = field(default_factory=PaymentInfo)
    items: list[LineItem] = field(default_factory=list)

    def extracted_field_names(self) -> list[str]:
        """Names of the headline fields that were recognized, for review screens."""
        names: list[str] = []
        if self.bill_number:
            names.append("Bill Number")
        if self.bill_date:
            names.append("Date")
        if self.total_amount is not None:
            names.append("Total Amount")
        if self.gst_amount is not None:
            names.append("GST Amount")
        if self.customer_info.name:
            names.append("Customer Info")
        if self.payment_info.bank_name:
            names.append("Payment Info")
        if self.items:
            names.append(f"{len(self.items)} Items")
        return names

    def to_dict(self) -> dict[str, Any]:
        """Render the result as JSON-friendly primitives.

        Decimal amounts become strings so no precision is lost.
        """
        return _stringify_decimals(asdict(self))


def _stringify_decimals(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _stringify_decimals(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_decimals(v) for v in value]
    return value
