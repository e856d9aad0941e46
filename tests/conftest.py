"""Shared test fixtures for the billscan test suite."""

import io
import threading
from pathlib import Path

import pytest
from PIL import Image

from billscan.models import RawDocument

SAMPLE_BILL_TEXT = """BILLED TO: Invoice No. 12345
Imani Olowe 16 June 2005
+123-456-7890
63 Ivy Road, Hawkville, CA, USA 31036
Eggshell Camisole Top 1 $123 $123
Cuban Collar Shirt 2 $127 $254
Floral Cotton Dress 1 $123 $123
Subtotal $500
Tax (0%) $0
Total $500
Thank you!
PAYMENT INFORMATION
Briard Bank
Account Name: Samira Hadid
Account No.: 123-456-7890
Samira Hadid
Pay by: 5 July 2025 123
Anywhere St., Any City, ST 12345"""


class FakeWorker:
    """In-memory recognition worker that records how it is used."""

    def __init__(self, text: str = "Invoice No. 1\nTotal 10") -> None:
        self.text = text
        self.calls = 0
        self.documents: list[RawDocument] = []
        self.active = 0
        self.max_active = 0
        self.terminated = False
        self.release = threading.Event()
        self.release.set()
        self.started = threading.Event()
        self._lock = threading.Lock()

    def recognize(self, document: RawDocument) -> str:
        with self._lock:
            self.calls += 1
            self.documents.append(document)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.started.set()
        self.release.wait(timeout=5)
        with self._lock:
            self.active -= 1
        return self.text

    def terminate(self) -> None:
        self.terminated = True


class CountingFactory:
    """Worker factory that counts how many workers it spawned."""

    def __init__(self, text: str = "Invoice No. 1\nTotal 10") -> None:
        self.text = text
        self.workers: list[FakeWorker] = []

    def __call__(self) -> FakeWorker:
        worker = FakeWorker(self.text)
        self.workers.append(worker)
        return worker


@pytest.fixture
def sample_bill_text() -> str:
    return SAMPLE_BILL_TEXT


@pytest.fixture
def worker_factory() -> CountingFactory:
    return CountingFactory()


def _encode(size: tuple[int, int], fmt: str, mode: str = "RGB") -> bytes:
    image = Image.new(mode, size, color="white")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image_bytes():
    """Return a builder for encoded in-memory test images."""
    return _encode


@pytest.fixture
def png_document() -> RawDocument:
    return RawDocument(data=_encode((400, 300), "PNG"), media_type="image/png", filename="bill.png")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def rotated_jpeg_bytes() -> bytes:
    """A 400x200 JPEG whose EXIF orientation shows it as a 200x400 portrait."""
    image = Image.new("RGB", (400, 200), color="white")
    exif = Image.Exif()
    exif[0x0112] = 6  # Orientation: rotate 90 CW
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()
