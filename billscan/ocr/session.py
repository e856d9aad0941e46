"""Explicitly owned recognition session around a single OCR worker.

The worker is expensive to start and handles one job at a time, so a
session starts it lazily, reuses it for every call and serializes calls
through it. The owner ends the session with :meth:`terminate`.

State machine::

    UNINITIALIZED -> READY -> BUSY -> READY -> ... -> TERMINATED
"""

import threading
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from billscan.exceptions import SessionClosedError
from billscan.models import RawDocument
from billscan.utils.logger import get_logger

logger = get_logger(__name__)


class SessionState(StrEnum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    BUSY = "busy"
    TERMINATED = "terminated"


class RecognitionWorker(Protocol):
    """What a session needs from an OCR worker."""

    def recognize(self, document: RawDocument) -> str: ...

    def terminate(self) -> None: ...


class RecognitionSession:
    """Owns one recognition worker and gates access to it.

    Concurrent first callers share a single worker start-up. A call made
    while another is running waits for it. After :meth:`terminate`, new
    and waiting calls raise :class:`SessionClosedError`, and a call that
    was running when the session ended raises it instead of returning.

    Args:
        worker_factory: Builds the worker on first use. Errors it raises
            propagate to the caller and leave the session uninitialized.
    """

    def __init__(self, worker_factory: Callable[[], RecognitionWorker]) -> None:
        self._worker_factory = worker_factory
        self._worker: RecognitionWorker | None = None
        self._state = SessionState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._job_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is SessionState.TERMINATED

    def extract_text(self, document: RawDocument) -> str:
        """Recognize the text of a document.

        Args:
            document: A validated, normalized document.

        Returns:
            The raw recognized text, unvalidated.

        Raises:
            RecognitionError: If the worker fails to start or to recognize.
            SessionClosedError: If the session is or becomes terminated.
        """
        worker = self._ensure_worker()

        with self._job_lock:
            with self._state_lock:
                if self.closed:
                    raise SessionClosedError()
                self._state = SessionState.BUSY
            try:
                text = worker.recognize(document)
            finally:
                with self._state_lock:
                    if not self.closed:
                        self._state = SessionState.READY

        if self.closed:
            raise SessionClosedError("Recognition session was terminated during the call")
        if not text.strip():
            logger.warning("Recognition returned no text for %s", document.filename)
        return text

    def terminate(self) -> None:
        """End the session and release the worker. Safe to call repeatedly."""
        with self._state_lock:
            if self.closed:
                return
            worker, self._worker = self._worker, None
            self._state = SessionState.TERMINATED

        if worker is not None:
            worker.terminate()
        logger.info("Recognition session terminated")

    def _ensure_worker(self) -> RecognitionWorker:
        with self._state_lock:
            if self.closed:
                raise SessionClosedError()
            if self._worker is None:
                logger.info("Starting recognition worker")
                self._worker = self._worker_factory()
                self._state = SessionState.READY
            return self._worker

    def __enter__(self) -> "RecognitionSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()
