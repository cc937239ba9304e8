"""Background decoding of logo images into data URIs."""

import base64
import io
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from PIL import Image, UnidentifiedImageError

from qrchitect.errors import LogoDecodeError

logger = logging.getLogger(__name__)

_SVG_PREFIXES = (b"<svg", b"<?xml")


def sniff_mime_type(data: bytes) -> str:
    """Detect the MIME type of a logo image.

    SVG is recognised by its XML prefix; raster formats are identified by
    Pillow.

    Raises:
        LogoDecodeError: If the data is empty or not a readable image.
    """
    if not data:
        raise LogoDecodeError("Logo file is empty.")

    if data.lstrip()[:5].lower().startswith(_SVG_PREFIXES):
        return "image/svg+xml"

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise LogoDecodeError(f"Could not read logo image: {e}") from e

    if not mime:
        raise LogoDecodeError("Logo image format has no known MIME type.")
    return mime


def to_data_uri(data: bytes) -> str:
    """Encode a logo as a base64 ``data:`` URI."""
    mime = sniff_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def from_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (mime_type, raw bytes)."""
    header, _, payload = uri.partition(",")
    if not header.startswith("data:") or not header.endswith(";base64"):
        raise LogoDecodeError("Logo is not a base64 data URI.")
    return header[5:-7], base64.b64decode(payload)


class LogoSlot:
    """Holds the current logo and decodes new ones in the background.

    Each ``load`` or ``clear`` bumps a generation counter; a decode that
    finishes under an older generation is discarded, so the most recent
    request always wins.

    Args:
        on_change: Called with the slot after a decode is published or the
            logo is cleared. Runs on the decoding thread for decodes.
        decoder: Function turning raw bytes into a data URI.
        executor: Executor used for decodes. A private single-worker pool
            is created when omitted.
    """

    def __init__(
        self,
        on_change: Callable[["LogoSlot"], None] | None = None,
        decoder: Callable[[bytes], str] = to_data_uri,
        executor: ThreadPoolExecutor | None = None,
    ):
        self._on_change = on_change
        self._decoder = decoder
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="logo-decode")
        self._lock = threading.Condition()
        self._generation = 0
        self._settled = 0  # last generation whose outcome is published
        self._pending: Future | None = None
        self._data_uri: str | None = None
        self._error: LogoDecodeError | None = None

    @property
    def data_uri(self) -> str | None:
        with self._lock:
            return self._data_uri

    @property
    def error(self) -> LogoDecodeError | None:
        with self._lock:
            return self._error

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None and not self._pending.done()

    def load(self, asset: bytes) -> Future:
        """Start decoding a new logo, superseding any decode in flight."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_pending()
            self._error = None
            future = self._executor.submit(self._decoder, asset)
            self._pending = future
        logger.debug("Logo decode #%d started (%d bytes)", generation, len(asset))
        future.add_done_callback(lambda f: self._finish(generation, f))
        return future

    def clear(self) -> None:
        """Drop the logo and ignore any decode still running."""
        with self._lock:
            self._generation += 1
            self._cancel_pending()
            self._data_uri = None
            self._error = None
            generation = self._generation
        logger.debug("Logo cleared")
        self._publish(generation)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the latest decode has been published.

        Returns:
            False if the timeout expired first.
        """
        with self._lock:
            return self._lock.wait_for(lambda: self._settled == self._generation, timeout)

    def shutdown(self) -> None:
        with self._lock:
            self._generation += 1
            self._cancel_pending()
            self._settle(self._generation)
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _finish(self, generation: int, future: Future) -> None:
        if future.cancelled():
            return

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale logo decode #%d", generation)
                return
            error = future.exception()
            if error is None:
                self._data_uri = future.result()
                self._error = None
            else:
                if not isinstance(error, LogoDecodeError):
                    error = LogoDecodeError(str(error))
                logger.warning("Logo could not be decoded: %s", error)
                self._data_uri = None
                self._error = error
            self._pending = None
        self._publish(generation)

    def _publish(self, generation: int) -> None:
        # Listeners run before waiters are released so a re-render has
        # already happened when wait() returns.
        try:
            self._notify()
        finally:
            with self._lock:
                self._settle(generation)

    def _settle(self, generation: int) -> None:
        self._settled = max(self._settled, generation)
        self._lock.notify_all()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
