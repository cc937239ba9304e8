"""Preview session: one configuration, one logo slot, one live engine."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from qrchitect import PRODUCT_NAME
from qrchitect.config import LOGO_CLEARED, QrConfig
from qrchitect.content import ContentCategory
from qrchitect.engine import ExportFormat, QrEngine, Surface
from qrchitect.errors import EmptyContentError, EngineUnavailableError, ErrorKind, PayloadTooLargeError
from qrchitect.logo import LogoSlot
from qrchitect.resolver import RenderRequest, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOutcome:
    """Result of one render attempt.

    ``error`` blocks the render and the previous surface stays as it was;
    ``logo_error`` is a warning only, the code is rendered without the logo.
    """

    request: RenderRequest | None = None
    error: ErrorKind | None = None
    message: str | None = None
    logo_error: ErrorKind | None = None

    @property
    def rendered(self) -> bool:
        return self.request is not None and self.error is None


@dataclass(frozen=True)
class ExportResult:
    filename: str
    data: bytes
    mime_type: str


def export_filename(category: ContentCategory, fmt: ExportFormat | str, timestamp_ms: int | None = None) -> str:
    """Build ``qrchitect-<Category>-<unix millis>.<ext>``."""
    fmt = ExportFormat(fmt)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{PRODUCT_NAME}-{ContentCategory(category).title}-{timestamp_ms}.{fmt.value}"


class PreviewSession:
    """Owns a configuration and keeps a preview surface in sync with it.

    Call ``set_config`` (or one of the ``with_*`` helpers on QrConfig followed
    by ``set_config``) after every change; the session re-resolves and
    redraws. The first successful render constructs the engine, later ones
    update it. A finished logo decode triggers another render.

    Args:
        config: Initial configuration.
        surface: Preview surface to draw into.
        engine_factory: Builds the engine on first render; defaults to
            ``QrEngine.construct``.
        on_render: Called with each RenderOutcome.
    """

    def __init__(
        self,
        config: QrConfig | None = None,
        surface: Surface | None = None,
        engine_factory: Callable[[Surface, RenderRequest], QrEngine] = QrEngine.construct,
        on_render: Callable[[RenderOutcome], None] | None = None,
    ):
        self._config = config or QrConfig()
        self._surface = surface or Surface()
        self._engine_factory = engine_factory
        self._on_render = on_render
        self._engine: QrEngine | None = None
        self._outcome = RenderOutcome()
        self._render_lock = threading.RLock()
        self._logo = LogoSlot(on_change=lambda _slot: self.render())
        self._logo_source: bytes | None = None
        self._sync_logo()

    @property
    def config(self) -> QrConfig:
        return self._config

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def engine(self) -> QrEngine | None:
        return self._engine

    @property
    def logo(self) -> LogoSlot:
        return self._logo

    @property
    def outcome(self) -> RenderOutcome:
        return self._outcome

    def set_config(self, config: QrConfig) -> RenderOutcome:
        """Replace the configuration and render it."""
        self._config = config
        self._sync_logo()
        return self.render()

    def set_category(self, category: ContentCategory) -> RenderOutcome:
        return self.set_config(self._config.with_category(category))

    def toggle_fill_mode(self) -> RenderOutcome:
        return self.set_config(self._config.with_fill_toggled())

    def set_logo(self, logo: bytes | None) -> RenderOutcome:
        return self.set_config(self._config.with_logo(logo))

    def render(self) -> RenderOutcome:
        """Resolve the current configuration and push it to the engine."""
        with self._render_lock:
            outcome = self._outcome = self._render()
        if self._on_render is not None:
            self._on_render(outcome)
        return outcome

    def export(self, fmt: ExportFormat | str) -> ExportResult:
        """Export the current preview.

        Raises:
            EngineUnavailableError: If no engine has been constructed.
        """
        fmt = ExportFormat(fmt)
        with self._render_lock:
            if self._engine is None:
                raise EngineUnavailableError("The preview is not available; nothing to export.")
            data = self._engine.export(fmt)
        filename = export_filename(self._config.category, fmt)
        logger.info("Exported %s (%d bytes)", filename, len(data))
        return ExportResult(filename=filename, data=data, mime_type=fmt.mime_type)

    def close(self) -> None:
        self._logo.shutdown()

    def __enter__(self) -> "PreviewSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _render(self) -> RenderOutcome:
        try:
            request = resolve(self._config, logo=self._logo.data_uri)
        except EmptyContentError as e:
            logger.debug("Render skipped: %s", e)
            return RenderOutcome(error=ErrorKind.EMPTY_CONTENT, message=str(e))

        logo_error = None
        if self._config.logo and self._logo.error is not None:
            logo_error = ErrorKind.LOGO_DECODE_FAILURE

        try:
            if self._engine is None:
                self._engine = self._engine_factory(self._surface, request)
            else:
                self._engine.update(request)
        except EngineUnavailableError as e:
            logger.error("Rendering engine unavailable: %s", e)
            return RenderOutcome(error=ErrorKind.ENGINE_UNAVAILABLE, message=str(e))
        except PayloadTooLargeError as e:
            logger.warning("Render skipped: %s", e)
            return RenderOutcome(error=ErrorKind.PAYLOAD_TOO_LARGE, message=str(e))

        return RenderOutcome(request=request, logo_error=logo_error)

    def _sync_logo(self) -> None:
        """Start a decode when the configured logo changed, or clear it."""
        logo = self._config.logo
        if logo is None or logo is LOGO_CLEARED:
            if self._logo_source is not None:
                self._logo_source = None
                self._logo.clear()
            return
        if logo != self._logo_source:
            self._logo_source = logo
            self._logo.load(logo)
