import re

import pytest

from qrchitect.config import QrConfig
from qrchitect.content import ContentCategory
from qrchitect.engine import ExportFormat, QrEngine, Surface
from qrchitect.errors import EngineUnavailableError, ErrorKind
from qrchitect.logo import to_data_uri
from qrchitect.session import PreviewSession, export_filename
from qrchitect.style import Gradient, Solid


class EngineSpy:
    """Counts construct calls and hands out real engines."""

    def __init__(self, failures: int = 0):
        self.constructed = 0
        self.failures = failures

    def __call__(self, surface, request):
        if self.failures:
            self.failures -= 1
            raise EngineUnavailableError("no canvas")
        self.constructed += 1
        return QrEngine.construct(surface, request)


@pytest.fixture
def spy():
    return EngineSpy()


def test_first_render_constructs_then_updates(spy):
    with PreviewSession(QrConfig(), engine_factory=spy) as session:
        first = session.render()
        engine = session.engine
        second = session.set_config(QrConfig(content="example.org"))

        assert first.rendered and second.rendered
        assert spy.constructed == 1
        assert session.engine is engine
        assert engine.request.payload == "https://example.org"


def test_end_to_end_phone(phone_config):
    with PreviewSession(phone_config) as session:
        outcome = session.render()

    assert outcome.rendered
    assert outcome.error is None
    options = outcome.request.as_options()
    assert options["data"] == "tel:555-1234"
    assert options["dots_options"]["type"] == "dots"
    assert options["corners_square_options"]["type"] == "dot"
    assert options["corners_dot_options"]["type"] == "square"
    assert "image" not in options


def test_empty_content_skips_render(spy):
    with PreviewSession(QrConfig(content=""), engine_factory=spy) as session:
        outcome = session.render()

        assert not outcome.rendered
        assert outcome.error is ErrorKind.EMPTY_CONTENT
        assert spy.constructed == 0
        with pytest.raises(EngineUnavailableError):
            session.export("png")

        assert session.set_config(QrConfig(content="fixed.com")).rendered


def test_engine_unavailable_is_reported_and_recoverable():
    spy = EngineSpy(failures=1)
    with PreviewSession(QrConfig(), engine_factory=spy) as session:
        outcome = session.render()
        assert outcome.error is ErrorKind.ENGINE_UNAVAILABLE
        assert outcome.message == "no canvas"
        with pytest.raises(EngineUnavailableError):
            session.export(ExportFormat.SVG)

        assert session.render().rendered
        assert spy.constructed == 1


def test_bad_surface_makes_engine_unavailable():
    with PreviewSession(QrConfig(), surface=Surface(width=300, height=100)) as session:
        assert session.render().error is ErrorKind.ENGINE_UNAVAILABLE


def test_logo_decode_triggers_render(png_logo):
    outcomes = []
    with PreviewSession(QrConfig(logo=png_logo), on_render=outcomes.append) as session:
        assert session.logo.wait(timeout=5)
        outcome = session.outcome

    assert outcome.rendered
    assert outcome.request.image == to_data_uri(png_logo)
    assert outcomes and outcomes[-1] is outcome


def test_replacing_logo_keeps_only_the_latest(make_png):
    logo_a, logo_b = make_png("#FF0000"), make_png("#0000FF")
    with PreviewSession(QrConfig()) as session:
        session.set_logo(logo_a)
        session.set_logo(logo_b)
        assert session.logo.wait(timeout=5)
        outcome = session.render()

    assert outcome.request.image == to_data_uri(logo_b)


def test_logo_decode_failure_renders_without_logo():
    with PreviewSession(QrConfig(logo=b"not an image")) as session:
        assert session.logo.wait(timeout=5)
        outcome = session.render()

    assert outcome.rendered
    assert outcome.request.image is None
    assert outcome.logo_error is ErrorKind.LOGO_DECODE_FAILURE


def test_clearing_logo(png_logo):
    with PreviewSession(QrConfig(logo=png_logo)) as session:
        session.logo.wait(timeout=5)
        outcome = session.set_logo(None)

    assert outcome.request.image is None
    assert "image" not in outcome.request.as_options()


def test_category_change_and_fill_toggle():
    with PreviewSession(QrConfig(fill=Solid("#112233"))) as session:
        outcome = session.set_category(ContentCategory.PHONE)
        assert outcome.request.payload == "tel:+1234567890"

        outcome = session.toggle_fill_mode()
        assert session.config.fill == Gradient("#112233", "#112233", 45)
        assert outcome.request.dots.fill.color is None
        assert outcome.request.dots.fill.gradient.start == "#112233"


def test_export_uses_filename_convention(phone_config):
    with PreviewSession(phone_config) as session:
        session.render()
        png = session.export("png")
        svg = session.export("svg")

    assert re.fullmatch(r"qrchitect-Phone-\d{13}\.png", png.filename)
    assert png.mime_type == "image/png"
    assert png.data.startswith(b"\x89PNG")
    assert svg.filename.endswith(".svg")
    assert b"<svg" in svg.data


def test_export_filename():
    assert export_filename(ContentCategory.EMAIL, "svg", 1700000000000) == "qrchitect-Email-1700000000000.svg"


OVERSIZED = QrConfig(category=ContentCategory.TEXT, content="x" * 5000)


def test_oversized_payload_is_reported_and_recoverable(spy):
    with PreviewSession(OVERSIZED, engine_factory=spy) as session:
        outcome = session.render()

        assert not outcome.rendered
        assert outcome.error is ErrorKind.PAYLOAD_TOO_LARGE
        assert "too long" in outcome.message
        assert session.engine is None
        with pytest.raises(EngineUnavailableError):
            session.export("png")

        assert session.set_config(QrConfig(content="short.com")).rendered


def test_oversized_update_keeps_previous_drawing():
    with PreviewSession(QrConfig()) as session:
        session.render()
        previous = session.engine.request

        outcome = session.set_config(OVERSIZED)

        assert outcome.error is ErrorKind.PAYLOAD_TOO_LARGE
        assert session.engine.request is previous
        assert session.export("png").data.startswith(b"\x89PNG")


def test_oversized_payload_after_logo_decode_still_notifies(png_logo):
    outcomes = []
    config = OVERSIZED.with_logo(png_logo)
    with PreviewSession(config, on_render=outcomes.append) as session:
        assert session.logo.wait(timeout=5)

    assert outcomes
    assert all(o.error is ErrorKind.PAYLOAD_TOO_LARGE for o in outcomes)


def test_render_returns_its_own_outcome():
    sessions, nested = [], []

    def rerender(outcome):
        if sessions:
            session = sessions.pop()
            nested.append(session.set_config(QrConfig(content="second.com")))

    with PreviewSession(QrConfig(content="first.com"), on_render=rerender) as session:
        sessions.append(session)
        outcome = session.render()

    assert outcome.request.payload == "https://first.com"
    assert nested[0].request.payload == "https://second.com"
    assert session.outcome is nested[0]
