import io

import pytest
from PIL import Image

from qrchitect.config import QrConfig
from qrchitect.content import ContentCategory
from qrchitect.style import EyeBallShape, EyeFrameShape, ModuleShape, Solid


def _make_png(color: str = "#FF0000", size: tuple[int, int] = (40, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png():
    return _make_png


@pytest.fixture
def png_logo() -> bytes:
    return _make_png()


@pytest.fixture
def phone_config() -> QrConfig:
    return QrConfig(
        category=ContentCategory.PHONE,
        content="555-1234",
        fill=Solid("#000000"),
        background_color="#FFFFFF",
        module_shape=ModuleShape.DOTS,
        eye_frame_shape=EyeFrameShape.CIRCLE,
        eye_ball_shape=EyeBallShape.SQUARE,
    )
