import pytest

from qrchitect.config import LOGO_CLEARED, QrConfig
from qrchitect.content import ContentCategory
from qrchitect.errors import ConfigError
from qrchitect.style import EyeBallShape, EyeFrameShape, Gradient, ModuleShape, Solid


def test_defaults_match_the_form():
    config = QrConfig()
    assert config.category is ContentCategory.URL
    assert config.content == "https://example.com"
    assert config.fill == Solid("#000000")
    assert config.background_color == "#FFFFFF"
    assert config.module_shape is ModuleShape.SQUARE
    assert config.logo is None


def test_from_mapping_with_form_field_names():
    config = QrConfig.from_mapping({
        "contentType": "email",
        "content": "me@example.com",
        "useGradient": True,
        "foregroundColor": "#000000",
        "backgroundColor": "#FFFFEE",
        "gradientStartColor": "#000000",
        "gradientEndColor": "#666666",
        "gradientAngle": 90,
        "dotStyle": "rounded",
        "eyeStyle": "circle",
        "eyeballStyle": "diamond",
    })
    assert config.category is ContentCategory.EMAIL
    assert config.fill == Gradient("#000000", "#666666", 90)
    assert config.background_color == "#FFFFEE"
    assert config.module_shape is ModuleShape.ROUNDED
    assert config.eye_frame_shape is EyeFrameShape.CIRCLE
    assert config.eye_ball_shape is EyeBallShape.DIAMOND


def test_from_mapping_with_snake_case_names():
    config = QrConfig.from_mapping({
        "content_type": "phone",
        "content": "+1 555",
        "foreground_color": "#123",
        "dot_style": "dots",
    })
    assert config.category is ContentCategory.PHONE
    assert config.fill == Solid("#123")
    assert config.module_shape is ModuleShape.DOTS


def test_snake_case_wins_over_camel_case():
    config = QrConfig.from_mapping({"contentType": "email", "content_type": "text", "content": "x"})
    assert config.category is ContentCategory.TEXT


def test_empty_content_is_kept_for_the_resolver():
    assert QrConfig.from_mapping({"content": ""}).content == ""


@pytest.mark.parametrize("values, field", [
    ({"contentType": "sms"}, "content_type"),
    ({"foregroundColor": "black"}, "foreground_color"),
    ({"backgroundColor": "#12"}, "background_color"),
    ({"gradientAngle": 361}, "gradient_angle"),
    ({"gradientAngle": -1}, "gradient_angle"),
    ({"gradientAngle": "45"}, "gradient_angle"),
    ({"useGradient": "yes"}, "use_gradient"),
    ({"dotStyle": "hexagon"}, "dot_style"),
    ({"eyeStyle": "diamond"}, "eye_style"),
    ({"eyeballStyle": "rounded"}, "eyeball_style"),
    ({"logo": "logo.png"}, "logo"),
])
def test_from_mapping_rejects_invalid_values(values, field):
    with pytest.raises(ConfigError) as exc_info:
        QrConfig.from_mapping(values)
    assert exc_info.value.field == field
    assert isinstance(exc_info.value, ValueError)


def test_angle_bounds_are_inclusive():
    assert QrConfig.from_mapping({"useGradient": True, "gradientAngle": 0}).fill.angle == 0
    assert QrConfig.from_mapping({"useGradient": True, "gradientAngle": 360}).fill.angle == 360


def test_with_category_swaps_in_sample_content():
    config = QrConfig().with_category(ContentCategory.EMAIL)
    assert config.category is ContentCategory.EMAIL
    assert config.content == "example@email.com"


def test_with_category_same_category_is_noop():
    config = QrConfig(content="anything")
    assert config.with_category(ContentCategory.URL) is config


def test_with_fill_toggled():
    config = QrConfig(fill=Solid("#112233")).with_fill_toggled()
    assert config.use_gradient
    assert config.fill.start == config.fill.end == "#112233"


def test_with_logo_none_marks_cleared():
    config = QrConfig().with_logo(b"data").with_logo(None)
    assert config.logo is LOGO_CLEARED
    assert not config.logo
