"""User-facing QR configuration and its validation."""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from qrchitect.content import ContentCategory, SAMPLE_CONTENT, suggest_default
from qrchitect.errors import ConfigError
from qrchitect.style import (
    DEFAULT_GRADIENT_ANGLE,
    EyeBallShape,
    EyeFrameShape,
    FillStyle,
    Gradient,
    ModuleShape,
    Solid,
    toggle_fill_mode,
)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class _Cleared:
    """Marker for a logo the user explicitly removed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "LOGO_CLEARED"

    def __bool__(self) -> bool:
        return False


LOGO_CLEARED = _Cleared()


@dataclass(frozen=True)
class QrConfig:
    """Everything the user can set for one QR code."""

    category: ContentCategory = ContentCategory.URL
    content: str = SAMPLE_CONTENT[ContentCategory.URL]
    fill: FillStyle = field(default_factory=lambda: Solid("#000000"))
    background_color: str = "#FFFFFF"
    module_shape: ModuleShape = ModuleShape.SQUARE
    eye_frame_shape: EyeFrameShape = EyeFrameShape.SQUARE
    eye_ball_shape: EyeBallShape = EyeBallShape.SQUARE
    logo: bytes | _Cleared | None = None

    @property
    def use_gradient(self) -> bool:
        return isinstance(self.fill, Gradient)

    def with_category(self, category: ContentCategory) -> "QrConfig":
        """Switch category, swapping in sample content if the old one no longer fits."""
        category = ContentCategory(category)
        if category is self.category:
            return self
        return replace(self, category=category, content=suggest_default(category, self.content))

    def with_fill_toggled(self) -> "QrConfig":
        return replace(self, fill=toggle_fill_mode(self.fill))

    def with_logo(self, logo: bytes | None) -> "QrConfig":
        return replace(self, logo=logo if logo else LOGO_CLEARED)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "QrConfig":
        """Validate a raw mapping (form values, parsed JSON) into a config.

        Accepts both the camelCase field names of the web form
        (``contentType``, ``foregroundColor``, ...) and snake_case names.
        Missing fields take the defaults.

        Raises:
            ConfigError: If a field has an invalid value.
        """
        defaults = cls()
        get = _Lookup(values)

        category = _enum(ContentCategory, "content_type", get("content_type", "category"), defaults.category)
        content = get("content")
        content = defaults.content if content is None else str(content)

        foreground = _color("foreground_color", get("foreground_color", "color"), "#000000")
        background = _color("background_color", get("background_color"), defaults.background_color)
        start = _color("gradient_start_color", get("gradient_start_color"), "#000000")
        end = _color("gradient_end_color", get("gradient_end_color"), "#666666")
        angle = _angle(get("gradient_angle"))

        if _flag("use_gradient", get("use_gradient")):
            fill: FillStyle = Gradient(start=start, end=end, angle=angle)
        else:
            fill = Solid(color=foreground, last_angle=angle)

        logo = get("logo")
        if logo is not None and not isinstance(logo, (bytes, bytearray)):
            raise ConfigError("logo", "expected binary image data")

        return cls(
            category=category,
            content=content,
            fill=fill,
            background_color=background,
            module_shape=_enum(ModuleShape, "dot_style", get("dot_style", "module_shape"), defaults.module_shape),
            eye_frame_shape=_enum(
                EyeFrameShape, "eye_style", get("eye_style", "eye_frame_shape"), defaults.eye_frame_shape
            ),
            eye_ball_shape=_enum(
                EyeBallShape, "eyeball_style", get("eyeball_style", "eye_ball_shape"), defaults.eye_ball_shape
            ),
            logo=bytes(logo) if logo else None,
        )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class _Lookup:
    """Find a value under any of several snake_case names or their camelCase form."""

    def __init__(self, values: Mapping[str, Any]):
        self._values = values

    def __call__(self, *names: str) -> Any:
        for name in names:
            for key in (name, _camel(name)):
                if key in self._values:
                    return self._values[key]
        return None


def _enum(enum_cls: type[Enum], name: str, value: Any, default: Enum) -> Any:
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(name, f"{value!r} is not one of: {choices}") from None


def _color(name: str, value: Any, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise ConfigError(name, f"{value!r} is not a hex color like #RRGGBB")
    return value


def _angle(value: Any) -> int:
    if value is None:
        return DEFAULT_GRADIENT_ANGLE
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError("gradient_angle", f"{value!r} is not an integer")
    if not 0 <= value <= 360:
        raise ConfigError("gradient_angle", f"{value} is outside 0-360")
    return value


def _flag(name: str, value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(name, f"{value!r} is not true/false")
    return value
