"""Fill and shape styling, translated into the rendering engine's vocabulary."""

import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_GRADIENT_ANGLE = 45


# ---------------------------------------------------------------------------
# Fill styles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Solid:
    """Flat foreground color."""

    color: str
    # Last gradient angle, kept so a Gradient -> Solid -> Gradient round trip
    # does not reset the slider.
    last_angle: int = DEFAULT_GRADIENT_ANGLE


@dataclass(frozen=True)
class Gradient:
    """Two-stop linear gradient; angle in degrees (0-360)."""

    start: str
    end: str
    angle: int = DEFAULT_GRADIENT_ANGLE


FillStyle = Solid | Gradient


def toggle_fill_mode(fill: FillStyle) -> FillStyle:
    """Switch between solid and gradient fill without a visual jump.

    Going to gradient seeds both stops with the solid color. Going back to
    solid keeps the gradient's start color.
    """
    if isinstance(fill, Solid):
        return Gradient(start=fill.color, end=fill.color, angle=fill.last_angle)
    return Solid(color=fill.start, last_angle=fill.angle)


# ---------------------------------------------------------------------------
# Engine-side fill parameters
# ---------------------------------------------------------------------------

class Region(Enum):
    """Independently stylable zones of a QR code."""

    MODULES = "modules"
    EYE_FRAME = "eye_frame"
    EYE_BALL = "eye_ball"


@dataclass(frozen=True)
class GradientParams:
    start: str
    end: str
    angle: int

    @property
    def rotation(self) -> float:
        """Gradient rotation in radians, as the engine expects it."""
        return math.radians(self.angle)

    def as_options(self) -> dict:
        return {
            "type": "linear",
            "rotation": self.rotation,
            "color_stops": [
                {"offset": 0, "color": self.start},
                {"offset": 1, "color": self.end},
            ],
        }


@dataclass(frozen=True)
class FillParams:
    """Engine fill descriptor. Exactly one of color/gradient is set."""

    color: str | None = None
    gradient: GradientParams | None = None

    def __post_init__(self):
        if (self.color is None) == (self.gradient is None):
            raise ValueError("FillParams needs exactly one of color or gradient.")

    def as_options(self) -> dict:
        return {
            "color": self.color,
            "gradient": self.gradient.as_options() if self.gradient else None,
        }


def resolve_fill(fill: FillStyle, region: Region) -> FillParams:
    """Convert a fill style into the engine's nullable color/gradient pair.

    The unused field is always ``None`` so a value from a previous fill mode
    never leaks into the render. The same fill currently applies to every
    region; ``region`` is accepted so callers stay explicit about where the
    fill goes.
    """
    if isinstance(fill, Solid):
        return FillParams(color=fill.color, gradient=None)
    if isinstance(fill, Gradient):
        return FillParams(color=None, gradient=GradientParams(fill.start, fill.end, fill.angle))
    raise TypeError(f"Unsupported fill style for {Region(region).value}: {fill!r}")


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

class ModuleShape(Enum):
    SQUARE = "square"
    DOTS = "dots"
    ROUNDED = "rounded"


class EyeFrameShape(Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    ROUNDED = "rounded"


class EyeBallShape(Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    DIAMOND = "diamond"


# Engine primitives
ENGINE_MODULE_TYPES = ("square", "dots", "rounded")
ENGINE_FRAME_TYPES = ("square", "dot", "extra-rounded")
ENGINE_BALL_TYPES = ("square", "dot")

_FRAME_TYPES = {
    "square": "square",
    "circle": "dot",
    "rounded": "extra-rounded",
}

# The engine has no diamond primitive; it is drawn as a dot.
_BALL_TYPES = {
    "square": "square",
    "circle": "dot",
    "diamond": "dot",
}


def _shape_value(shape) -> str:
    return shape.value if isinstance(shape, Enum) else str(shape)


def module_type(shape: ModuleShape | str) -> str:
    """Engine primitive for data modules. Unknown values draw as squares."""
    value = _shape_value(shape)
    if value in ENGINE_MODULE_TYPES:
        return value
    logger.debug("Unknown module shape %r, using square", value)
    return "square"


def eye_frame_type(shape: EyeFrameShape | str) -> str:
    """Engine primitive for eye frames: square, dot or extra-rounded.

    Anything that is not square and not one of the two named alternates is
    drawn as a rounded dot-like frame.
    """
    value = _shape_value(shape)
    return _FRAME_TYPES.get(value, "dot")


def eye_ball_type(shape: EyeBallShape | str) -> str:
    """Engine primitive for eye balls: only square or dot exist."""
    value = _shape_value(shape)
    return _BALL_TYPES.get(value, "dot")
