"""Resolve a QR configuration into an engine-ready render request."""

import logging
from dataclasses import dataclass
from typing import Any

from qrchitect.config import QrConfig
from qrchitect.content import format_content
from qrchitect.style import (
    FillParams,
    Region,
    eye_ball_type,
    eye_frame_type,
    module_type,
    resolve_fill,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionStyle:
    """Shape primitive and fill for one region of the code."""

    type: str
    fill: FillParams

    def as_options(self) -> dict[str, Any]:
        return {"type": self.type, **self.fill.as_options()}


@dataclass(frozen=True)
class RenderRequest:
    """Everything the rendering engine needs to draw one QR code.

    A pure function of the configuration; rebuilt on every change.
    """

    payload: str
    dots: RegionStyle
    corners_square: RegionStyle
    corners_dot: RegionStyle
    background_color: str
    image: str | None = None  # logo as a data URI

    def region(self, region: Region) -> RegionStyle:
        return {
            Region.MODULES: self.dots,
            Region.EYE_FRAME: self.corners_square,
            Region.EYE_BALL: self.corners_dot,
        }[Region(region)]

    def as_options(self) -> dict[str, Any]:
        """Engine option dict. The ``image`` key is left out when there is no logo."""
        options: dict[str, Any] = {
            "data": self.payload,
            "dots_options": self.dots.as_options(),
            "corners_square_options": self.corners_square.as_options(),
            "corners_dot_options": self.corners_dot.as_options(),
            "background_options": {"color": self.background_color},
        }
        if self.image is not None:
            options["image"] = self.image
        return options


def resolve(config: QrConfig, logo: str | None = None) -> RenderRequest:
    """Build the render request for a configuration.

    Args:
        config: The user's configuration.
        logo: Decoded logo data URI, if a decode has completed. Ignored when
            the configuration carries no logo or the logo was cleared.

    Returns:
        The resolved RenderRequest.

    Raises:
        EmptyContentError: If the configuration's content is empty.
    """
    payload = format_content(config.category, config.content)

    dots = RegionStyle(
        type=module_type(config.module_shape),
        fill=resolve_fill(config.fill, Region.MODULES),
    )
    corners_square = RegionStyle(
        type=eye_frame_type(config.eye_frame_shape),
        fill=resolve_fill(config.fill, Region.EYE_FRAME),
    )
    corners_dot = RegionStyle(
        type=eye_ball_type(config.eye_ball_shape),
        fill=resolve_fill(config.fill, Region.EYE_BALL),
    )

    image = logo if config.logo else None

    request = RenderRequest(
        payload=payload,
        dots=dots,
        corners_square=corners_square,
        corners_dot=corners_dot,
        background_color=config.background_color,
        image=image,
    )
    logger.debug(
        "Resolved %s request: dots=%s frame=%s ball=%s logo=%s",
        config.category.value, dots.type, corners_square.type, corners_dot.type, image is not None,
    )
    return request
