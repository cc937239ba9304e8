"""Rendering engine: draws a RenderRequest onto a preview surface and exports it.

Module placement and the data module shapes come from python-qrcode
(StyledPilImage with module drawers). Eyes, gradients and the logo are drawn
here with Pillow for PNG and written as plain SVG markup for vector export.
"""

import io
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from xml.sax.saxutils import quoteattr

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.image.styledpil import StyledPilImage
from qrcode.image.styles.moduledrawers.pil import (
    CircleModuleDrawer,
    RoundedModuleDrawer,
    SquareModuleDrawer,
)
from PIL import Image, ImageColor, ImageDraw, ImageOps, UnidentifiedImageError

from qrchitect import LOGO_IMAGE_SIZE, PREVIEW_MARGIN, PREVIEW_SIZE
from qrchitect.errors import EngineUnavailableError, LogoDecodeError, PayloadTooLargeError
from qrchitect.logo import from_data_uri
from qrchitect.resolver import RegionStyle, RenderRequest
from qrchitect.style import FillParams, Region

logger = logging.getLogger(__name__)

SUPERSAMPLE = 4  # Raster drawing scale before the final LANCZOS downsample
FINDER_SIZE = 7  # Eye frame width in modules
MIN_SURFACE_SIZE = 50

_MODULE_DRAWERS = {
    "square": SquareModuleDrawer,
    "dots": CircleModuleDrawer,
    "rounded": RoundedModuleDrawer,
}


class ExportFormat(Enum):
    PNG = "png"
    SVG = "svg"

    @property
    def mime_type(self) -> str:
        return "image/png" if self is ExportFormat.PNG else "image/svg+xml"


@dataclass
class Surface:
    """Display surface an engine draws into (the live preview)."""

    width: int = PREVIEW_SIZE
    height: int = PREVIEW_SIZE
    margin: int = PREVIEW_MARGIN
    image: Image.Image | None = field(default=None, repr=False)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Box:
    """Square with optionally rounded corners; ``hole`` boxes are cut out."""

    x: float
    y: float
    size: float
    radius: float = 0.0
    corners: tuple[bool, bool, bool, bool] = (True, True, True, True)  # tl, tr, br, bl
    hole: bool = False


def _make_qr(payload: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_Q,
        border=0,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        # qrcode 8 reports overflow as "Invalid version (was 41, ...)"
        raise PayloadTooLargeError(f"QR data too long ({len(payload)} chars): {e}") from e
    return qr


def build_matrix(payload: str) -> list[list[bool]]:
    """Compute the QR module matrix for a payload (error correction level Q).

    Raises:
        PayloadTooLargeError: If the payload does not fit in a QR code.
    """
    return [[bool(cell) for cell in row] for row in _make_qr(payload).get_matrix()]


def _eye_origins(count: int) -> list[tuple[int, int]]:
    last = count - FINDER_SIZE
    return [(0, 0), (0, last), (last, 0)]


def _in_eye(row: int, col: int, count: int) -> bool:
    return any(
        r <= row < r + FINDER_SIZE and c <= col < c + FINDER_SIZE
        for r, c in _eye_origins(count)
    )


def _visible_modules(matrix: list[list[bool]], size: float, margin: float, has_logo: bool) -> list[list[bool]]:
    """Dark data modules left after removing the eyes and the logo area."""
    count = len(matrix)
    module = (size - 2 * margin) / count
    offset, side = _logo_box(size, margin)
    low, high = offset, offset + side

    def covered(row: int, col: int) -> bool:
        if not has_logo:
            return False
        x, y = margin + col * module, margin + row * module
        return x + module > low and x < high and y + module > low and y < high

    return [
        [matrix[row][col] and not _in_eye(row, col, count) and not covered(row, col) for col in range(count)]
        for row in range(count)
    ]


def _layout(visible: list[list[bool]], size: float, margin: float, request: RenderRequest) -> dict[Region, list[_Box]]:
    """Lay out every region's shapes in surface coordinates."""
    count = len(visible)
    module = (size - 2 * margin) / count

    def dark(row: int, col: int) -> bool:
        return 0 <= row < count and 0 <= col < count and visible[row][col]

    dots = []
    for row in range(count):
        for col in range(count):
            if not dark(row, col):
                continue
            x, y = margin + col * module, margin + row * module
            if request.dots.type == "dots":
                dots.append(_Box(x, y, module, radius=module / 2))
            elif request.dots.type == "rounded":
                top, bottom = dark(row - 1, col), dark(row + 1, col)
                left, right = dark(row, col - 1), dark(row, col + 1)
                corners = (
                    not (top or left),
                    not (top or right),
                    not (bottom or right),
                    not (bottom or left),
                )
                dots.append(_Box(x, y, module, radius=module / 2, corners=corners))
            else:
                dots.append(_Box(x, y, module))

    frames, balls = [], []
    for row, col in _eye_origins(count):
        x, y = margin + col * module, margin + row * module
        outer = FINDER_SIZE * module
        inner = outer - 2 * module
        if request.corners_square.type == "dot":
            frames.append(_Box(x, y, outer, radius=outer / 2))
            frames.append(_Box(x + module, y + module, inner, radius=inner / 2, hole=True))
        elif request.corners_square.type == "extra-rounded":
            frames.append(_Box(x, y, outer, radius=2.5 * module))
            frames.append(_Box(x + module, y + module, inner, radius=1.5 * module, hole=True))
        else:
            frames.append(_Box(x, y, outer))
            frames.append(_Box(x + module, y + module, inner, hole=True))

        ball = 3 * module
        radius = ball / 2 if request.corners_dot.type == "dot" else 0.0
        balls.append(_Box(x + 2 * module, y + 2 * module, ball, radius=radius))

    return {Region.MODULES: dots, Region.EYE_FRAME: frames, Region.EYE_BALL: balls}


def _logo_box(size: float, margin: float) -> tuple[float, float]:
    """Return (offset, side) of the centered logo area."""
    code_size = size - 2 * margin
    side = code_size * LOGO_IMAGE_SIZE
    return margin + (code_size - side) / 2, side


def _gradient_line(size: float, rotation: float) -> tuple[float, float, float, float]:
    """Endpoints of a linear gradient across a square canvas.

    Rotation 0 runs left to right; positive angles turn clockwise on screen.
    """
    half = size / 2 * (abs(math.cos(rotation)) + abs(math.sin(rotation)))
    center = size / 2
    dx, dy = half * math.cos(rotation), half * math.sin(rotation)
    return center - dx, center - dy, center + dx, center + dy


# ---------------------------------------------------------------------------
# Raster drawing (Pillow)
# ---------------------------------------------------------------------------

def _linear_gradient_mask(size: int, angle: float) -> Image.Image:
    """Grayscale mask ramping 0 -> 255 along the gradient direction."""
    theta = math.radians(angle)
    span = max(1, round(size * (abs(math.cos(theta)) + abs(math.sin(theta)))))
    diag = math.ceil(size * math.sqrt(2)) + 2

    ramp = Image.linear_gradient("L").rotate(90).resize((span, diag), Image.Resampling.BILINEAR)
    canvas = Image.new("L", (diag, diag), 0)
    left = (diag - span) // 2
    canvas.paste(255, (left + span, 0, diag, diag))
    canvas.paste(ramp, (left, 0))

    # PIL rotates counter-clockwise
    canvas = canvas.rotate(-angle, resample=Image.Resampling.BICUBIC)
    offset = (diag - size) // 2
    return canvas.crop((offset, offset, offset + size, offset + size))


def _fill_image(fill: FillParams, size: int) -> Image.Image:
    if fill.gradient is None:
        return Image.new("RGBA", (size, size), ImageColor.getcolor(fill.color, "RGBA"))
    start = Image.new("RGBA", (size, size), ImageColor.getcolor(fill.gradient.start, "RGBA"))
    end = Image.new("RGBA", (size, size), ImageColor.getcolor(fill.gradient.end, "RGBA"))
    return Image.composite(end, start, _linear_gradient_mask(size, fill.gradient.angle))


def _draw_mask(boxes: list[_Box], size: int, scale: int) -> Image.Image:
    mask = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(mask)
    for box in boxes:
        x0, y0 = box.x * scale, box.y * scale
        x1, y1 = x0 + box.size * scale, y0 + box.size * scale
        draw.rounded_rectangle(
            (x0, y0, x1, y1),
            radius=box.radius * scale,
            fill=0 if box.hole else 255,
            corners=box.corners,
        )
    return mask


def _module_mask(qr: qrcode.QRCode, visible: list[list[bool]], module_type: str, size: int, margin: int) -> Image.Image:
    """Draw the data modules with a python-qrcode module drawer into an L mask."""
    code_px = size - 2 * margin
    qr.box_size = max(1, math.ceil(code_px / qr.modules_count))
    # The drawers read qr.modules, so hide eyes and the logo area there
    qr.modules = [list(row) for row in visible]

    drawer = _MODULE_DRAWERS.get(module_type, SquareModuleDrawer)()
    drawn = qr.make_image(image_factory=StyledPilImage, module_drawer=drawer).convert("L")
    modules = ImageOps.invert(drawn)
    if modules.size != (code_px, code_px):
        modules = modules.resize((code_px, code_px), Image.Resampling.LANCZOS)

    mask = Image.new("L", (size, size), 0)
    mask.paste(modules, (margin, margin))
    return mask


def _paste_logo(img: Image.Image, data_uri: str, size: int, margin: int) -> None:
    try:
        mime, data = from_data_uri(data_uri)
        if mime == "image/svg+xml":
            logger.warning("SVG logos are only embedded in SVG exports")
            return
        logo = Image.open(io.BytesIO(data)).convert("RGBA")
    except (LogoDecodeError, UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("Logo could not be embedded: %s", e)
        return

    offset, side = _logo_box(size, margin)
    logo.thumbnail((int(side), int(side)), Image.Resampling.LANCZOS)
    pos = (
        int(offset + (side - logo.width) / 2),
        int(offset + (side - logo.height) / 2),
    )
    img.alpha_composite(logo, dest=pos)


def render_png_image(request: RenderRequest, size: int = PREVIEW_SIZE, margin: int = PREVIEW_MARGIN) -> Image.Image:
    """Draw a render request as an RGBA image of ``size`` x ``size`` pixels."""
    qr = _make_qr(request.payload)
    matrix = [[bool(cell) for cell in row] for row in qr.get_matrix()]
    visible = _visible_modules(matrix, size, margin, request.image is not None)
    layout = _layout(visible, size, margin, request)

    big = size * SUPERSAMPLE
    img = Image.new("RGBA", (big, big), ImageColor.getcolor(request.background_color, "RGBA"))
    for region, boxes in layout.items():
        if region is Region.MODULES:
            mask = _module_mask(qr, visible, request.dots.type, big, margin * SUPERSAMPLE)
        else:
            mask = _draw_mask(boxes, big, SUPERSAMPLE)
        fill = request.region(region).fill
        img.paste(_fill_image(fill, big), (0, 0), mask)

    img = img.resize((size, size), Image.Resampling.LANCZOS)

    if request.image is not None:
        _paste_logo(img, request.image, size, margin)
    return img


# ---------------------------------------------------------------------------
# Vector drawing (SVG)
# ---------------------------------------------------------------------------

def _num(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _box_path(box: _Box) -> str:
    x, y, s = box.x, box.y, box.size
    tl, tr, br, bl = (box.radius if on else 0.0 for on in box.corners)
    n = _num
    return (
        f"M{n(x + tl)} {n(y)}H{n(x + s - tr)}"
        f"A{n(tr)} {n(tr)} 0 0 1 {n(x + s)} {n(y + tr)}V{n(y + s - br)}"
        f"A{n(br)} {n(br)} 0 0 1 {n(x + s - br)} {n(y + s)}H{n(x + bl)}"
        f"A{n(bl)} {n(bl)} 0 0 1 {n(x)} {n(y + s - bl)}V{n(y + tl)}"
        f"A{n(tl)} {n(tl)} 0 0 1 {n(x + tl)} {n(y)}Z"
    )


def _svg_fill(region: Region, style: RegionStyle, size: float) -> tuple[list[str], str]:
    """Return (defs, fill attribute value) for one region."""
    gradient = style.fill.gradient
    if gradient is None:
        return [], style.fill.color

    grad_id = f"gradient-{region.value}"
    x1, y1, x2, y2 = _gradient_line(size, gradient.rotation)
    defs = [
        f'<linearGradient id="{grad_id}" gradientUnits="userSpaceOnUse" '
        f'x1="{_num(x1)}" y1="{_num(y1)}" x2="{_num(x2)}" y2="{_num(y2)}">',
        f'<stop offset="0" stop-color="{gradient.start}"/>',
        f'<stop offset="1" stop-color="{gradient.end}"/>',
        "</linearGradient>",
    ]
    return defs, f"url(#{grad_id})"


def render_svg(request: RenderRequest, size: int = PREVIEW_SIZE, margin: int = PREVIEW_MARGIN) -> str:
    """Write a render request as an SVG document."""
    visible = _visible_modules(build_matrix(request.payload), size, margin, request.image is not None)
    layout = _layout(visible, size, margin, request)

    defs: list[str] = []
    body = [f'<rect x="0" y="0" width="{size}" height="{size}" fill="{request.background_color}"/>']

    for region, boxes in layout.items():
        if not boxes:
            continue
        clip_id = f"clip-{region.value}"
        path = "".join(_box_path(box) for box in boxes)
        defs.append(f'<clipPath id="{clip_id}"><path clip-rule="evenodd" d="{path}"/></clipPath>')
        fill_defs, fill = _svg_fill(region, request.region(region), size)
        defs.extend(fill_defs)
        body.append(
            f'<rect x="0" y="0" width="{size}" height="{size}" '
            f'clip-path="url(#{clip_id})" fill="{fill}"/>'
        )

    if request.image is not None:
        offset, side = _logo_box(size, margin)
        body.append(
            f'<image href={quoteattr(request.image)} x="{_num(offset)}" y="{_num(offset)}" '
            f'width="{_num(side)}" height="{_num(side)}" preserveAspectRatio="xMidYMid meet"/>'
        )

    return "\n".join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
        f'viewBox="0 0 {size} {size}">',
        "<defs>",
        *defs,
        "</defs>",
        *body,
        "</svg>",
        "",
    ])


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class QrEngine:
    """One live rendering engine bound to one surface.

    Use ``construct`` for the first render on a surface and ``update`` for
    every render after that.
    """

    def __init__(self, surface: Surface):
        if surface.width != surface.height:
            raise EngineUnavailableError(
                f"Surface must be square, got {surface.width}x{surface.height}."
            )
        if surface.width < MIN_SURFACE_SIZE or surface.margin < 0 or 2 * surface.margin >= surface.width:
            raise EngineUnavailableError(
                f"Surface {surface.width}px with margin {surface.margin}px leaves no room for a QR code."
            )
        self._surface = surface
        self._request: RenderRequest | None = None

    @classmethod
    def construct(cls, surface: Surface, request: RenderRequest) -> "QrEngine":
        engine = cls(surface)
        engine.update(request)
        logger.info("Rendering engine constructed on %dpx surface", surface.width)
        return engine

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def request(self) -> RenderRequest | None:
        return self._request

    def update(self, request: RenderRequest) -> None:
        """Redraw the surface with a new request (replaces all previous options)."""
        image = render_png_image(request, self._surface.width, self._surface.margin)
        self._request = request
        self._surface.image = image
        logger.debug("Surface redrawn for payload %r", request.payload)

    def export(self, fmt: ExportFormat | str) -> bytes:
        """Serialize the current surface as PNG or SVG bytes."""
        fmt = ExportFormat(fmt)
        if self._request is None or self._surface.image is None:
            raise EngineUnavailableError("Nothing has been rendered yet.")

        if fmt is ExportFormat.SVG:
            return render_svg(self._request, self._surface.width, self._surface.margin).encode("utf-8")

        buffer = io.BytesIO()
        self._surface.image.save(buffer, format="PNG")
        return buffer.getvalue()
