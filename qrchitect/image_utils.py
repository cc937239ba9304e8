"""File helpers for logo input, export output and scan verification."""

import io
import os
from enum import Enum

from PIL import Image

from qrchitect.logo import sniff_mime_type

ALLOWED_LOGO_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".svg"}


class VerifyResult(Enum):
    """Result of QR scannability verification."""
    SCANNABLE = "scannable"
    NOT_SCANNABLE = "not_scannable"
    SKIPPED = "skipped"  # pyzbar not installed, or not a raster export


def read_logo_file(path: str) -> bytes:
    """Read a logo image from disk.

    Args:
        path: Path to a PNG, JPEG, WebP, GIF or SVG file.

    Returns:
        The raw file contents.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the extension is not an accepted image type.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Logo not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext not in ALLOWED_LOGO_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_LOGO_EXTENSIONS))
        raise ValueError(f"Unsupported logo type '{ext}'. Use one of: {allowed}")

    with open(path, "rb") as f:
        return f.read()


def save_output(data: bytes, output_path: str) -> str:
    """Write exported image bytes, creating parent directories as needed.

    Returns:
        The output path where the image was saved.
    """
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(data)
    return output_path


def verify_qr_scannable(data: bytes) -> tuple[VerifyResult, str | None]:
    """Attempt to decode the QR code in an exported image.

    Uses pyzbar if available, otherwise returns SKIPPED. SVG exports are
    skipped as well since they need a rasterizer.

    Args:
        data: Exported image bytes.

    Returns:
        Tuple of (VerifyResult, decoded_data: str | None).
    """
    if sniff_mime_type(data) == "image/svg+xml":
        return VerifyResult.SKIPPED, None

    try:
        from pyzbar.pyzbar import decode as pyzbar_decode
    except ImportError:
        return VerifyResult.SKIPPED, None

    with Image.open(io.BytesIO(data)) as img:
        results = pyzbar_decode(img.convert("RGB"))
    if results:
        return VerifyResult.SCANNABLE, results[0].data.decode("utf-8")
    return VerifyResult.NOT_SCANNABLE, None
