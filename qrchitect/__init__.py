"""QRCHITECT: styled QR code design, preview and export."""

__version__ = "1.0.0"

# Shared constants
PRODUCT_NAME = "qrchitect"
PREVIEW_SIZE = 300  # Preview surface width/height in pixels
PREVIEW_MARGIN = 10  # Quiet margin around the code, in pixels
LOGO_IMAGE_SIZE = 0.3  # Logo width as a fraction of the code width
