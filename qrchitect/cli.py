"""CLI entry point for QRCHITECT."""

import argparse
import json
import logging
import os
import sys

from qrchitect import PREVIEW_MARGIN, PREVIEW_SIZE, __version__
from qrchitect.content import CATEGORY_HINTS, ContentCategory

LOGO_WAIT_SECONDS = 30


def _content_help() -> str:
    lines = [f"{category.value}: {hint[2]} (e.g. {hint[1]})" for category, hint in CATEGORY_HINTS.items()]
    return "Content to encode. " + "; ".join(lines)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrchitect",
        description="Design styled QR codes and export them as PNG or SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Website link with rounded modules
  qrchitect --content example.com --dot-style rounded

  # Phone number, blue-to-pink gradient, exported as SVG
  qrchitect --type phone --content +1234567890 \\
    --gradient "#2563EB" "#F472B6" --angle 90 --format svg

  # Start from a saved configuration (web form field names) and add a logo
  qrchitect --config design.json --logo logo.png -o my-code.png
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    # Content
    parser.add_argument(
        "--type",
        dest="content_type",
        default=None,
        choices=[c.value for c in ContentCategory],
        help="Content category. Default: url",
    )
    parser.add_argument("--content", default=None, help=_content_help())
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file with configuration values; command-line flags override it",
    )

    # Style
    parser.add_argument("--fg", dest="foreground_color", default=None, help="Foreground color. Default: #000000")
    parser.add_argument("--bg", dest="background_color", default=None, help="Background color. Default: #FFFFFF")
    parser.add_argument(
        "--gradient",
        nargs=2,
        metavar=("START", "END"),
        default=None,
        help="Use a linear gradient foreground instead of a solid color",
    )
    parser.add_argument("--angle", dest="gradient_angle", type=int, default=None, help="Gradient angle 0-360. Default: 45")
    parser.add_argument("--dot-style", default=None, choices=["square", "dots", "rounded"])
    parser.add_argument("--eye-style", default=None, choices=["square", "circle", "rounded"])
    parser.add_argument("--eyeball-style", default=None, choices=["square", "circle", "diamond"])
    parser.add_argument("--logo", default=None, help="PNG, JPG, WebP, GIF or SVG image placed in the center of the code")

    # Output
    parser.add_argument("--format", "-f", default="png", choices=["png", "svg"], help="Export format. Default: png")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output path. Default: qrchitect-<Type>-<timestamp>.<format>",
    )
    parser.add_argument("--size", type=int, default=PREVIEW_SIZE, help=f"Image size in pixels. Default: {PREVIEW_SIZE}")

    # Flags
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip QR code scannability verification of PNG output",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite output file without prompting",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    return parser


def _collect_values(args: argparse.Namespace) -> dict:
    """Merge the config file with explicitly given command-line values."""
    values: dict = {}
    if args.config:
        with open(args.config, encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file '{args.config}' must contain a JSON object.")
        values.update(loaded)

    for name in (
        "content_type", "content", "foreground_color", "background_color",
        "gradient_angle", "dot_style", "eye_style", "eyeball_style",
    ):
        value = getattr(args, name)
        if value is not None:
            # snake_case keys take precedence over camelCase ones in from_mapping
            values[name] = value

    if args.gradient:
        values["use_gradient"] = True
        values["gradient_start_color"], values["gradient_end_color"] = args.gradient
    return values


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    # Lazy imports for faster --help
    from qrchitect.config import QrConfig
    from qrchitect.engine import Surface
    from qrchitect.errors import ErrorKind, QrchitectError
    from qrchitect.image_utils import (
        read_logo_file, save_output, verify_qr_scannable, VerifyResult,
    )
    from qrchitect.logging_config import setup_logging
    from qrchitect.session import PreviewSession

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    print(f"QRCHITECT v{__version__}")
    print("=" * 50)

    try:
        # Step 1: Build configuration
        print("\n[1/3] Resolving configuration")
        values = _collect_values(args)
        if args.logo:
            values["logo"] = read_logo_file(args.logo)
        config = QrConfig.from_mapping(values)
        print(f"  Type:        {config.category.value}")
        print(f"  Content:     {config.content}")
        if config.use_gradient:
            print(f"  Gradient:    {config.fill.start} -> {config.fill.end} @ {config.fill.angle}°")
        else:
            print(f"  Color:       {config.fill.color} on {config.background_color}")
        print(f"  Shapes:      modules={config.module_shape.value} "
              f"frame={config.eye_frame_shape.value} ball={config.eye_ball_shape.value}")

        # Step 2: Render
        print(f"\n[2/3] Rendering {args.size}px preview")
        margin = max(1, PREVIEW_MARGIN * args.size // PREVIEW_SIZE)
        with PreviewSession(config, Surface(args.size, args.size, margin)) as session:
            session.render()
            if config.logo and not session.logo.wait(timeout=LOGO_WAIT_SECONDS):
                print("  ⚠️  Logo decoding timed out; rendering without it.", file=sys.stderr)
            outcome = session.render()

            if outcome.error is not None:
                field = "content: " if outcome.error is ErrorKind.EMPTY_CONTENT else ""
                print(f"\n  ERROR: {field}{outcome.message}", file=sys.stderr)
                return 1
            if outcome.logo_error is not None:
                print(f"  ⚠️  WARNING: logo ignored ({session.logo.error})", file=sys.stderr)
            print(f"  ✓ Payload: {outcome.request.payload}")

            # Step 3: Export
            result = session.export(args.format)

        output_path = args.output or result.filename
        print(f"\n[3/3] Saving {args.format.upper()} to: {output_path}")
        if os.path.exists(output_path) and not args.overwrite:
            response = input(f"  Output file '{output_path}' already exists. Overwrite? [y/N] ")
            if response.lower() not in ("y", "yes"):
                print("  Aborted.")
                return 0
        save_output(result.data, output_path)
        print(f"  ✓ Saved: {output_path}")

        if not args.no_verify and args.format == "png":
            print("\n  Verifying QR code scannability...")
            verdict, decoded = verify_qr_scannable(result.data)
            if verdict == VerifyResult.SCANNABLE:
                print(f"  ✓ QR code is SCANNABLE! Decoded: {decoded}")
            elif verdict == VerifyResult.SKIPPED:
                print("  ⊘ Verification skipped (pyzbar not installed)")
                print("    Install with: pip install qrchitect[verify]")
            else:
                print("  ⚠️  WARNING: QR code may not be scannable.")
                print("     Try a higher contrast between foreground and background,")
                print("     or remove the logo.")

        print(f"\n✅ Done! Your QR code is at: {output_path}")
        return 0

    except (QrchitectError, ValueError, FileNotFoundError) as e:
        print(f"\n  ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
