"""Thermal printing of receipt and kitchen ticket text."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)

logger = logging.getLogger(__name__)

_FONT_OVERRIDE_ENV = "POS_PRINTER_FONT_PATH"
# Tickets are column aligned, so only monospace faces are usable.
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/noto/NotoSansMono-Regular.ttf",
)
_LINE_EXTRA_PX = 8
_TAIL_SPACER_PX = 40


def resolve_printer_font_path() -> str:
    """
    Resolve the monospace printer font.

    Resolution order:
    1. POS_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid monospace .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer deps unavailable: {exc}")
    return (True, "Printer ready")


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)
    bbox = draw.textbbox((0, 0), text or " ", font=font)
    text_height = bbox[3] - bbox[1]
    # Offset by bbox top so descenders are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), text, font=font, fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def render_ticket_image(text: str, font: object) -> object:
    """Stack one rendered strip per ticket line into a single bitmap."""
    from PIL import Image

    strips = [_render_line(line, font) for line in text.rstrip("\n").split("\n")]
    img = Image.new("1", (PRINTER_WIDTH_PX, sum(strip.height for strip in strips)), color=1)
    y = 0
    for strip in strips:
        img.paste(strip, (0, y))
        y += strip.height
    return img


def print_ticket(text: str) -> None:
    """
    Print ticket text and cut.

    Text is rasterised rather than sent as characters because printer
    codepages lack the currency symbol.
    """
    if not text.strip():
        return

    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    printer.image(render_ticket_image(text, font))
    printer.image(_render_spacer(_TAIL_SPACER_PX))
    printer.cut()
    logger.info("Printed ticket lines=%d", text.count("\n"))
