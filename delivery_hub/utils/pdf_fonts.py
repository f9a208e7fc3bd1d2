"""Unicode font registration for ReportLab order reports."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

FONT_NAME = "ReportUnicode"
FONT_CANDIDATES: tuple[str, ...] = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
    "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
    r"C:\\Windows\\Fonts\\arial.ttf",
)

_fallback_logged = False


def find_unicode_ttf() -> str | None:
    for candidate in FONT_CANDIDATES:
        if Path(candidate).exists():
            return candidate
    return None


def register_pdf_font() -> str:
    """Register a TTF with accented glyphs (ñ, á) and return its name, else Helvetica."""
    global _fallback_logged

    font_path = find_unicode_ttf()
    if font_path:
        from reportlab.pdfbase import pdfmetrics
        from reportlab.pdfbase.ttfonts import TTFont

        if FONT_NAME not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(FONT_NAME, font_path))
        return FONT_NAME

    if not _fallback_logged:
        logger.warning("No Unicode TTF font found; accented characters may render incorrectly in reports.")
        _fallback_logged = True
    return "Helvetica"
