"""Font manager singleton for centralized font caching and text measurement."""

import logging
from typing import Union

from PIL import ImageFont

from .draw_ops import Typeface

logger = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Font paths per typeface (in order of preference)
FONT_PATHS: dict[str, list[str]] = {
    "light": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-ExtraLight.ttf",  # Debian/Ubuntu/Raspbian
        "/usr/share/fonts/TTF/DejaVuSans-ExtraLight.ttf",  # Arch Linux
        "/usr/share/fonts/dejavu/DejaVuSans-ExtraLight.ttf",  # Alternative Linux path
    ],
    "normal": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/System/Library/Fonts/Helvetica.ttc",  # macOS
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    ],
    "bold": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    ],
}


class FontManager:
    """
    Singleton font manager for centralized font caching.

    Also serves as the TextMeasurer for dial geometry, so layout and
    rasterization agree on text extents.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        """Ensure only one instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the font manager (only once)."""
        if not FontManager._initialized:
            self._fonts: dict[tuple[str, int], Font] = {}
            FontManager._initialized = True
            logger.debug("FontManager singleton initialized")

    def get_font(self, size: float, typeface: Typeface = "normal") -> Font:
        """
        Get a font of a typeface at the specified size.

        Falls back to the regular typeface, then to the PIL default font.

        Args:
            size: Font size in pixels
            typeface: "light", "normal" or "bold"

        Returns:
            PIL ImageFont
        """
        key = (typeface, max(1, int(round(size))))
        if key not in self._fonts:
            for path in FONT_PATHS.get(typeface, []):
                try:
                    self._fonts[key] = ImageFont.truetype(path, key[1])
                    break
                except OSError:
                    continue
            else:
                if typeface != "normal":
                    self._fonts[key] = self.get_font(size, "normal")
                    logger.debug(f"No {typeface} font found, using regular")
                else:
                    self._fonts[key] = ImageFont.load_default(key[1])
                    logger.warning(
                        f"No system fonts found for size {key[1]}, using default"
                    )
        return self._fonts[key]

    def measure(
        self, text: str, size: float, typeface: Typeface = "normal"
    ) -> tuple[float, float]:
        """Width of ``text`` and the line height of the font at ``size``."""
        font = self.get_font(size, typeface)
        if not text:
            return (0.0, float(size))
        left, _, right, _ = font.getbbox(text)
        return (float(right - left), float(size))

    def ink_height(
        self, text: str, size: float, typeface: Typeface = "normal"
    ) -> float:
        """Height of the inked pixels of ``text``, ignoring line spacing."""
        if not text:
            return 0.0
        font = self.get_font(size, typeface)
        _, top, _, bottom = font.getbbox(text)
        return float(bottom - top)

    def clear_cache(self) -> None:
        """Clear the font cache (useful for testing or memory management)."""
        self._fonts.clear()
        logger.debug("Font cache cleared")


# Global instance
_font_manager = FontManager()


def get_font_manager() -> FontManager:
    """
    Get the global FontManager instance.

    Returns:
        FontManager singleton instance
    """
    return _font_manager
