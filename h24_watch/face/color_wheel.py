"""Time-of-day color wheel and dimming-aware paint colors."""

import colorsys

from .colors import Colors, WHEEL_ANCHORS, WHITE
from ..dimming import VERY_DARK

RGB = tuple[int, int, int]


def _blend(first: RGB, second: RGB, amount: float) -> tuple[float, float, float]:
    """Component-wise linear blend, ``amount`` of the way to ``second``."""
    return tuple(a + (b - a) * amount for a, b in zip(first, second))


def _hsv_to_rgb(hue: float, saturation: float, value: float) -> RGB:
    r, g, b = colorsys.hsv_to_rgb(hue, saturation, value)
    return (round(r * 255), round(g * 255), round(b * 255))


def color_at(degrees_from_north: float) -> RGB:
    """
    Color for a position on the 24-hour wheel.

    The angle is mapped onto the four anchor colors (24h, 6h, 12h, 18h at
    0/90/180/270 degrees), neighbours are blended linearly and the result
    is pushed to full value so only the alpha carries brightness.

    Args:
        degrees_from_north: Angle in degrees, any range

    Returns:
        RGB tuple at full HSV value
    """
    degrees = degrees_from_north % 360.0
    relative = degrees / 360.0 * len(WHEEL_ANCHORS)
    first = int(relative) % len(WHEEL_ANCHORS)
    amount = relative - int(relative)
    second = (first + 1) % len(WHEEL_ANCHORS)

    r, g, b = _blend(WHEEL_ANCHORS[first], WHEEL_ANCHORS[second], amount)
    hue, saturation, _ = colorsys.rgb_to_hsv(r / 255, g / 255, b / 255)
    return _hsv_to_rgb(hue, saturation, 1.0)


def hand_color(is_dark_mode: bool, light_factor: float) -> RGB:
    """White, or a dimmed warm beige in dark mode that never goes fully dark."""
    if not is_dark_mode:
        return WHITE
    value = min(1.0, max(light_factor, VERY_DARK))
    return _hsv_to_rgb(
        Colors.DarkMode.HUE / 360.0, Colors.DarkMode.SATURATION, value
    )


def hour_alpha(is_dark_mode: bool, light_factor: float) -> int:
    """Alpha for the filled hour digit."""
    if is_dark_mode:
        return 218 - min(int(light_factor * 200), 100)
    return 160
