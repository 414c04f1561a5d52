"""Color definitions organized semantically for the watch face."""


class Colors:
    """Semantic color organization for the H24 face."""

    class Wheel:
        """Anchor colors of the 24-hour wheel, one per quarter day."""

        H24 = (255, 0, 255)
        H6 = (0, 255, 0)
        H12 = (255, 255, 0)
        H18 = (0, 0, 255)

    class Face:
        """Fixed face colors."""

        BACKGROUND = (0, 0, 0)
        HAND = (255, 255, 255)
        WARNING = (255, 0, 0)

    class DarkMode:
        """Dark mode hand color as hue (degrees) and saturation."""

        HUE = 13.0
        SATURATION = 0.04


# Wheel anchors in clockwise order starting at the top (24h)
WHEEL_ANCHORS = (
    Colors.Wheel.H24,
    Colors.Wheel.H6,
    Colors.Wheel.H12,
    Colors.Wheel.H18,
)

BLACK = Colors.Face.BACKGROUND
WHITE = Colors.Face.HAND
RED = Colors.Face.WARNING
