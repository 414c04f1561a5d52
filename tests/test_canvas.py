"""Tests for rasterizing draw ops and font handling."""

import pytest
from PIL import Image

from h24_watch.face.canvas import Canvas
from h24_watch.face.draw_ops import Circle, Line, Paint, Rect, Text
from h24_watch.face.font_manager import FontManager, get_font_manager

RED = (255, 0, 0)


@pytest.fixture
def canvas():
    return Canvas(100, 100)


def _lit(image: Image.Image) -> int:
    """Number of non-black pixels."""
    return sum(1 for p in image.getdata() if p != (0, 0, 0))


class TestCanvas:
    """Tests for the Canvas class."""

    def test_new_image_is_background(self, canvas):
        image = canvas.new_image()
        assert image.size == (100, 100)
        assert image.mode == "RGB"
        assert _lit(image) == 0

    def test_filled_circle(self, canvas):
        image = canvas.paint([Circle((50, 50), 10, Paint(color=RED))])
        assert image.getpixel((50, 50)) == RED
        assert image.getpixel((5, 5)) == (0, 0, 0)

    def test_stroked_circle_hollow(self, canvas):
        image = canvas.paint(
            [Circle((50, 50), 20, Paint(color=RED, style="stroke", stroke_width=2))]
        )
        assert image.getpixel((50, 50)) == (0, 0, 0)
        assert image.getpixel((50, 30)) == RED

    def test_alpha_blends(self, canvas):
        gray = Paint(color=(200, 200, 200), alpha=128)
        image = canvas.paint([Rect((0, 0, 99, 99), gray)])
        r, g, b = image.getpixel((50, 50))
        assert 90 <= r <= 110

    def test_inverted_rect_normalized(self, canvas):
        image = canvas.paint([Rect((60, 60, 40, 40), Paint(color=RED))])
        assert image.getpixel((50, 50)) == RED

    def test_line(self, canvas):
        thick = Paint(color=RED, stroke_width=3)
        image = canvas.paint([Line((0, 50), (99, 50), thick)])
        assert image.getpixel((50, 50)) == RED

    def test_text_drawn(self, canvas):
        paint = Paint(color=RED, text_size=40)
        width, height = canvas.fonts.measure("8", 40, "normal")
        origin = (50 - width / 2, 50 - height / 2)
        image = canvas.paint([Text(origin, "8", paint)])
        assert _lit(image) > 0

    def test_stroked_text_outline_only(self, canvas):
        """Test an outlined glyph lights fewer pixels than a filled one."""
        fill = Paint(color=RED, text_size=60, typeface="bold")
        stroke = fill.with_(style="stroke", stroke_width=1)
        width, height = canvas.fonts.measure("8", 60, "bold")
        origin = (50 - width / 2, 50 - height / 2)

        filled = canvas.paint([Text(origin, "8", fill)])
        outlined = canvas.paint([Text(origin, "8", stroke)])
        assert 0 < _lit(outlined)
        assert _lit(outlined) != _lit(filled)

    def test_empty_text_ignored(self, canvas):
        image = canvas.paint([Text((10, 10), "", Paint(color=RED))])
        assert _lit(image) == 0

    def test_unknown_op_skipped(self, canvas):
        image = canvas.paint(["not an op", Circle((50, 50), 5, Paint(color=RED))])
        assert image.getpixel((50, 50)) == RED

    def test_paints_onto_given_image(self, canvas):
        base = Image.new("RGB", (100, 100), (0, 0, 255))
        image = canvas.paint([], image=base)
        assert image is base


class TestFontManager:
    """Tests for the FontManager singleton."""

    def test_singleton(self):
        assert FontManager() is get_font_manager()

    def test_fonts_cached(self):
        fonts = get_font_manager()
        assert fonts.get_font(20, "bold") is fonts.get_font(20, "bold")

    def test_measure(self):
        fonts = get_font_manager()
        width, height = fonts.measure("24", 30)
        assert width > 0
        assert height == 30.0
        assert fonts.measure("", 30) == (0.0, 30.0)

    def test_wider_text_measures_wider(self):
        fonts = get_font_manager()
        assert fonts.measure("2024", 30)[0] > fonts.measure("2", 30)[0]

    def test_ink_height(self):
        fonts = get_font_manager()
        assert 0 < fonts.ink_height("8", 100) <= 100
        assert fonts.ink_height("", 100) == 0.0
