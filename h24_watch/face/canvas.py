"""Rasterizes draw operations onto a Pillow image."""

import logging
from typing import Iterable, Optional

from PIL import Image, ImageDraw

from .colors import BLACK
from .draw_ops import Circle, DrawOp, Line, Rect, Text
from .font_manager import FontManager, get_font_manager

logger = logging.getLogger(__name__)


class Canvas:
    """
    Draw-op consumer backed by an RGB Pillow image.

    Colors carry alpha and are blended onto what is already painted.
    Text is anchored on the center of its measured box so it lines up
    with the layout computed by DialGeometry.
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: tuple[int, int, int] = BLACK,
        fonts: Optional[FontManager] = None,
    ):
        self.width = width
        self.height = height
        self.background = background
        self.fonts = fonts or get_font_manager()

    def on_resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def new_image(self) -> Image.Image:
        return Image.new("RGB", (self.width, self.height), self.background)

    def paint(
        self, ops: Iterable[DrawOp], image: Optional[Image.Image] = None
    ) -> Image.Image:
        """
        Paint ops in order.

        Args:
            ops: Draw operations, painted first to last
            image: Image to paint on (default: fresh background)

        Returns:
            The painted image
        """
        if image is None:
            image = self.new_image()
        draw = ImageDraw.Draw(image, "RGBA")
        for op in ops:
            if isinstance(op, Circle):
                self._circle(draw, op)
            elif isinstance(op, Line):
                self._line(draw, op)
            elif isinstance(op, Rect):
                self._rect(draw, op)
            elif isinstance(op, Text):
                self._text(image, draw, op)
            else:
                logger.warning(f"Unknown draw op skipped: {op!r}")
        return image

    def _circle(self, draw: ImageDraw.ImageDraw, op: Circle) -> None:
        x, y = op.center
        r = op.radius
        box = [(x - r, y - r), (x + r, y + r)]
        if op.paint.style == "stroke":
            width = max(1, int(round(op.paint.stroke_width)))
            draw.ellipse(box, outline=op.paint.rgba, width=width)
        else:
            draw.ellipse(box, fill=op.paint.rgba)

    def _line(self, draw: ImageDraw.ImageDraw, op: Line) -> None:
        width = max(1, int(round(op.paint.stroke_width)))
        draw.line([op.start, op.end], fill=op.paint.rgba, width=width)

    def _rect(self, draw: ImageDraw.ImageDraw, op: Rect) -> None:
        left, top, right, bottom = op.box
        # Bands of overlapping meetings can come out inverted
        box = [
            (min(left, right), min(top, bottom)),
            (max(left, right), max(top, bottom)),
        ]
        if op.paint.style == "stroke":
            width = max(1, int(round(op.paint.stroke_width)))
            draw.rectangle(box, outline=op.paint.rgba, width=width)
        else:
            draw.rectangle(box, fill=op.paint.rgba)

    def _text(self, image: Image.Image, draw: ImageDraw.ImageDraw, op: Text) -> None:
        if not op.text:
            return
        paint = op.paint
        font = self.fonts.get_font(paint.text_size, paint.typeface)
        width, height = self.fonts.measure(op.text, paint.text_size, paint.typeface)
        anchor_xy = (op.origin[0] + width / 2, op.origin[1] + height / 2)

        if paint.style != "stroke":
            draw.text(anchor_xy, op.text, fill=paint.rgba, font=font, anchor="mm")
            return

        # Outline only: stroked glyph mask minus the glyph itself
        stroke = max(1, int(round(paint.stroke_width)))
        mask = Image.new("L", image.size, 0)
        mask_draw = ImageDraw.Draw(mask)
        mask_draw.text(
            anchor_xy,
            op.text,
            fill=255,
            font=font,
            anchor="mm",
            stroke_width=stroke,
            stroke_fill=255,
        )
        mask_draw.text(anchor_xy, op.text, fill=0, font=font, anchor="mm")
        alpha = paint.rgba[3]
        if alpha < 255:
            mask = mask.point(lambda v: v * alpha // 255)
        image.paste(paint.color, (0, 0, image.width, image.height), mask)
