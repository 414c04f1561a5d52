"""Frame output: Linux framebuffer or PNG file."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional

import numpy as np
from PIL import Image, ImageDraw

if TYPE_CHECKING:
    from .config import DisplayConfig

logger = logging.getLogger(__name__)


def rgb_to_rgb565(image: Image.Image) -> bytes:
    """
    Pack an RGB image into little-endian RGB565.

    Args:
        image: PIL Image in RGB mode

    Returns:
        Two bytes per pixel, red in the top 5 bits
    """
    arr = np.array(image, dtype=np.uint16)
    r = arr[:, :, 0]
    g = arr[:, :, 1]
    b = arr[:, :, 2]
    rgb565 = ((r >> 3) << 11) | ((g >> 2) << 5) | (b >> 3)
    return rgb565.astype("<u2").tobytes()


def round_mask(image: Image.Image) -> Image.Image:
    """Black out everything outside the inscribed circle of a round panel."""
    mask = Image.new("L", image.size, 0)

    ImageDraw.Draw(mask).ellipse((0, 0, image.width - 1, image.height - 1), fill=255)
    masked = Image.new("RGB", image.size, (0, 0, 0))
    masked.paste(image, (0, 0), mask)
    return masked


class Display:
    """Writes frames to the framebuffer device."""

    def __init__(self, config: "DisplayConfig"):
        """
        Initialize display handler.

        Args:
            config: Display configuration
        """
        self.config = config
        self.width = config.width
        self.height = config.height
        self.framebuffer = config.framebuffer
        self._fb_handle: Optional[BinaryIO] = None

    @property
    def is_open(self) -> bool:
        return self._fb_handle is not None

    def open(self) -> bool:
        """
        Open the framebuffer device.

        Returns:
            True if successful, False otherwise
        """
        try:
            self._fb_handle = open(self.framebuffer, "wb")
            logger.info(f"Opened framebuffer: {self.framebuffer}")
            return True
        except PermissionError:
            logger.error(
                f"Permission denied opening {self.framebuffer}. "
                "Run as root or add user to 'video' group."
            )
            return False
        except FileNotFoundError:
            logger.error(f"Framebuffer not found: {self.framebuffer}")
            return False
        except OSError as e:
            logger.error(f"Failed to open framebuffer: {e}")
            return False

    def close(self) -> None:
        if self._fb_handle:
            try:
                self._fb_handle.close()
            except OSError as e:
                logger.warning(f"Error closing framebuffer: {e}")
            finally:
                self._fb_handle = None

    def _prepare(self, image: Image.Image) -> Image.Image:
        if image.size != (self.width, self.height):
            image = image.resize((self.width, self.height), Image.Resampling.LANCZOS)
        if image.mode != "RGB":
            image = image.convert("RGB")
        return image

    def write_frame(self, image: Image.Image) -> bool:
        """
        Write a frame to the framebuffer as RGB565.

        Args:
            image: Rendered face, resized if it does not match the panel

        Returns:
            True if successful, False otherwise
        """
        if self._fb_handle is None:
            logger.error("Framebuffer not open")
            return False

        try:
            data = rgb_to_rgb565(self._prepare(image))
            self._fb_handle.seek(0)
            self._fb_handle.write(data)
            self._fb_handle.flush()
            return True
        except OSError as e:
            logger.error(f"Failed to write to framebuffer: {e}")
            return False

    def clear(self, color: tuple[int, int, int] = (0, 0, 0)) -> bool:
        return self.write_frame(Image.new("RGB", (self.width, self.height), color))

    def __enter__(self) -> "Display":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class PngDisplay(Display):
    """Saves every frame to a PNG file; for previews and headless runs."""

    def __init__(self, config: "DisplayConfig", path: Path):
        super().__init__(config)
        self.path = Path(path)
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create output directory {self.path.parent}: {e}")
            return False
        self._open = True
        logger.info(f"Writing frames to {self.path}")
        return True

    def close(self) -> None:
        self._open = False

    def write_frame(self, image: Image.Image) -> bool:
        if not self._open:
            logger.error("PNG output not open")
            return False
        try:
            round_mask(self._prepare(image)).save(self.path, format="PNG")
            return True
        except OSError as e:
            logger.error(f"Failed to write {self.path}: {e}")
            return False
