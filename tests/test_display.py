"""Tests for framebuffer and PNG frame output."""

from unittest.mock import MagicMock, mock_open, patch

import pytest
from PIL import Image

from h24_watch.display import Display, PngDisplay, rgb_to_rgb565, round_mask


@pytest.fixture
def mock_config():
    """Create a mock display config for a round 390x390 panel."""
    config = MagicMock()
    config.width = 390
    config.height = 390
    config.framebuffer = "/dev/fb1"
    return config


class TestRgb565:
    """Tests for the RGB565 packing."""

    def test_primary_colors(self):
        """Test RGB to RGB565 color conversion."""
        image = Image.new("RGB", (2, 2))
        pixels = image.load()
        pixels[0, 0] = (255, 0, 0)
        pixels[1, 0] = (0, 255, 0)
        pixels[0, 1] = (0, 0, 255)
        pixels[1, 1] = (255, 255, 255)

        data = rgb_to_rgb565(image)

        assert len(data) == 8
        # Little-endian 0xF800, 0x07E0, 0x001F, 0xFFFF
        assert data[0:2] == bytes([0x00, 0xF8])
        assert data[2:4] == bytes([0xE0, 0x07])
        assert data[4:6] == bytes([0x1F, 0x00])
        assert data[6:8] == bytes([0xFF, 0xFF])

    def test_low_bits_dropped(self):
        image = Image.new("RGB", (1, 1), color=(7, 3, 7))
        assert rgb_to_rgb565(image) == bytes([0x00, 0x00])


class TestRoundMask:
    def test_corners_blacked_out(self):
        image = Image.new("RGB", (40, 40), color=(255, 255, 255))
        masked = round_mask(image)
        assert masked.getpixel((0, 0)) == (0, 0, 0)
        assert masked.getpixel((39, 39)) == (0, 0, 0)
        assert masked.getpixel((20, 20)) == (255, 255, 255)


class TestDisplay:
    """Tests for the Display class."""

    @pytest.fixture
    def display(self, mock_config):
        return Display(mock_config)

    def test_initialization(self, display):
        assert display.width == 390
        assert display.height == 390
        assert display.framebuffer == "/dev/fb1"
        assert display.is_open is False

    def test_open_success(self, display):
        """Test successfully opening framebuffer."""
        mock_file = mock_open()
        with patch("builtins.open", mock_file):
            result = display.open()

        assert result is True
        assert display.is_open
        mock_file.assert_called_once_with("/dev/fb1", "wb")

    @pytest.mark.parametrize(
        "error",
        [
            PermissionError("Permission denied"),
            FileNotFoundError("Not found"),
            OSError("Device error"),
        ],
    )
    def test_open_failure(self, display, error):
        """Test open reports failure instead of raising."""
        with patch("builtins.open", side_effect=error):
            result = display.open()

        assert result is False
        assert display._fb_handle is None

    def test_close_with_error(self, display):
        """Test closing framebuffer when close raises exception."""
        mock_file = MagicMock()
        mock_file.close.side_effect = IOError("Close error")
        display._fb_handle = mock_file

        display.close()

        assert display._fb_handle is None

    def test_close_when_not_open(self, display):
        display.close()
        assert display._fb_handle is None

    def test_write_frame_success(self, display):
        mock_file = MagicMock()
        display._fb_handle = mock_file

        result = display.write_frame(Image.new("RGB", (390, 390), (128, 128, 128)))

        assert result is True
        mock_file.seek.assert_called_once_with(0)
        mock_file.flush.assert_called_once()
        assert len(mock_file.write.call_args[0][0]) == 390 * 390 * 2

    def test_write_frame_when_not_open(self, display):
        assert display.write_frame(Image.new("RGB", (390, 390))) is False

    def test_write_frame_resizes_and_converts(self, display):
        """Test a differently sized RGBA frame is adapted to the panel."""
        mock_file = MagicMock()
        display._fb_handle = mock_file

        result = display.write_frame(Image.new("RGBA", (640, 480), (255, 0, 0, 128)))

        assert result is True
        assert len(mock_file.write.call_args[0][0]) == 390 * 390 * 2

    def test_write_frame_io_error(self, display):
        mock_file = MagicMock()
        mock_file.write.side_effect = IOError("Write failed")
        display._fb_handle = mock_file

        assert display.write_frame(Image.new("RGB", (390, 390))) is False

    def test_clear_display(self, display):
        mock_file = MagicMock()
        display._fb_handle = mock_file

        assert display.clear(color=(255, 0, 0)) is True

        written = mock_file.write.call_args[0][0]
        assert written[0:2] == bytes([0x00, 0xF8])

    def test_context_manager_closes_on_exception(self, display):
        """Test context manager properly closes on exception."""
        with patch("builtins.open", mock_open()):
            with pytest.raises(ValueError):
                with display as d:
                    assert d is display
                    assert display.is_open
                    raise ValueError("Test exception")

        assert display._fb_handle is None


class TestPngDisplay:
    """Tests for PNG frame output."""

    def test_write_frame(self, mock_config, tmp_path):
        path = tmp_path / "out" / "face.png"
        display = PngDisplay(mock_config, path)

        assert display.open() is True
        assert display.write_frame(Image.new("RGB", (100, 100), (0, 255, 0))) is True

        saved = Image.open(path)
        assert saved.size == (390, 390)
        assert saved.getpixel((0, 0)) == (0, 0, 0)
        assert saved.getpixel((195, 195)) == (0, 255, 0)

    def test_write_before_open(self, mock_config, tmp_path):
        display = PngDisplay(mock_config, tmp_path / "face.png")
        assert display.write_frame(Image.new("RGB", (390, 390))) is False
        assert not (tmp_path / "face.png").exists()

    def test_open_close(self, mock_config, tmp_path):
        display = PngDisplay(mock_config, tmp_path / "face.png")
        with display:
            assert display.is_open
        assert not display.is_open
