"""Tests for frame image export.

Tests cover:
- Output path templating with the frame number placeholder
- PNG writing, including missing parent directories
- Saving a completed frame
"""

import numpy as np
from PIL import Image as PILImage


class TestOutputPath:
    """Tests for frame_output_path."""

    def test_placeholder_replaced(self):
        """Test that %n becomes the frame number."""
        from sidequest.preview.export import frame_output_path

        assert frame_output_path("out/frame_%n.png", 12) == "out/frame_12.png"

    def test_every_placeholder_replaced(self):
        """Test that repeated placeholders are all substituted."""
        from sidequest.preview.export import frame_output_path

        assert frame_output_path("%n/img_%n.png", 3) == "3/img_3.png"

    def test_no_placeholder(self):
        """Test that a template without %n is used as is."""
        from sidequest.preview.export import frame_output_path

        assert frame_output_path("still.png", 5) == "still.png"


class TestSavePng:
    """Tests for writing image files."""

    def test_save_creates_file(self, tmp_path):
        """Test that a PNG with the image's size is written."""
        from sidequest.preview.export import save_png_from_array

        image = np.full((10, 20, 3), 0.5, dtype=np.float32)
        path = save_png_from_array(image, tmp_path / "test.png")

        assert path.exists()
        with PILImage.open(path) as img:
            assert img.size == (20, 10)
            assert img.mode == "RGB"

    def test_creates_parent_directories(self, tmp_path):
        """Test that missing directories are created."""
        from sidequest.preview.export import save_png_from_array

        path = save_png_from_array(np.zeros((2, 2, 3), dtype=np.float32), tmp_path / "a" / "b.png")
        assert path.exists()

    def test_pixel_values(self, tmp_path):
        """Test that linear values are sRGB encoded."""
        from sidequest.preview.export import save_png_from_array

        image = np.zeros((1, 3, 3), dtype=np.float32)
        image[0, 1] = 0.5
        image[0, 2] = 1.0
        path = save_png_from_array(image, tmp_path / "values.png")

        with PILImage.open(path) as img:
            pixels = np.array(img)
        assert pixels[0, 0].tolist() == [0, 0, 0]
        assert pixels[0, 1].tolist() == [188, 188, 188]
        assert pixels[0, 2].tolist() == [255, 255, 255]


class TestSaveFrame:
    """Tests for save_frame."""

    def test_save_frame_uses_template(self, tmp_path):
        """Test that a frame is written to its numbered path."""
        from sidequest.core.frame import Frame
        from sidequest.preview.export import save_frame

        frame = Frame(width=8, height=4, tiles_total=1)
        frame.buf[:] = 1.0
        path = save_frame(frame, str(tmp_path / "frame_%n.png"), 7)

        assert path == tmp_path / "frame_7.png"
        with PILImage.open(path) as img:
            assert img.size == (8, 4)
            assert np.array(img).min() == 255
