"""
Pixel Buffer Unit Tests
=======================

Tests for the 64x32 CHIP-8 pixel buffer:
- XOR sprite drawing and collision detection
- Wraparound at the right and bottom edges
- Dirty tracking for display sinks
- Text and PNG rendering

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import io

import pytest
from PIL import Image

from chip8_vm.interpreter import DISPLAY_HEIGHT, DISPLAY_WIDTH, FrameBuffer


@pytest.fixture
def fb():
    """Empty pixel buffer."""
    return FrameBuffer()


# =============================================================================
# Initialization Tests
# =============================================================================

class TestFrameBufferInit:
    """Test buffer construction."""

    def test_dimensions(self, fb):
        """Buffer is 64x32."""
        assert fb.width == DISPLAY_WIDTH == 64
        assert fb.height == DISPLAY_HEIGHT == 32

    def test_starts_blank(self, fb):
        """No pixels are lit."""
        assert fb.lit_pixels() == 0

    def test_starts_clean(self, fb):
        """A new buffer has nothing to present."""
        assert fb.dirty is False


# =============================================================================
# Sprite Drawing Tests
# =============================================================================

class TestDrawSprite:
    """Test XOR sprite drawing."""

    def test_msb_is_leftmost(self, fb):
        """Bit 7 of each row is the leftmost pixel."""
        fb.draw_sprite(0, 0, bytes([0x80]))
        assert fb.get_pixel(0, 0) == 1
        assert fb.get_pixel(1, 0) == 0

    def test_rows_go_down(self, fb):
        """Each sprite byte is the next row."""
        fb.draw_sprite(10, 5, bytes([0xFF, 0x81]))
        assert all(fb.get_pixel(10 + c, 5) for c in range(8))
        assert fb.get_pixel(10, 6) == 1
        assert fb.get_pixel(11, 6) == 0
        assert fb.get_pixel(17, 6) == 1

    def test_no_collision_on_blank(self, fb):
        """Drawing on blank pixels reports no collision."""
        assert fb.draw_sprite(0, 0, bytes([0xF0])) is False

    def test_draw_twice_erases(self, fb):
        """Drawing the same sprite twice restores the buffer and collides."""
        sprite = bytes([0xF0, 0x90, 0xF0])
        fb.draw_sprite(20, 10, sprite)
        assert fb.lit_pixels() == 10
        assert fb.draw_sprite(20, 10, sprite) is True
        assert fb.lit_pixels() == 0

    def test_partial_overlap_collides(self, fb):
        """A single shared pixel is a collision."""
        fb.draw_sprite(0, 0, bytes([0x80]))
        assert fb.draw_sprite(0, 0, bytes([0xC0])) is True
        assert fb.get_pixel(0, 0) == 0
        assert fb.get_pixel(1, 0) == 1

    def test_wrap_right_edge(self, fb):
        """Columns past 63 wrap to the left edge."""
        fb.draw_sprite(60, 0, bytes([0xFF]))
        assert fb.get_pixel(63, 0) == 1
        assert fb.get_pixel(0, 0) == 1
        assert fb.get_pixel(3, 0) == 1
        assert fb.get_pixel(4, 0) == 0

    def test_wrap_bottom_edge(self, fb):
        """Rows past 31 wrap to the top."""
        fb.draw_sprite(0, 31, bytes([0x80, 0x80]))
        assert fb.get_pixel(0, 31) == 1
        assert fb.get_pixel(0, 0) == 1

    def test_start_coordinates_wrap(self, fb):
        """Coordinates beyond the buffer wrap before drawing."""
        fb.draw_sprite(64 + 2, 32 + 3, bytes([0x80]))
        assert fb.get_pixel(2, 3) == 1

    def test_draw_marks_dirty(self, fb):
        """Drawing marks the buffer as changed."""
        fb.draw_sprite(0, 0, bytes([0x80]))
        assert fb.dirty is True
        fb.mark_clean()
        assert fb.dirty is False

    def test_empty_sprite_leaves_clean(self, fb):
        """A zero-row sprite changes nothing."""
        assert fb.draw_sprite(0, 0, b"") is False
        assert fb.dirty is False

    def test_clear(self, fb):
        """clear() turns every pixel off."""
        fb.draw_sprite(0, 0, bytes([0xFF] * 8))
        fb.mark_clean()
        fb.clear()
        assert fb.lit_pixels() == 0
        assert fb.dirty is True


# =============================================================================
# Rendering Tests
# =============================================================================

class TestRendering:
    """Test text and image rendering."""

    def test_render_text_shape(self, fb):
        """Text rendering has 32 lines of 64 characters."""
        lines = fb.render_text().split("\n")
        assert len(lines) == 32
        assert all(len(line) == 64 for line in lines)

    def test_render_text_pixels(self, fb):
        """Lit pixels render as '#', others as '.'."""
        fb.draw_sprite(0, 0, bytes([0xA0]))
        assert fb.render_text().split("\n")[0].startswith("#.#.")

    def test_render_text_custom_chars(self, fb):
        """Characters are configurable."""
        fb.draw_sprite(0, 0, bytes([0x80]))
        assert fb.render_text(on="X", off=" ").split("\n")[0].startswith("X ")

    def test_rows(self, fb):
        """rows() returns one bytes object per row."""
        fb.draw_sprite(1, 2, bytes([0x80]))
        rows = fb.rows()
        assert len(rows) == 32
        assert rows[2][1] == 1

    def test_render_image_png(self, fb):
        """render_image() produces a scaled PNG."""
        fb.draw_sprite(0, 0, bytes([0x80]))
        data = fb.render_image(scale=4)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

        img = Image.open(io.BytesIO(data))
        assert img.size == (256, 128)
        assert img.getpixel((0, 0)) == (230, 230, 230)
        assert img.getpixel((4, 0)) == (16, 16, 16)

    def test_render_image_unscaled(self, fb):
        """Scale 1 keeps the native resolution."""
        img = Image.open(io.BytesIO(fb.render_image(scale=1)))
        assert img.size == (64, 32)
