"""
Pixel Buffer for the CHIP-8 Interpreter
=======================================

The CHIP-8 display is a 64x32 monochrome bitmap. Programs draw on it
exclusively by XOR-ing sprites: each sprite row is one byte, MSB leftmost,
and a pixel that goes from on to off during a draw is a collision.

All coordinate arithmetic wraps: a sprite drawn across the right or bottom
edge continues on the opposite side.

The buffer is shared read-only with a DisplaySink, which the machine
notifies after every instruction that modifies it. Two renderers are
provided for headless use: a text dump and a PNG image (Pillow).

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import io
from typing import List, Protocol

from PIL import Image


DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32


class DisplaySink(Protocol):
    """
    Protocol for whatever shows the pixel buffer to a user.

    present() is called by the machine after any instruction that changed
    the buffer. Implementations must treat the buffer as read-only and must
    not block for long: instruction execution waits for them to return.
    """

    def present(self, framebuffer: "FrameBuffer") -> None:
        ...


class NullDisplay:
    """Display sink that ignores every frame."""

    def present(self, framebuffer: "FrameBuffer") -> None:
        pass


class FrameBuffer:
    """
    64x32 monochrome pixel buffer with XOR sprite drawing.

    Pixels are stored row-major, one byte per pixel (0 or 1).

    Example:
        >>> fb = FrameBuffer()
        >>> fb.draw_sprite(0, 0, bytes([0xF0]))
        False
        >>> fb.get_pixel(3, 0), fb.get_pixel(4, 0)
        (1, 0)
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self._width = width
        self._height = height
        self._pixels = bytearray(width * height)
        self._dirty = False

    @property
    def width(self) -> int:
        """Width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Height in pixels."""
        return self._height

    @property
    def dirty(self) -> bool:
        """True if the buffer changed since the last mark_clean()."""
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    # =========================================================================
    # Pixel Access
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> int:
        """Read the pixel at (x, y); coordinates wrap."""
        return self._pixels[(y % self._height) * self._width + (x % self._width)]

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels[:] = bytes(len(self._pixels))
        self._dirty = True

    def draw_sprite(self, x: int, y: int, sprite: bytes) -> bool:
        """
        XOR a sprite onto the buffer.

        Args:
            x: Left column of the sprite (wraps modulo width)
            y: Top row of the sprite (wraps modulo height)
            sprite: One byte per row, MSB is the leftmost pixel

        Returns:
            True if any pixel was switched from on to off
        """
        collision = False
        width = self._width
        for row, bits in enumerate(sprite):
            line = ((y + row) % self._height) * width
            for col in range(8):
                if not (bits >> (7 - col)) & 1:
                    continue
                index = line + (x + col) % width
                if self._pixels[index]:
                    collision = True
                self._pixels[index] ^= 1
        if sprite:
            self._dirty = True
        return collision

    def rows(self) -> List[bytes]:
        """Return the buffer as a list of rows (one byte per pixel)."""
        w = self._width
        return [bytes(self._pixels[r * w:(r + 1) * w]) for r in range(self._height)]

    def lit_pixels(self) -> int:
        """Number of pixels currently on."""
        return sum(self._pixels)

    # =========================================================================
    # Rendering
    # =========================================================================

    def render_text(self, on: str = "#", off: str = ".") -> str:
        """Render the buffer as text, one line per pixel row."""
        return "\n".join(
            "".join(on if p else off for p in row) for row in self.rows()
        )

    def render_image(
        self,
        scale: int = 8,
        ink_color: tuple = (230, 230, 230),
        paper_color: tuple = (16, 16, 16),
    ) -> bytes:
        """
        Render the buffer as a PNG image.

        Args:
            scale: Size of each pixel in image pixels
            ink_color: RGB tuple for lit pixels
            paper_color: RGB tuple for background

        Returns:
            PNG image bytes
        """
        img = Image.new('RGB', (self._width, self._height), color=paper_color)
        for y, row in enumerate(self.rows()):
            for x, pixel in enumerate(row):
                if pixel:
                    img.putpixel((x, y), ink_color)
        if scale > 1:
            img = img.resize(
                (self._width * scale, self._height * scale),
                resample=Image.Resampling.NEAREST,
            )

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()
