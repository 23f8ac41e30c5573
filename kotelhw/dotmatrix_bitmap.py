"""Monochrome bitmaps, bit blitting and text rendering onto dot-matrix frame buffers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .dotmatrix import FrameBuffer


class BltOp(Enum):
    """How bitmap pixels are combined with the frame buffer."""

    COPY = "copy"
    AND_OP = "and_op"
    OR_OP = "or_op"
    XOR_OP = "xor_op"
    NAND_OP = "nand_op"
    NOR_OP = "nor_op"
    COPY_NEG = "copy_neg"


class Rotation(Enum):
    """Rotation of a bitmap when it is blitted."""

    ROT0 = "rot0"
    ROT90 = "rot90"
    ROT180 = "rot180"
    ROT270 = "rot270"


@dataclass(frozen=True)
class ColorMap:
    """Colours used for set (foreground) and clear (background) bitmap pixels."""

    foreground: int = 0xFF
    background: int = 0x00


class Bitmap:
    """A one-bit-per-pixel image; (0, 0) is the top-left corner.

    Within each byte the least significant bit is the leftmost pixel.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0:
            raise ValueError("width must be positive")
        if height <= 0:
            raise ValueError("height must be positive")
        self.width = width
        self.height = height
        self.line_width = (width + 7) // 8
        self.rows = [bytearray(self.line_width) for _ in range(height)]

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "Bitmap":
        """Build a bitmap from raw rows of ``(width + 7) // 8`` bytes each."""
        bitmap = cls(width, height)
        raw = bytes(data)
        line = bitmap.line_width
        expected = line * height
        if len(raw) != expected:
            raise ValueError(f"expected {expected} bytes, got {len(raw)}")
        bitmap.rows = [bytearray(raw[start:start + line]) for start in range(0, expected, line)]
        return bitmap

    @classmethod
    def from_ascii(cls, width: int, height: int, art: str) -> "Bitmap":
        """Build a bitmap from ascii art: space is off, any printable character is on."""
        if len(art) != width * height:
            raise ValueError(f"ascii art must have exactly {width * height} characters, got {len(art)}")
        bitmap = cls(width, height)
        for index, char in enumerate(art):
            if ord(char) > 32:
                y, x = divmod(index, width)
                bitmap.set_pixel(x, y)
        return bitmap

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} bitmap")

    def set_pixel(self, x: int, y: int) -> None:
        """Turn a pixel on."""
        self._check(x, y)
        self.rows[y][x >> 3] |= 1 << (x & 7)

    def get_pixel(self, x: int, y: int) -> bool:
        """Return whether a pixel is on."""
        self._check(x, y)
        return bool(self.rows[y][x >> 3] & (1 << (x & 7)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return (self.width, self.height, self.rows) == (other.width, other.height, other.rows)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bitmap({self.width}x{self.height})"

    def draw(self, framebuffer: FrameBuffer, x: int, y: int,
             colors: Optional[ColorMap] = None,
             blt_op: BltOp = BltOp.COPY,
             rotation: Rotation = Rotation.ROT0) -> None:
        """Blit this bitmap onto a frame buffer at (x, y)."""
        bitblt(self, framebuffer, x, y, colors, blt_op, rotation)


def _target(rotation: Rotation, col: int, row: int, x: int, y: int) -> Tuple[int, int]:
    if rotation is Rotation.ROT90:
        return col - y, row + x
    if rotation is Rotation.ROT180:
        return col - x, row - y
    if rotation is Rotation.ROT270:
        return col + y, row - x
    return col + x, row + y


def bitblt(bitmap: Bitmap, framebuffer: FrameBuffer, col: int, row: int,
           colors: Optional[ColorMap] = None,
           op: BltOp = BltOp.COPY,
           rotation: Rotation = Rotation.ROT0) -> None:
    """Copy a bitmap onto a frame buffer with its top-left corner at (col, row).

    Pixels that fall outside the frame buffer are dropped.
    """
    colors = colors or ColorMap()
    fg = colors.foreground
    bg = colors.background
    for y in range(bitmap.height):
        for x in range(bitmap.width):
            c, r = _target(rotation, col, row, x, y)
            on = bitmap.get_pixel(x, y)
            if op is BltOp.XOR_OP:
                framebuffer.set_pixel(c, r, framebuffer.get_pixel(c, r) ^ (fg if on else bg))
            elif op is BltOp.AND_OP:
                if not on:
                    framebuffer.set_pixel(c, r, bg)
            elif op is BltOp.OR_OP:
                if on:
                    framebuffer.set_pixel(c, r, fg)
            elif op is BltOp.NAND_OP:
                if not on:
                    framebuffer.set_pixel(c, r, fg)
            elif op is BltOp.NOR_OP:
                if on:
                    framebuffer.set_pixel(c, r, bg)
            elif op is BltOp.COPY_NEG:
                framebuffer.set_pixel(c, r, bg if on else fg)
            else:
                framebuffer.set_pixel(c, r, fg if on else bg)


@dataclass
class FontFace:
    """One character of a font: its advance width and its image."""

    width: int
    face: Bitmap


def character_face(font: Sequence[FontFace], ascii_char: int) -> FontFace:
    """Return the face for a character code of a 96-character font starting at space.

    Codes below 33 map to space, codes above 127 map to '?'.
    """
    if ascii_char < 33:
        ascii_char = 32
    elif ascii_char > 127:
        ascii_char = ord("?")
    return font[ascii_char - 32]


class TextRender:
    """Renders characters and strings with a fixed blit operation and rotation."""

    def __init__(self, op: BltOp = BltOp.COPY, rotation: Rotation = Rotation.ROT0) -> None:
        self.op = op
        self.rotation = rotation

    def render_character(self, framebuffer: FrameBuffer, font: Sequence[FontFace],
                         x: int, y: int, ascii_char: int,
                         colors: Optional[ColorMap] = None) -> int:
        """Draw one character and return its width."""
        face = character_face(font, ascii_char)
        bitblt(face.face, framebuffer, x, y, colors, self.op, self.rotation)
        return face.width

    def get_character_width(self, font: Sequence[FontFace], ascii_char: int) -> int:
        """Return the advance width of a character."""
        return character_face(font, ascii_char).width

    def render_text(self, framebuffer: FrameBuffer, font: Sequence[FontFace],
                    x: int, y: int, text: str,
                    colors: Optional[ColorMap] = None) -> Tuple[int, int]:
        """Draw a string and return the position where the next character would go."""
        for char in text:
            advance = self.render_character(framebuffer, font, x, y, ord(char), colors)
            if self.rotation is Rotation.ROT0:
                x += advance
            elif self.rotation is Rotation.ROT90:
                y += advance
            elif self.rotation is Rotation.ROT180:
                x -= advance
            else:
                y -= advance
        return x, y