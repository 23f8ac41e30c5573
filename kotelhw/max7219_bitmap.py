"""Monochrome bitmaps for MAX7219 LED matrices, with transformed image placement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .max7219_geometry import (
    BitOp,
    BitOrder,
    Direction,
    Point,
    Transform,
    get_transform,
)


@dataclass(frozen=True)
class ImageTransform:
    """Transformation and pixel operation applied by ``Bitmap.put_image``."""

    transform: Transform = Transform.NONE
    bit_operation: BitOp = BitOp.COPY


@dataclass(frozen=True)
class CropRect:
    """Part of a source image; ``right`` and ``bottom`` are exclusive."""

    left: int
    top: int
    right: int
    bottom: int


@dataclass(frozen=True)
class DirectionInfo:
    """Steps on the target that follow one source pixel along x and along y."""

    x: Direction
    y: Direction

    def get_width(self, width: int) -> Direction:
        """Return the step covering ``width`` source pixels along x."""
        return width * self.x

    def get_height(self, height: int) -> Direction:
        """Return ``height`` times the x step, as the text layout uses it."""
        return height * self.x


_BIT_OPS: dict = {
    BitOp.COPY: lambda src, dst: src,
    BitOp.INVERT_COPY: lambda src, dst: not src,
    BitOp.MASK: lambda src, dst: src and dst,
    BitOp.INVERT_MASK: lambda src, dst: (not src) and dst,
    BitOp.MERGE: lambda src, dst: src or dst,
    BitOp.INVERT_MERGE: lambda src, dst: (not src) or dst,
    BitOp.FLIP: lambda src, dst: src != dst,
    BitOp.INVERT_FLIP: lambda src, dst: src == dst,
}


class Bitmap:
    """A one-bit-per-pixel image stored row by row; (0, 0) is the top-left corner."""

    def __init__(self, width: int, height: int,
                 bit_order: BitOrder = BitOrder.MSB_TO_LSB) -> None:
        if width <= 0:
            raise ValueError("width must be positive")
        if height <= 0:
            raise ValueError("height must be positive")
        self.width = width
        self.height = height
        self.bit_order = bit_order
        self.width_bytes = (width + 7) // 8
        self.total_pixels = width * height
        self.total_bytes = self.width_bytes * height
        self.data = bytearray(self.total_bytes)

    @classmethod
    def from_ascii(cls, width: int, height: int, art: str,
                   bit_order: BitOrder = BitOrder.MSB_TO_LSB) -> "Bitmap":
        """Build a bitmap from ascii art: space is off, any printable character is on."""
        bitmap = cls(width, height, bit_order)
        if len(art) != bitmap.total_pixels:
            raise ValueError(
                f"ascii art must have exactly {bitmap.total_pixels} characters, got {len(art)}")
        for index, char in enumerate(art):
            if ord(char) > 32:
                y, x = divmod(index, width)
                bitmap.set_pixel(x, y)
        return bitmap

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes,
                   bit_order: BitOrder = BitOrder.MSB_TO_LSB) -> "Bitmap":
        """Build a bitmap from raw rows of ``(width + 7) // 8`` bytes each."""
        bitmap = cls(width, height, bit_order)
        raw = bytes(data)
        if len(raw) != bitmap.total_bytes:
            raise ValueError(f"expected {bitmap.total_bytes} bytes, got {len(raw)}")
        bitmap.data[:] = raw
        return bitmap

    def to_bytes(self) -> bytes:
        """Return the raw row data."""
        return bytes(self.data)

    def pixel_mask(self, x: int) -> int:
        """Return the bit within its byte that holds column ``x``."""
        if self.bit_order is BitOrder.MSB_TO_LSB:
            return 0x80 >> (x & 7)
        return 0x01 << (x & 7)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} bitmap")
        return y * self.width_bytes + (x >> 3)

    def set_pixel(self, x: int, y: int, state: bool = True) -> None:
        """Turn a pixel on, or off when ``state`` is false."""
        if not state:
            self.clear_pixel(x, y)
            return
        self.data[self._index(x, y)] |= self.pixel_mask(x)

    def clear_pixel(self, x: int, y: int) -> None:
        """Turn a pixel off."""
        index = self._index(x, y)
        self.data[index] &= ~self.pixel_mask(x) & 0xFF

    def get_pixel(self, x: int, y: int) -> bool:
        """Return whether a pixel is on."""
        return bool(self.data[self._index(x, y)] & self.pixel_mask(x))

    def clear(self) -> None:
        """Turn every pixel off."""
        self.data[:] = bytes(self.total_bytes)

    def fill(self) -> None:
        """Turn every pixel on."""
        self.data[:] = b"\xff" * self.total_bytes

    def _painter(self, set_pixel: bool) -> Callable[[int, int], None]:
        return self.set_pixel if set_pixel else self.clear_pixel

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, set_pixel: bool = True) -> None:
        """Draw a line between two points, both included; clear it when ``set_pixel`` is false."""
        paint = self._painter(set_pixel)
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        while True:
            paint(x0, y0)
            if x0 == x1 and y0 == y1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy

    def draw_box(self, x0: int, y0: int, x1: int, y1: int, set_pixel: bool = True) -> None:
        """Fill a rectangle, all corner coordinates included."""
        paint = self._painter(set_pixel)
        x0, x1 = sorted((x0, x1))
        y0, y1 = sorted((y0, y1))
        for y in range(y0, y1 + 1):
            for x in range(x0, x1 + 1):
                paint(x, y)

    def put_image(self, pt: Point, bitmap: "Bitmap",
                  transform: Optional[ImageTransform] = None,
                  crop: Optional[CropRect] = None) -> DirectionInfo:
        """Draw ``bitmap`` with its (transformed) top-left corner at ``pt``.

        The crop rectangle selects part of the source before it is transformed.
        Target pixels outside this bitmap are skipped. Returns the target steps
        that correspond to one source pixel along x and y.
        """
        transform = transform or ImageTransform()
        src_left, src_top = 0, 0
        src_width, src_height = bitmap.width, bitmap.height
        if crop is not None:
            if crop.right < crop.left or crop.bottom < crop.top:
                raise ValueError("crop rectangle has negative size")
            src_left, src_top = crop.left, crop.top
            src_width = crop.right - crop.left
            src_height = crop.bottom - crop.top
        operation = _BIT_OPS[transform.bit_operation]
        matrix = get_transform(transform.transform)
        direction = DirectionInfo(matrix * Direction(1, 0), matrix * Direction(0, 1))

        row_start = pt
        for y in range(src_height):
            target = row_start
            for x in range(src_width):
                tx, ty = target.x, target.y
                if 0 <= tx < self.width and 0 <= ty < self.height:
                    src = bitmap.get_pixel(x + src_left, y + src_top)
                    self.set_pixel(tx, ty, operation(src, self.get_pixel(tx, ty)))
                target = target + direction.x
            row_start = row_start + direction.y
        return direction

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return (self.width, self.height, self.bit_order, self.data) == (
            other.width, other.height, other.bit_order, other.data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bitmap({self.width}x{self.height}, {self.bit_order.name})"