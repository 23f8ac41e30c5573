"""Integer 2-D transforms used to place bitmaps on MAX7219 LED modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union


class Transform(Enum):
    """Image transformation."""

    NONE = auto()
    ROTATE_CLOCKWISE = auto()
    UPSIDEDOWN = auto()
    ROTATE_COUNTERCLOCKWISE = auto()
    MIRROR_H = auto()
    MIRROR_V = auto()


class BitOp(Enum):
    """How an image pixel is combined with the target pixel."""

    COPY = auto()
    INVERT_COPY = auto()
    MASK = auto()
    INVERT_MASK = auto()
    MERGE = auto()
    INVERT_MERGE = auto()
    FLIP = auto()
    INVERT_FLIP = auto()


class ModuleOrder(Enum):
    """How the chained modules are laid out."""

    LEFT_TO_RIGHT = auto()
    RIGHT_TO_LEFT = auto()
    LEFT_TO_RIGHT_ZIGZAG = auto()
    RIGHT_TO_LEFT_ZIGZAG = auto()


class BitOrder(Enum):
    """Which bit of a byte holds the leftmost pixel."""

    MSB_TO_LSB = auto()
    LSB_TO_MSB = auto()


def _int8(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def _mul(value: int, coef: int) -> int:
    """Multiply by the sign of ``coef`` (coefficients are -1, 0 or 1)."""
    if coef < 0:
        return -value
    if coef > 0:
        return value
    return 0


def _tdiv(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


@dataclass(frozen=True)
class Point:
    """A position in pixels."""

    x: int = 0
    y: int = 0

    def __add__(self, direction: "Direction") -> "Point":
        if not isinstance(direction, Direction):
            return NotImplemented
        return Point(self.x + direction.x, self.y + direction.y)

    def __rmul__(self, constant: int) -> "Point":
        if not isinstance(constant, int):
            return NotImplemented
        return Point(self.x * constant, self.y * constant)


@dataclass(frozen=True)
class Direction:
    """A step between positions; transforms ignore the translation part."""

    x: int = 0
    y: int = 0

    def __rmul__(self, constant: int) -> "Direction":
        if not isinstance(constant, int):
            return NotImplemented
        return Direction(self.x * constant, self.y * constant)


@dataclass
class Matrix:
    """Affine transform ``[a b; c d]`` plus translation ``(u, v)``."""

    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    u: int = 0
    v: int = 0

    def __mul__(self, other: Union[Point, Direction]) -> Union[Point, Direction]:
        if isinstance(other, Point):
            return Point(
                _mul(other.x, self.a) + _mul(other.y, self.b) + self.u,
                _mul(other.x, self.c) + _mul(other.y, self.d) + self.v,
            )
        if isinstance(other, Direction):
            return Direction(
                _mul(other.x, self.a) + _mul(other.y, self.b),
                _mul(other.x, self.c) + _mul(other.y, self.d),
            )
        return NotImplemented

    def __invert__(self) -> "Matrix":
        det = _mul(self.a, self.d) - _mul(self.b, self.c)
        if det == 0:
            return Matrix()
        if det == 1:
            return Matrix(
                _int8(self.d), _int8(-self.b), _int8(-self.c), _int8(self.a),
                -(_mul(self.u, self.d) + _mul(self.v, _int8(-self.b))),
                -(_mul(self.u, _int8(-self.c)) + _mul(self.v, self.a)),
            )
        if det == -1:
            return Matrix(
                _int8(-self.d), _int8(self.b), _int8(self.c), _int8(-self.a),
                -(_mul(self.u, _int8(-self.d)) + _mul(self.v, self.b)),
                -(_mul(self.u, self.c) + _mul(self.v, _int8(-self.a))),
            )
        inverse = Matrix(
            _int8(_tdiv(self.d, det)), _int8(_tdiv(-self.b, det)),
            _int8(_tdiv(-self.c, det)), _int8(_tdiv(self.a, det)),
        )
        inverse.u = -(_mul(self.u, inverse.a) + _mul(self.v, inverse.b))
        inverse.v = -(_mul(self.u, inverse.c) + _mul(self.v, inverse.d))
        return inverse


_TRANSFORMS = {
    Transform.NONE: (1, 0, 0, 1),
    Transform.ROTATE_CLOCKWISE: (0, 1, -1, 0),
    Transform.ROTATE_COUNTERCLOCKWISE: (0, -1, 1, 0),
    Transform.UPSIDEDOWN: (-1, 0, 0, -1),
    Transform.MIRROR_H: (-1, 0, 0, 1),
    Transform.MIRROR_V: (1, 0, 0, -1),
}


def get_transform(transform: Transform, u: int = 0, v: int = 0) -> Matrix:
    """Return the matrix of a transformation with translation (u, v)."""
    a, b, c, d = _TRANSFORMS.get(transform, _TRANSFORMS[Transform.NONE])
    return Matrix(a, b, c, d, u, v)