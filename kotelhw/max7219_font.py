"""Bitmap fonts and text output for MAX7219 matrix bitmaps."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from .max7219_bitmap import Bitmap, ImageTransform
from .max7219_geometry import BitOp, Point, Transform

CharLike = Union[str, int]


def _code(c: CharLike) -> int:
    if isinstance(c, str):
        if len(c) != 1:
            raise ValueError(f"expected a single character, got {c!r}")
        return ord(c)
    return int(c)


class Font:
    """A monospaced font: one bitmap per character, starting at ``first_ascii``."""

    monospace = True

    def __init__(self, faces: Sequence[Bitmap], first_ascii: int = 32) -> None:
        faces = list(faces)
        if not faces:
            raise ValueError("a font needs at least one face")
        width, height = faces[0].width, faces[0].height
        for face in faces:
            if (face.width, face.height) != (width, height):
                raise ValueError("all faces of a font must have the same size")
        self.width = width
        self.height = height
        self.first_ascii = first_ascii
        self.char_count = len(faces)
        self.faces = faces

    def _index(self, c: CharLike) -> Optional[int]:
        code = _code(c)
        if self.first_ascii <= code < self.first_ascii + self.char_count:
            return code - self.first_ascii
        return None

    def get_face(self, c: CharLike) -> Optional[Bitmap]:
        """Return the face of a character, or None when the font lacks it."""
        index = self._index(c)
        return None if index is None else self.faces[index]

    def get_face_width(self, c: CharLike) -> int:
        """Return the advance of a character; the cell width for every character."""
        return self.width


class ProportionalFont(Font):
    """A font whose faces are moved to the left edge and given their own advance."""

    monospace = False

    def __init__(self, faces: Sequence[Bitmap], space_size: int,
                 first_ascii: int = 32) -> None:
        copies = [Bitmap.from_bytes(face.width, face.height, face.to_bytes(), face.bit_order)
                  for face in faces]
        super().__init__(copies, first_ascii)
        self.widths = [self._trim(face, space_size) for face in self.faces]

    @staticmethod
    def _trim(face: Bitmap, space_size: int) -> int:
        lit = [x for y in range(face.height) for x in range(face.width)
               if face.get_pixel(x, y)]
        if not lit:
            return space_size
        left = min(lit)
        advance = max(lit) + 2
        if left:
            for y in range(face.height):
                for x in range(face.width):
                    source = x + left
                    face.set_pixel(x, y, source < face.width and face.get_pixel(source, y))
            advance -= left
        return advance

    @classmethod
    def from_font(cls, font: Font, space_size: int) -> "ProportionalFont":
        """Build a proportional font from the faces of a monospaced one."""
        return cls(font.faces, space_size, font.first_ascii)

    def get_face_width(self, c: CharLike) -> int:
        """Return the advance of a character, or 0 when the font lacks it."""
        index = self._index(c)
        return 0 if index is None else self.widths[index]


class TextOutput:
    """Writes text onto a bitmap with a fixed transformation and pixel operation."""

    def __init__(self, transform: Transform = Transform.NONE,
                 bitop: BitOp = BitOp.COPY) -> None:
        self.transform = transform
        self.bitop = bitop

    def textout(self, target: Bitmap, font: Font, pt: Point, text: Iterable[CharLike]) -> Point:
        """Draw ``text`` starting at ``pt`` and return where the next character goes.

        Characters the font lacks are skipped without moving the position.
        """
        image_transform = ImageTransform(self.transform, self.bitop)
        for char in text:
            face = font.get_face(char)
            if face is None:
                continue
            direction = target.put_image(pt, face, image_transform)
            advance = font.width if font.monospace else font.get_face_width(char)
            pt = pt + direction.get_width(advance)
        return pt

    def get_text_width(self, font: Font, text: Iterable[CharLike]) -> int:
        """Return the summed advance of all characters of ``text``."""
        return sum(font.get_face_width(char) for char in text)