import pytest

from kotelhw.max7219_bitmap import Bitmap, CropRect, DirectionInfo, ImageTransform
from kotelhw.max7219_geometry import BitOp, BitOrder, Direction, Point, Transform

ART = (
    "X  X"
    " XX "
    "X   "
    "XXXX"
)


def pixels(bmp):
    return {(x, y) for y in range(bmp.height) for x in range(bmp.width) if bmp.get_pixel(x, y)}


def test_pixel_mask_msb_and_lsb():
    assert Bitmap(8, 1).pixel_mask(0) == 0x80
    assert Bitmap(8, 1, BitOrder.LSB_TO_MSB).pixel_mask(0) == 0x01


def test_from_bytes_bit_order():
    msb = Bitmap.from_bytes(8, 1, b"\x01")
    lsb = Bitmap.from_bytes(8, 1, b"\x01", BitOrder.LSB_TO_MSB)
    assert pixels(msb) == {(7, 0)}
    assert pixels(lsb) == {(0, 0)}


def test_from_bytes_round_trip():
    data = bytes([0x12, 0x80, 0xFF, 0x00, 0x5A, 0xC0])
    bmp = Bitmap.from_bytes(10, 3, data)
    assert bmp.to_bytes() == data


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        Bitmap.from_bytes(10, 3, b"\x00" * 5)


def test_from_ascii_pixels():
    bmp = Bitmap.from_ascii(4, 4, ART)
    expected = {(i % 4, i // 4) for i, c in enumerate(ART) if c != " "}
    assert pixels(bmp) == expected


def test_from_ascii_wrong_length():
    with pytest.raises(ValueError):
        Bitmap.from_ascii(4, 4, ART[:-1])


def test_zero_size_rejected():
    with pytest.raises(ValueError):
        Bitmap(0, 3)


def test_out_of_range_pixel():
    bmp = Bitmap(4, 4)
    with pytest.raises(IndexError):
        bmp.get_pixel(4, 0)
    with pytest.raises(IndexError):
        bmp.set_pixel(0, -1)


def test_set_and_clear_pixel():
    bmp = Bitmap(12, 2)
    bmp.set_pixel(9, 1)
    assert bmp.get_pixel(9, 1) is True
    bmp.set_pixel(9, 1, False)
    assert bmp.get_pixel(9, 1) is False
    bmp.set_pixel(3, 0)
    bmp.clear_pixel(3, 0)
    assert pixels(bmp) == set()


def test_fill_and_clear():
    bmp = Bitmap(5, 3)
    bmp.fill()
    assert len(pixels(bmp)) == bmp.total_pixels
    bmp.clear()
    assert pixels(bmp) == set()


def test_draw_line_diagonal_and_clear():
    bmp = Bitmap(8, 8)
    bmp.draw_line(0, 0, 5, 5)
    assert pixels(bmp) == {(i, i) for i in range(6)}
    bmp.draw_line(5, 5, 0, 0, False)
    assert pixels(bmp) == set()


def test_draw_box_swapped_corners():
    bmp = Bitmap(8, 8)
    bmp.draw_box(4, 3, 2, 1)
    assert pixels(bmp) == {(x, y) for x in range(2, 5) for y in range(1, 4)}
    bmp.fill()
    bmp.draw_box(2, 1, 4, 3, False)
    assert len(pixels(bmp)) == 64 - 9


def test_put_image_identity_copy():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    direction = dst.put_image(Point(0, 0), src)
    assert dst == src
    assert direction == DirectionInfo(Direction(1, 0), Direction(0, 1))


def test_direction_info_scaling():
    info = DirectionInfo(Direction(1, 0), Direction(0, 1))
    assert info.get_width(3) == Direction(3, 0)
    assert info.get_height(2) == 2 * Direction(1, 0)


def test_put_image_offset_clips():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    dst.put_image(Point(-1, -2), src)
    expected = {(x - 1, y - 2) for x, y in pixels(src) if x >= 1 and y >= 2}
    assert pixels(dst) == expected


def test_upsidedown_twice_restores():
    src = Bitmap.from_ascii(4, 4, ART)
    once = Bitmap(4, 4)
    once.put_image(Point(3, 3), src, ImageTransform(Transform.UPSIDEDOWN))
    twice = Bitmap(4, 4)
    twice.put_image(Point(3, 3), once, ImageTransform(Transform.UPSIDEDOWN))
    assert once != src
    assert twice == src


def test_rotate_clockwise_then_counterclockwise_restores():
    src = Bitmap.from_ascii(4, 4, ART)
    rotated = Bitmap(4, 4)
    rotated.put_image(Point(0, 3), src, ImageTransform(Transform.ROTATE_CLOCKWISE))
    back = Bitmap(4, 4)
    back.put_image(Point(3, 0), rotated, ImageTransform(Transform.ROTATE_COUNTERCLOCKWISE))
    assert len(pixels(rotated)) == len(pixels(src))
    assert back == src


def test_mirror_h_mirrors_columns():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    dst.put_image(Point(3, 0), src, ImageTransform(Transform.MIRROR_H))
    assert pixels(dst) == {(3 - x, y) for x, y in pixels(src)}


def test_invert_copy_negates():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    dst.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.INVERT_COPY))
    for y in range(4):
        for x in range(4):
            assert dst.get_pixel(x, y) != src.get_pixel(x, y)


def test_flip_twice_restores_target():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    dst.draw_box(0, 0, 1, 3)
    before = dst.to_bytes()
    flip = ImageTransform(bit_operation=BitOp.FLIP)
    dst.put_image(Point(0, 0), src, flip)
    assert dst.to_bytes() != before
    dst.put_image(Point(0, 0), src, flip)
    assert dst.to_bytes() == before


def test_mask_merge_and_invert_flip():
    src = Bitmap.from_ascii(4, 4, ART)
    full = Bitmap(4, 4)
    full.fill()
    full.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.MASK))
    assert pixels(full) == pixels(src)

    empty = Bitmap(4, 4)
    empty.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.MERGE))
    assert pixels(empty) == pixels(src)

    other = Bitmap(4, 4)
    other.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.INVERT_FLIP))
    assert pixels(other) == {(x, y) for x in range(4) for y in range(4)} - pixels(src)


def test_invert_mask_and_invert_merge():
    src = Bitmap.from_ascii(4, 4, ART)
    full = Bitmap(4, 4)
    full.fill()
    full.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.INVERT_MASK))
    all_px = {(x, y) for x in range(4) for y in range(4)}
    assert pixels(full) == all_px - pixels(src)

    empty = Bitmap(4, 4)
    empty.put_image(Point(0, 0), src, ImageTransform(bit_operation=BitOp.INVERT_MERGE))
    assert pixels(empty) == all_px - pixels(src)


def test_crop_selects_region():
    src = Bitmap.from_ascii(4, 4, ART)
    dst = Bitmap(4, 4)
    dst.put_image(Point(0, 0), src, crop=CropRect(1, 1, 3, 4))
    expected = {(x - 1, y - 1) for x, y in pixels(src) if 1 <= x < 3 and 1 <= y < 4}
    assert pixels(dst) == expected


def test_crop_negative_size_rejected():
    src = Bitmap(4, 4)
    with pytest.raises(ValueError):
        Bitmap(4, 4).put_image(Point(0, 0), src, crop=CropRect(3, 0, 1, 2))