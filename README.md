# kotelhw

Building blocks for small LED displays and sensor buses. Nothing in here
needs a real device: every pin, clock or timer goes through an object you
supply, so the code runs the same against hardware glue or a test double.

## Modules

### `kotelhw.dotmatrix`: 12x8 charlieplexed LED matrix

- `FrameBuffer(width, height, format, order)` holds packed pixels. The format
  is `Format.MONOCHROME_1BIT` or `Format.GRAY_BLINK_2BIT`, where 0 is off,
  1 is low intensity, 2 is high intensity and 3 blinks. The buffer may be wider
  or taller than the visible area. It has `set_pixel`, `get_pixel`, `clear`,
  `draw_line` and `draw_box`. Coordinates outside the buffer are ignored.
- `MatrixPins` records the state of the eleven row lines: `None` for high
  impedance, `True` for driven high, `False` for driven low. Subclass it to
  drive real pins.
- `Driver(pins, framebuffer, orientation, offset)` maps the buffer onto the
  LEDs for one of the four `Orientation`s. Each call to
  `drive(state, framebuffer, fb_offset)` advances the `State` counter and
  lights the next slice. Gray pixels blink according to `State.blink_mask`.
- `AutoDrive` calls a function periodically on a background thread.
  `enable_auto_drive(callback, freq)`, `enable_auto_drive_driver(driver,
  state, framebuffer)`, `enable_auto_drive_scroll(driver, state, framebuffer,
  speed_div)` and `disable_auto_drive()` manage one shared instance.

### `kotelhw.dotmatrix_bitmap`: bitmaps and text for the dot matrix

- `Bitmap` is a 1-bit image. Build it with `Bitmap.from_ascii` (a space is
  off, any printable character is on) or with `Bitmap.from_bytes`.
- `bitblt(...)` and `Bitmap.draw(...)` copy a bitmap into a `FrameBuffer`.
  `BltOp` selects how pixels combine (copy, and, or, xor, nand, nor, negated
  copy), `Rotation` rotates in 90° steps, and `ColorMap` picks the
  foreground and background colours.
- `FontFace(width, face)` and `character_face(font, code)` describe a
  96-character font that starts at the space character. `TextRender` draws
  single characters or whole strings and returns the next pen position.

### `kotelhw.max7219_geometry`

`Transform`, `BitOp`, `ModuleOrder` and `BitOrder` enums. `Point`,
`Direction` and `Matrix` provide the small integer arithmetic behind rotations
and mirrors: `matrix * point`, `~matrix` and `point + direction`.
`get_transform(transform, u, v)` builds a matrix.

### `kotelhw.max7219_bitmap`

A `Bitmap` with a selectable `BitOrder`. It has `set_pixel`, `clear_pixel`,
`get_pixel`, `clear`, `fill`, `draw_line`, `draw_box` and
`put_image(pt, bitmap, transform, crop)`. `put_image` places another bitmap
using an `ImageTransform` and an optional `CropRect`, and returns a
`DirectionInfo`.

### `kotelhw.max7219_font`

`Font` is monospaced, built from a list of equally sized bitmaps.
`ProportionalFont` (or `ProportionalFont.from_font`) shifts each face to the
left edge and gives it its own advance width. `TextOutput(transform, bitop)`
provides `textout` and `get_text_width`.

### `kotelhw.max7219`

`Driver(pins, data_pin, cs_pin, clk_pin)` speaks the MAX7219 serial protocol
through a pin object. That object provides `set_output(pin)`,
`set_input_pullup(pin)`, `read(pin)` and `write(pin, level)`.
`MatrixDriver(driver, columns, rows, module_order, transform)` shows a
`max7219_bitmap.Bitmap` across a grid of 8x8 modules. It has `begin`, `init`,
`display`, `set_intensity`, `set_module_intensity` and `clear`.
`BusShortedError` is raised when a bus line reads low before a packet starts.

### `kotelhw.onewire`

`OneWire(platform)` is a bit-banged 1-Wire master. The platform object
provides the pin, clock and interrupt hooks. The master offers `reset`
(returns whether a device answered), `write`, `write_bytes`, `read`,
`read_bytes`, `select`, `select_all`, `search_begin` and `search`.
`search` returns an `Address`, or `None` once the search is finished.
`BusError` is raised when the bus stays low. `crc8`, `crc16` and `check_crc16`
compute the Dallas/Maxim checksums.

## Not included

The package ships no font data. To draw text, supply your own list of
`FontFace`s for `TextRender`, or your own bitmaps for `Font` and
`ProportionalFont`. There is also no pin, timer or clock code for any
particular board. You provide those through `MatrixPins`, the MAX7219 pin
object and the 1-Wire platform object.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Example

    from kotelhw.dotmatrix import FrameBuffer, Format, Order
    from kotelhw.dotmatrix_bitmap import Bitmap

    fb = FrameBuffer(12, 8, Format.MONOCHROME_1BIT, Order.MSB_TO_LSB)
    fb.draw_line(0, 0, 11, 7, 1)
    assert fb.get_pixel(0, 0) == 1

    arrow = Bitmap.from_ascii(3, 3, " X XXX X ")
    arrow.draw(fb, 4, 2)
    assert fb.get_pixel(5, 2) == 1

    from kotelhw.onewire import crc8
    assert crc8(b"") == 0