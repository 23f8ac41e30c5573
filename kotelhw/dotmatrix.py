"""Frame buffers and a multiplexing driver for a charlieplexed 12x8 LED matrix."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

NUM_ROWS = 11
NUM_LEDS = 96
RECOMMENDED_REFRESH_FREQ = 1000

# (high row, low row) pair for each LED, in display order (12 per line, 8 lines).
LED_PINS = (
    (7, 3), (3, 7), (7, 4),
    (4, 7), (3, 4), (4, 3), (7, 8), (8, 7), (3, 8),
    (8, 3), (4, 8), (8, 4), (7, 0), (0, 7), (3, 0),
    (0, 3), (4, 0), (0, 4), (8, 0), (0, 8), (7, 6),
    (6, 7), (3, 6), (6, 3), (4, 6), (6, 4), (8, 6),
    (6, 8), (0, 6), (6, 0), (7, 5), (5, 7), (3, 5),
    (5, 3), (4, 5), (5, 4), (8, 5), (5, 8), (0, 5),
    (5, 0), (6, 5), (5, 6), (7, 1), (1, 7), (3, 1),
    (1, 3), (4, 1), (1, 4), (8, 1), (1, 8), (0, 1),
    (1, 0), (6, 1), (1, 6), (5, 1), (1, 5), (7, 2),
    (2, 7), (3, 2), (2, 3), (4, 2), (2, 4), (8, 2),
    (2, 8), (0, 2), (2, 0), (6, 2), (2, 6), (5, 2),
    (2, 5), (1, 2), (2, 1), (7, 10), (10, 7), (3, 10),
    (10, 3), (4, 10), (10, 4), (8, 10), (10, 8), (0, 10),
    (10, 0), (6, 10), (10, 6), (5, 10), (10, 5), (1, 10),
    (10, 1), (2, 10), (10, 2), (7, 9), (9, 7), (3, 9),
    (9, 3), (4, 9), (9, 4),
)


class Format(Enum):
    """Pixel format of a frame buffer."""

    MONOCHROME_1BIT = "monochrome_1bit"
    GRAY_BLINK_2BIT = "gray_blink_2bit"

    @property
    def bits_per_pixel(self) -> int:
        return 1 if self is Format.MONOCHROME_1BIT else 2


class Order(Enum):
    """Bit order used by the driver when reading pixels."""

    MSB_TO_LSB = "msb_to_lsb"
    LSB_TO_MSB = "lsb_to_msb"


class Orientation(Enum):
    """How the frame buffer is laid onto the physical matrix."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    REVERSE_PORTRAIT = "reverse_portrait"
    REVERSE_LANDSCAPE = "reverse_landscape"


class FrameBuffer:
    """Packed pixel memory, possibly larger than the visible 12x8 area."""

    recommended_refresh_freq = RECOMMENDED_REFRESH_FREQ

    def __init__(self, width: int, height: int,
                 format: Format = Format.MONOCHROME_1BIT,
                 order: Order = Order.MSB_TO_LSB) -> None:
        if width <= 0:
            raise ValueError("Width can't be zero")
        if height <= 0:
            raise ValueError("Height can't be zero")
        if 12 * width >= 2048:
            raise ValueError("Too large frame")
        self.width = width
        self.height = height
        self.format = format
        self.order = order
        self.bits_per_pixel = format.bits_per_pixel
        self.mask = (1 << self.bits_per_pixel) - 1
        self.count_pixels = width * height
        self.whole_frame = 12 * width
        self.count_bytes = (self.count_pixels * self.bits_per_pixel + 7) // 8
        self.pixels = bytearray(self.count_bytes)

    def _locate(self, x: int, y: int) -> Optional[tuple]:
        if 0 <= x < self.width and 0 <= y < self.height:
            bit = (x + y * self.width) * self.bits_per_pixel
            return bit // 8, bit % 8
        return None

    def set_pixel(self, x: int, y: int, value: int) -> None:
        """Set a pixel; the value is masked, coordinates outside are ignored."""
        loc = self._locate(x, y)
        if loc is None:
            return
        byte, shift = loc
        current = self.pixels[byte]
        change = (current ^ (value << shift)) & (self.mask << shift)
        self.pixels[byte] = (current ^ change) & 0xFF

    def get_pixel(self, x: int, y: int) -> int:
        """Return a pixel value, or 0 outside the buffer."""
        loc = self._locate(x, y)
        if loc is None:
            return 0
        byte, shift = loc
        return (self.pixels[byte] >> shift) & self.mask

    def clear(self, value: int = 0) -> None:
        """Fill the whole buffer with one colour."""
        fill = 0
        for shift in range(0, 8, self.bits_per_pixel):
            fill |= (value & self.mask) << shift
        self.pixels[:] = bytes([fill & 0xFF]) * self.count_bytes

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: int) -> None:
        """Draw a line between two points, both included."""
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        while True:
            self.set_pixel(x0, y0, color)
            if x0 == x1 and y0 == y1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy

    def draw_box(self, x0: int, y0: int, x1: int, y1: int, color: int) -> None:
        """Fill a rectangle, all corner coordinates included."""
        x0, x1 = sorted((x0, x1))
        y0, y1 = sorted((y0, y1))
        for y in range(y0, y1 + 1):
            for x in range(x0, x1 + 1):
                self.set_pixel(x, y, color)


@dataclass
class State:
    """Driver state: call counter and blink period mask."""

    counter: int = 0
    blink_mask: int = 512


class MatrixPins:
    """The eleven matrix row lines.

    Each line is ``None`` (high impedance), ``True`` (driven high) or
    ``False`` (driven low). Subclass to drive real pins.
    """

    def __init__(self) -> None:
        self.rows: List[Optional[bool]] = [None] * NUM_ROWS

    def _check(self, row: int) -> None:
        if not 0 <= row < NUM_ROWS:
            raise ValueError(f"row {row} out of range 0-{NUM_ROWS - 1}")

    def clear_matrix(self) -> None:
        """Put every row to high impedance."""
        self.rows = [None] * NUM_ROWS

    def activate_row(self, row: int, high: bool) -> None:
        """Drive one row high or low."""
        self._check(row)
        self.rows[row] = bool(high)

    def deactivate_row(self, row: int) -> None:
        """Put one row to high impedance."""
        self._check(row)
        self.rows[row] = None


class _PixelLocation(NamedTuple):
    offset: int = 0
    shift: int = 8


class Driver:
    """Multiplexes a frame buffer onto the matrix one half-row per call."""

    def __init__(self, pins: MatrixPins, framebuffer: FrameBuffer,
                 orientation: Orientation = Orientation.PORTRAIT,
                 offset: int = 0) -> None:
        self.pins = pins
        self.framebuffer = framebuffer
        self.orientation = orientation
        self.offset = offset
        self._pixel_map = self._build_map()

    def _build_map(self) -> List[List[_PixelLocation]]:
        fb = self.framebuffer
        width = fb.width
        bpp = fb.bits_per_pixel
        pixel_map = [[_PixelLocation() for _ in range(NUM_ROWS - 1)]
                     for _ in range(NUM_ROWS)]
        for px, (row, col) in enumerate(LED_PINS):
            if col > row:
                col -= 1
            x = px % 12
            y = px // 12
            if self.orientation is Orientation.LANDSCAPE:
                pxofs = y * width + x + self.offset
            elif self.orientation is Orientation.PORTRAIT:
                pxofs = (7 - y) + x * width + self.offset
            elif self.orientation is Orientation.REVERSE_LANDSCAPE:
                pxofs = (7 - y) * width + (11 - x) + self.offset
            else:
                pxofs = y * width + (11 - x) * width + self.offset
            pxofs = (pxofs * bpp) & 0xFFFFFFFF
            if fb.order is Order.LSB_TO_MSB:
                shift = ((8 - bpp) - pxofs % 8) & 0xFF
            else:
                shift = pxofs % 8
            pixel_map[row][col] = _PixelLocation((pxofs // 8) & 0xFF, shift)
        return pixel_map

    def drive(self, state: State, framebuffer: Optional[FrameBuffer] = None,
              fb_offset: int = 0) -> None:
        """Advance the state and show the next slice of the frame buffer."""
        fb = self.framebuffer if framebuffer is None else framebuffer
        ref = self.framebuffer
        if (fb.width, fb.bits_per_pixel, fb.order) != (ref.width, ref.bits_per_pixel, ref.order):
            raise ValueError("frame buffer does not match the driver's layout")
        state.counter += 1
        c = state.counter
        if fb.format is Format.MONOCHROME_1BIT:
            self._drive_mono(c, fb, fb_offset)
        else:
            self._drive_gray(c, not (c & state.blink_mask), fb, fb_offset)

    def _read(self, fb: FrameBuffer, loc: _PixelLocation, fb_offset: int, mask: int) -> int:
        addr = (fb_offset + loc.offset) % fb.count_bytes
        return (fb.pixels[addr] >> loc.shift) & mask

    def _drive_mono(self, c: int, fb: FrameBuffer, fb_offset: int) -> None:
        self.pins.clear_matrix()
        hrow = (c >> 1) % NUM_ROWS
        count = (NUM_ROWS - 1) // 2
        start = (c & 1) * count
        self.pins.activate_row(hrow, True)
        for j in range(start, start + count):
            lrow = j + 1 if j >= hrow else j
            if self._read(fb, self._pixel_map[hrow][j], fb_offset, 1):
                self.pins.activate_row(lrow, False)

    def _drive_gray(self, c: int, flash: bool, fb: FrameBuffer, fb_offset: int) -> None:
        gray_on = not (c & 1)
        hrow = (c >> 1) % NUM_ROWS
        if gray_on:
            self.pins.clear_matrix()
            self.pins.activate_row(hrow, True)
        for i, loc in enumerate(self._pixel_map[hrow]):
            lrow = i + 1 if i >= hrow else i
            value = self._read(fb, loc, fb_offset, 3)
            if gray_on:
                if value in (1, 2) or (value == 3 and flash):
                    self.pins.activate_row(lrow, False)
            elif value == 1:
                self.pins.deactivate_row(lrow)


class AutoDrive:
    """Calls a function periodically on a background thread."""

    def __init__(self) -> None:
        self._freq = 0
        self._callback: Optional[Callable[[], None]] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_freq(self, freq: int, callback: Optional[Callable[[], None]]) -> None:
        """Start, restart or stop periodic calls; freq 0 or no callback stops."""
        if freq == self._freq and callback == self._callback:
            return
        self._halt()
        if freq and callback is not None:
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run, args=(stop_event, 1.0 / freq, callback), daemon=True
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()
        self._freq = freq
        self._callback = callback

    def stop(self) -> None:
        """Stop periodic calls."""
        self.set_freq(0, None)

    def _halt(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        self._stop_event = None

    @staticmethod
    def _run(stop_event: threading.Event, period: float,
             callback: Callable[[], None]) -> None:
        deadline = time.monotonic()
        while not stop_event.is_set():
            callback()
            deadline += period
            delay = deadline - time.monotonic()
            if delay > 0:
                stop_event.wait(delay)
            else:
                deadline = time.monotonic()


_auto_drive: Optional[AutoDrive] = None


def enable_auto_drive(callback: Callable[[], None], freq: int) -> None:
    """Call ``callback`` ``freq`` times per second in the background."""
    global _auto_drive
    if _auto_drive is None:
        _auto_drive = AutoDrive()
    _auto_drive.set_freq(freq, callback)


def enable_auto_drive_driver(driver: Driver, state: State, framebuffer: FrameBuffer) -> None:
    """Drive ``framebuffer`` through ``driver`` automatically."""
    enable_auto_drive(lambda: driver.drive(state, framebuffer),
                      framebuffer.recommended_refresh_freq)


def enable_auto_drive_scroll(driver: Driver, state: State, framebuffer: FrameBuffer,
                             speed_div: int) -> None:
    """Drive ``framebuffer`` automatically while scrolling through it byte by byte."""
    pixels_per_byte = 8 // framebuffer.bits_per_pixel
    step = framebuffer.width // pixels_per_byte
    if step * pixels_per_byte != framebuffer.width:
        raise ValueError("Unaligned frame buffer")
    speed_div = max(1, speed_div)

    def scroll() -> None:
        driver.drive(state, framebuffer, (state.counter // speed_div) * step)

    enable_auto_drive(scroll, framebuffer.recommended_refresh_freq)


def disable_auto_drive() -> None:
    """Stop automatic driving."""
    if _auto_drive is None:
        return
    _auto_drive.set_freq(0, None)