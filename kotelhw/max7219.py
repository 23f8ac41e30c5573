"""Bit-banged driver for chains of MAX7219 8x8 LED matrix modules."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, NamedTuple

from .max7219_bitmap import Bitmap
from .max7219_geometry import Direction, ModuleOrder, Point, Transform, get_transform

try:
    from typing import Protocol
except ImportError:  # pragma: no cover
    Protocol = object  # type: ignore[assignment,misc]


class Operation(IntEnum):
    """MAX7219 register addresses."""

    NOOP = 0
    DIGIT0 = 1
    DIGIT1 = 2
    DIGIT2 = 3
    DIGIT3 = 4
    DIGIT4 = 5
    DIGIT5 = 6
    DIGIT6 = 7
    DIGIT7 = 8
    DECODEMODE = 9
    INTENSITY = 10
    SCANLIMIT = 11
    SHUTDOWN = 12
    DISPLAYTEST = 15


ROWS = 8


class BusShortedError(Exception):
    """A bus line reads low while it should be idle high."""


class _PinBus(Protocol):
    def set_output(self, pin: int) -> None: ...

    def set_input_pullup(self, pin: int) -> None: ...

    def read(self, pin: int) -> bool: ...

    def write(self, pin: int, level: bool) -> None: ...


class Driver:
    """Serial bus to the module chain.

    ``pins`` provides ``set_output(pin)``, ``set_input_pullup(pin)``,
    ``read(pin) -> bool`` and ``write(pin, level)``.
    """

    def __init__(self, pins: _PinBus, data_pin: int = 2, cs_pin: int = 3,
                 clk_pin: int = 4) -> None:
        self.pins = pins
        self.data_pin = data_pin
        self.cs_pin = cs_pin
        self.clk_pin = clk_pin

    def begin(self) -> None:
        """Release all bus lines."""
        for pin in (self.data_pin, self.clk_pin, self.cs_pin):
            self.pins.set_input_pullup(pin)

    def start_packet(self) -> None:
        """Take the bus and start a packet; raise BusShortedError if a line is low."""
        for pin in (self.clk_pin, self.cs_pin, self.data_pin):
            if not self.pins.read(pin):
                raise BusShortedError(f"pin {pin} is held low")
        self.pins.set_output(self.data_pin)
        self.pins.set_output(self.cs_pin)
        self.pins.write(self.cs_pin, False)
        self.pins.set_output(self.clk_pin)
        self.pins.write(self.clk_pin, False)

    def _transfer_byte(self, value: int) -> None:
        mask = 0x80
        while mask:
            self.pins.write(self.clk_pin, False)
            self.pins.write(self.data_pin, bool(value & mask))
            self.pins.write(self.clk_pin, True)
            mask >>= 1

    def send_command(self, op: int, data: int) -> None:
        """Shift one register write into the chain."""
        self._transfer_byte(int(op) & 0xFF)
        self._transfer_byte(int(data) & 0xFF)

    def commit_packet(self) -> None:
        """Latch the shifted commands and release the bus."""
        self.pins.set_input_pullup(self.cs_pin)
        self.pins.set_input_pullup(self.clk_pin)
        self.pins.set_input_pullup(self.data_pin)

    @staticmethod
    def row2op(row: int) -> Operation:
        """Return the digit register of a module row."""
        return Operation(Operation.DIGIT0 + row)


class _ModuleLocation(NamedTuple):
    xs: int
    x: int
    y: int


class MatrixDriver:
    """A grid of ``columns`` x ``rows`` modules showing a bitmap."""

    def __init__(self, driver: Driver, columns: int = 1, rows: int = 1,
                 module_order: ModuleOrder = ModuleOrder.LEFT_TO_RIGHT,
                 transform: Transform = Transform.NONE) -> None:
        if columns <= 0 or rows <= 0:
            raise ValueError("columns and rows must be positive")
        self.driver = driver
        self.columns = columns
        self.rows = rows
        self.modules = columns * rows
        self.xsize = columns * 8
        self.ysize = rows * 8
        self.module_order = module_order
        self.transform = transform

    def begin(self) -> None:
        """Release the bus and set the modules up."""
        self.driver.begin()
        self.init()

    def init(self) -> None:
        """Configure every module: no decoding, full scan, display on."""
        self._global_command(Operation.INTENSITY, 0)
        self._global_command(Operation.DECODEMODE, 0)
        self._global_command(Operation.SCANLIMIT, 7)
        self._global_command(Operation.DISPLAYTEST, 0)
        self._global_command(Operation.SHUTDOWN, 1)

    def _left_to_right(self, module_id: int, row: int) -> _ModuleLocation:
        return _ModuleLocation(-1, (module_id % self.columns) * 8 + 7,
                               (module_id // self.columns) * 8 + 7 - row)

    def _right_to_left(self, module_id: int, row: int) -> _ModuleLocation:
        return _ModuleLocation(1, (self.columns - module_id % self.columns - 1) * 8,
                               (module_id // self.columns) * 8 + row)

    def get_location(self, module_id: int, row: int) -> _ModuleLocation:
        """Return where a module row starts on screen and its step along x."""
        odd_line = bool((module_id // self.columns) & 1)
        order = self.module_order
        if order is ModuleOrder.RIGHT_TO_LEFT:
            return self._right_to_left(module_id, row)
        if order is ModuleOrder.LEFT_TO_RIGHT_ZIGZAG:
            if odd_line:
                return self._right_to_left(module_id, row)
            return self._left_to_right(module_id, row)
        if order is ModuleOrder.RIGHT_TO_LEFT_ZIGZAG:
            if odd_line:
                return self._left_to_right(module_id, row)
            return self._right_to_left(module_id, row)
        return self._left_to_right(module_id, row)

    def display(self, bitmap: Bitmap, x: int = 0, y: int = 0,
                background: bool = False) -> None:
        """Show ``bitmap`` placed at (x, y); pixels outside it are ``background``."""
        mx = ~get_transform(self.transform, x, y)
        if mx.a < 0:
            mx.u = self.xsize - 1 - mx.u
        if mx.b < 0:
            mx.u = self.ysize - 1 - mx.u
        if mx.c < 0:
            mx.v = self.xsize - 1 - mx.v
        if mx.d < 0:
            mx.v = self.ysize - 1 - mx.v

        for row in range(ROWS):
            self.driver.start_packet()
            for module in reversed(range(self.modules)):
                loc = self.get_location(module, row)
                step = mx * Direction(loc.xs, 0)
                pt = mx * Point(loc.x, loc.y)
                data = 0
                mask = 0x80
                while mask:
                    if 0 <= pt.x < bitmap.width and 0 <= pt.y < bitmap.height:
                        if bitmap.get_pixel(pt.x, pt.y):
                            data |= mask
                    elif background:
                        data |= mask
                    mask >>= 1
                    pt = pt + step
                self.driver.send_command(Driver.row2op(row), data)
            self.driver.commit_packet()

    def set_intensity(self, intensity: int) -> None:
        """Set the same intensity on every module."""
        self._global_command(Operation.INTENSITY, intensity)

    def set_module_intensity(self, fn: Callable[[int, int], int],
                             x: int = 0, y: int = 0) -> None:
        """Set each module's intensity to ``fn(px, py)`` of its corner in bitmap coordinates."""
        self.driver.start_packet()
        mx = ~get_transform(self.transform, x, y)
        for module in reversed(range(self.modules)):
            loc = self.get_location(module, 0)
            pt = mx * Point(loc.x, loc.y)
            self.driver.send_command(Operation.INTENSITY, int(fn(pt.x, pt.y)))
        self.driver.commit_packet()

    def clear(self) -> None:
        """Turn every LED off."""
        for row in range(ROWS):
            self._global_command(Driver.row2op(row), 0)

    def _global_command(self, op: int, data: int) -> None:
        self.driver.start_packet()
        for _ in range(self.modules):
            self.driver.send_command(op, data)
        self.driver.commit_packet()