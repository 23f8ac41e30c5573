import pytest

from kotelhw.max7219 import BusShortedError, Driver, MatrixDriver, Operation
from kotelhw.max7219_bitmap import Bitmap
from kotelhw.max7219_geometry import ModuleOrder, Transform

DATA, CS, CLK = 2, 3, 4


class FakeBus:
    def __init__(self):
        self.modes = {}
        self.levels = {}
        self.shorted = set()
        self.packets = []
        self._bits = None

    def set_output(self, pin):
        self.modes[pin] = "out"

    def set_input_pullup(self, pin):
        self.modes[pin] = "in"
        if pin == CS and self._bits is not None:
            bits = self._bits
            self._bits = None
            values = [int("".join("1" if b else "0" for b in bits[i:i + 8]), 2)
                      for i in range(0, len(bits), 8)]
            self.packets.append(list(zip(values[0::2], values[1::2])))

    def read(self, pin):
        return pin not in self.shorted

    def write(self, pin, level):
        previous = self.levels.get(pin)
        self.levels[pin] = level
        if pin == CS and not level:
            self._bits = []
        if pin == CLK and level and previous is False and self._bits is not None:
            self._bits.append(self.levels[DATA])


def make(columns=1, rows=1, order=ModuleOrder.LEFT_TO_RIGHT, transform=Transform.NONE):
    bus = FakeBus()
    driver = Driver(bus, DATA, CS, CLK)
    return bus, MatrixDriver(driver, columns, rows, order, transform)


def pattern(width, height):
    bmp = Bitmap(width, height)
    for y in range(height):
        for x in range(width):
            if (x * 3 + y * 5) % 7 < 3:
                bmp.set_pixel(x, y)
    return bmp


def lit_pixels(bmp):
    return sum(bmp.get_pixel(x, y) for y in range(bmp.height) for x in range(bmp.width))


def lit_bits(packets):
    return sum(bin(data).count("1") for packet in packets for _, data in packet)


def test_begin_releases_pins():
    bus = FakeBus()
    Driver(bus, DATA, CS, CLK).begin()
    assert bus.modes == {DATA: "in", CS: "in", CLK: "in"}


def test_send_command_wire_bytes():
    bus = FakeBus()
    driver = Driver(bus, DATA, CS, CLK)
    driver.start_packet()
    driver.send_command(Operation.INTENSITY, 5)
    driver.commit_packet()
    assert bus.packets == [[(Operation.INTENSITY, 5)]]


def test_start_packet_shorted_raises():
    bus = FakeBus()
    bus.shorted.add(CS)
    driver = Driver(bus, DATA, CS, CLK)
    with pytest.raises(BusShortedError):
        driver.start_packet()
    assert DATA not in bus.modes


def test_row2op():
    assert Driver.row2op(0) is Operation.DIGIT0
    assert Driver.row2op(7) is Operation.DIGIT7
    with pytest.raises(ValueError):
        Driver.row2op(20)


def test_init_sequence():
    bus, matrix = make(columns=3)
    matrix.begin()
    expected = [
        (Operation.INTENSITY, 0), (Operation.DECODEMODE, 0), (Operation.SCANLIMIT, 7),
        (Operation.DISPLAYTEST, 0), (Operation.SHUTDOWN, 1),
    ]
    assert bus.packets == [[cmd] * 3 for cmd in expected]


def test_init_propagates_short():
    bus, matrix = make()
    bus.shorted.add(CLK)
    with pytest.raises(BusShortedError):
        matrix.init()


def test_set_intensity_sends_to_all_modules():
    bus, matrix = make(columns=2, rows=2)
    matrix.set_intensity(3)
    assert bus.packets == [[(Operation.INTENSITY, 3)] * 4]


def test_clear_writes_every_row():
    bus, matrix = make(columns=2)
    matrix.clear()
    assert bus.packets == [[(Driver.row2op(r), 0)] * 2 for r in range(8)]


def test_display_row_ops():
    bus, matrix = make(columns=2)
    matrix.display(pattern(16, 8))
    assert len(bus.packets) == 8
    for row, packet in enumerate(bus.packets):
        assert [op for op, _ in packet] == [Driver.row2op(row)] * 2


def test_display_full_and_empty():
    bus, matrix = make()
    full = Bitmap(8, 8)
    full.fill()
    matrix.display(full)
    assert all(data == 0xFF for packet in bus.packets for _, data in packet)
    bus.packets.clear()
    matrix.display(Bitmap(8, 8))
    assert all(data == 0 for packet in bus.packets for _, data in packet)


def test_display_background_fills_outside():
    bus, matrix = make()
    matrix.display(Bitmap(1, 1), x=20, background=True)
    assert all(data == 0xFF for packet in bus.packets for _, data in packet)


@pytest.mark.parametrize("transform", list(Transform))
@pytest.mark.parametrize("order", list(ModuleOrder))
@pytest.mark.parametrize("size", [1, 2])
def test_display_maps_each_pixel_once(transform, order, size):
    bus, matrix = make(size, size, order, transform)
    bmp = pattern(8 * size, 8 * size)
    matrix.display(bmp)
    assert lit_bits(bus.packets) == lit_pixels(bmp)


def test_upsidedown_equals_rotated_bitmap():
    bmp = pattern(16, 8)
    rotated = Bitmap(16, 8)
    for y in range(8):
        for x in range(16):
            rotated.set_pixel(15 - x, 7 - y, bmp.get_pixel(x, y))
    bus_a, a = make(columns=2, transform=Transform.UPSIDEDOWN)
    bus_b, b = make(columns=2)
    a.display(bmp)
    b.display(rotated)
    assert bus_a.packets == bus_b.packets


def test_mirror_h_equals_flipped_bitmap():
    bmp = pattern(8, 8)
    flipped = Bitmap(8, 8)
    for y in range(8):
        for x in range(8):
            flipped.set_pixel(7 - x, y, bmp.get_pixel(x, y))
    bus_a, a = make(transform=Transform.MIRROR_H)
    bus_b, b = make()
    a.display(bmp)
    b.display(flipped)
    assert bus_a.packets == bus_b.packets


def test_display_offset_moves_bitmap():
    bmp = Bitmap(8, 8)
    bmp.set_pixel(0, 0)
    moved = Bitmap(8, 8)
    moved.set_pixel(1, 0)
    bus_a, a = make()
    bus_b, b = make()
    a.display(bmp, x=1)
    b.display(moved)
    assert bus_a.packets == bus_b.packets


def test_zigzag_odd_line_matches_reverse_order():
    _, zig = make(2, 2, ModuleOrder.LEFT_TO_RIGHT_ZIGZAG)
    _, rtl = make(2, 2, ModuleOrder.RIGHT_TO_LEFT)
    _, ltr = make(2, 2, ModuleOrder.LEFT_TO_RIGHT)
    for row in range(8):
        assert zig.get_location(2, row) == rtl.get_location(2, row)
        assert zig.get_location(0, row) == ltr.get_location(0, row)


def test_module_locations_are_distinct():
    _, matrix = make(3, 2, ModuleOrder.RIGHT_TO_LEFT_ZIGZAG)
    locations = {matrix.get_location(m, 0) for m in range(matrix.modules)}
    assert len(locations) == matrix.modules


def test_set_module_intensity_uses_fn_results():
    bus, matrix = make(columns=3)
    calls = []

    def fn(x, y):
        calls.append((x, y))
        return len(calls)

    matrix.set_module_intensity(fn)
    assert len(calls) == 3
    assert bus.packets == [[(Operation.INTENSITY, n) for n in (1, 2, 3)]]
    assert len(set(calls)) == 3