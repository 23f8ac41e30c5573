"""Bit-banged 1-Wire bus master with device search and Dallas CRC helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, Union

# Slot timings in microseconds.
PARAM_A = 6
PARAM_B = 64
PARAM_C = 60
PARAM_D = 10
PARAM_E = 9
PARAM_F = 55
PARAM_H = 480
PARAM_I = 70
PARAM_J = 410

RELEASE_TIMEOUT = 500

CMD_MATCH_ROM = 0x55
CMD_SKIP_ROM = 0xCC
CMD_SEARCH = 0xF0
CMD_ALARM_SEARCH = 0xEC

_MICRO_MASK = (1 << 64) - 1
_MICRO_MSB = 1 << 63

_ODD_PARITY = (0, 1, 1, 0, 1, 0, 0, 1, 1, 0, 0, 1, 0, 1, 1, 0)


class BusError(Exception):
    """The bus stays low when it should be released (shorted bus)."""


class Platform(Protocol):
    """Pin and clock access the bus master needs."""

    def init_pin(self, pin: int, pull_up: bool) -> None: ...

    def release_pin(self, pin: int, pull_up: bool) -> None: ...

    def hold_low_pin(self, pin: int) -> None: ...

    def read_pin(self, pin: int) -> bool: ...

    def current_time(self) -> int: ...

    def disable_interrupts(self) -> None: ...

    def enable_interrupts(self) -> None: ...


@dataclass(frozen=True)
class Address:
    """An 8-byte device ROM address."""

    data: bytes = bytes(8)

    def __post_init__(self) -> None:
        raw = bytes(self.data)
        if len(raw) != 8:
            raise ValueError(f"an address has 8 bytes, got {len(raw)}")
        object.__setattr__(self, "data", raw)

    @property
    def family_code(self) -> int:
        return self.data[0]

    def __bytes__(self) -> bytes:
        return self.data


@dataclass
class SearchState:
    """Progress of a device search between calls."""

    rom_no: bytearray = field(default_factory=lambda: bytearray(8))
    last_discrepancy: int = 0
    last_family_discrepancy: int = 0
    last_device_flag: bool = False


class OneWire:
    """1-Wire bus master driving one pin through a platform object."""

    def __init__(self, platform: Platform) -> None:
        self.platform = platform
        self.pin = 0
        self.pull_up = False

    def begin(self, pin: int) -> None:
        """Assign the bus pin and put it to its idle state."""
        self.pin = pin
        self.platform.init_pin(pin, self.pull_up)

    def enable_pullup(self, pullup: bool) -> None:
        """Use the internal pull-up when the pin is released."""
        self.pull_up = bool(pullup)

    # -- timing -----------------------------------------------------------

    def _timepoint(self, micro: int) -> int:
        return self.platform.current_time() + micro

    def _before(self, tp: int) -> bool:
        return bool(((self.platform.current_time() - tp) & _MICRO_MASK) & _MICRO_MSB)

    def _wait_until(self, tp: int, condition: Optional[Callable[[], bool]] = None) -> bool:
        while self._before(tp):
            if condition is not None and condition():
                return True
        return False

    def _wait_for(self, micro: int) -> None:
        self._wait_until(self._timepoint(micro))

    def _wait_for_change(self, micro: int, pin_value: bool) -> bool:
        """Wait up to ``micro`` while the bus reads ``pin_value``; True if it changed."""
        return self._wait_until(self._timepoint(micro),
                                lambda: self._read_pin() != pin_value)

    def _read_pin(self) -> bool:
        return bool(self.platform.read_pin(self.pin))

    def _hold_low_for(self, hold_us: int, stabilize_us: int) -> None:
        tp = self._timepoint(hold_us)
        self.platform.hold_low_pin(self.pin)
        self._wait_until(tp)
        tp += stabilize_us
        self.platform.release_pin(self.pin, self.pull_up)
        self._wait_until(tp)

    def _wait_for_release(self) -> None:
        if not self._wait_for_change(RELEASE_TIMEOUT, False):
            raise BusError("bus is held low")
        self._wait_for(PARAM_D)

    # -- bit level --------------------------------------------------------

    def _write_bit(self, value: int) -> None:
        self._wait_for_release()
        if value:
            self.platform.disable_interrupts()
            self._hold_low_for(PARAM_A, 0)
            self.platform.enable_interrupts()
            self._wait_for(PARAM_B)
        else:
            self._hold_low_for(PARAM_C, PARAM_D)

    def _read_bit(self) -> bool:
        self._wait_for_release()
        self.platform.disable_interrupts()
        self._hold_low_for(PARAM_A, PARAM_E)
        tp = self._timepoint(PARAM_F)
        value = not self._wait_for_change(PARAM_F, True)
        self._wait_until(tp)
        self.platform.enable_interrupts()
        return value

    # -- byte level -------------------------------------------------------

    def reset(self) -> bool:
        """Send a reset pulse; return whether a device answered with presence."""
        self._wait_for_release()
        self._hold_low_for(PARAM_H, PARAM_I)
        if not self._wait_for_change(PARAM_I, True):
            return False
        self._wait_for(PARAM_J)
        return True

    def write(self, value: int) -> None:
        """Write one byte, least significant bit first."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        for bit in range(8):
            self._write_bit((value >> bit) & 1)

    def write_bytes(self, data: Iterable[int]) -> None:
        """Write several bytes."""
        for value in bytes(data):
            self.write(value)

    def read(self) -> int:
        """Read one byte, least significant bit first."""
        value = 0
        for bit in range(8):
            if self._read_bit():
                value |= 1 << bit
        return value

    def read_bytes(self, count: int) -> bytes:
        """Read ``count`` bytes."""
        return bytes(self.read() for _ in range(count))

    def select(self, rom: Union[Address, bytes, bytearray]) -> None:
        """Address one device with Match ROM."""
        data = bytes(rom)
        if len(data) != 8:
            raise ValueError(f"an address has 8 bytes, got {len(data)}")
        self.write(CMD_MATCH_ROM)
        self.write_bytes(data)

    def select_all(self) -> None:
        """Address every device with Skip ROM."""
        self.write(CMD_SKIP_ROM)

    # -- search -----------------------------------------------------------

    @staticmethod
    def search_begin(family_code: Optional[int] = None) -> SearchState:
        """Return a fresh search state, optionally aimed at one family code."""
        if family_code is None:
            return SearchState()
        rom = bytearray(8)
        rom[0] = family_code & 0xFF
        return SearchState(rom_no=rom, last_discrepancy=64)

    def search(self, state: SearchState, alert_only: bool = False) -> Optional[Address]:
        """Find the next device; None when the search is finished or nobody answers."""
        if state.last_device_flag:
            return None
        if not self.reset():
            return None
        self.write(CMD_ALARM_SEARCH if alert_only else CMD_SEARCH)

        rom = state.rom_no
        id_bit_number = 1
        last_zero = 0
        while id_bit_number <= 64:
            id_bit = self._read_bit()
            cmp_id_bit = self._read_bit()
            if id_bit and cmp_id_bit:
                break
            byte_index, bit = divmod(id_bit_number - 1, 8)
            mask = 1 << bit
            if id_bit != cmp_id_bit:
                direction = id_bit
            else:
                if id_bit_number < state.last_discrepancy:
                    direction = bool(rom[byte_index] & mask)
                else:
                    direction = id_bit_number == state.last_discrepancy
                if not direction:
                    last_zero = id_bit_number
                    if last_zero < 9:
                        state.last_family_discrepancy = last_zero
            if direction:
                rom[byte_index] |= mask
            else:
                rom[byte_index] &= ~mask & 0xFF
            self._write_bit(direction)
            id_bit_number += 1

        found = False
        if id_bit_number >= 65:
            state.last_discrepancy = last_zero
            if last_zero == 0:
                state.last_device_flag = True
            found = True
        if not rom[0] or not found:
            return None
        return Address(bytes(rom))


def crc8(data: Iterable[int]) -> int:
    """Dallas/Maxim 8-bit CRC."""
    crc = 0
    for inbyte in bytes(data):
        for _ in range(8):
            mix = (crc ^ inbyte) & 0x01
            crc >>= 1
            if mix:
                crc ^= 0x8C
            inbyte >>= 1
    return crc


def crc16(data: Iterable[int], crc: int = 0) -> int:
    """1-Wire 16-bit CRC, continuing from ``crc``."""
    crc &= 0xFFFF
    for value in bytes(data):
        cdata = (value ^ crc) & 0xFF
        crc >>= 8
        if _ODD_PARITY[cdata & 0x0F] ^ _ODD_PARITY[cdata >> 4]:
            crc ^= 0xC001
        cdata <<= 6
        crc ^= cdata
        cdata <<= 1
        crc ^= cdata
        crc &= 0xFFFF
    return crc


def check_crc16(data: Iterable[int], inverted_crc: Iterable[int], crc: int = 0) -> bool:
    """Check data against the inverted CRC16 a device sends (low byte first)."""
    expected = bytes(inverted_crc)
    value = ~crc16(data, crc) & 0xFFFF
    return (value & 0xFF) == expected[0] and (value >> 8) == expected[1]