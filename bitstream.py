"""
Упаковка последовательности битов в байты и обратно.

Биты пишутся старшим битом вперёд. Упакованный блок дополняется нулевыми
битами до целого байта, а последний байт блока хранит число битов дополнения.
"""

from typing import Iterator

from errors import InvalidPadding


class BitWriter:
    def __init__(self):
        self._buffer = bytearray()
        self._acc = 0
        self._acc_bits = 0
        self._total_bits = 0

    @property
    def bit_length(self) -> int:
        return self._total_bits

    def write_bit(self, bit: int):
        self.write_bits(1 if bit else 0, 1)

    def write_bits(self, value: int, length: int):
        if length <= 0:
            return

        self._acc = (self._acc << length) | (value & ((1 << length) - 1))
        self._acc_bits += length
        self._total_bits += length

        while self._acc_bits >= 8:
            self._acc_bits -= 8
            self._buffer.append((self._acc >> self._acc_bits) & 0xFF)

        self._acc &= (1 << self._acc_bits) - 1

    def padding(self) -> int:
        return (8 - self._total_bits % 8) % 8

    def to_bytes(self) -> bytes:
        """Returns the packed bits only, zero-padded to a whole byte."""
        if self._acc_bits:
            return bytes(self._buffer) + bytes([self._acc << (8 - self._acc_bits)])
        return bytes(self._buffer)


class BitReader:
    def __init__(self, data: bytes, bit_length: int):
        if bit_length > len(data) * 8:
            raise ValueError("bit_length exceeds available data")
        self.data = data
        self.bit_length = bit_length
        self.pos = 0

    @property
    def remaining(self) -> int:
        return self.bit_length - self.pos

    def read_bit(self) -> int:
        if self.pos >= self.bit_length:
            raise EOFError("Unexpected end of bitstream")
        byte = self.data[self.pos >> 3]
        bit = (byte >> (7 - (self.pos & 7))) & 1
        self.pos += 1
        return bit

    def read_bits(self, count: int) -> int:
        value = 0
        for _ in range(count):
            value = (value << 1) | self.read_bit()
        return value

    def __iter__(self) -> Iterator[int]:
        data = self.data
        end = self.bit_length
        pos = self.pos
        while pos < end:
            bit = (data[pos >> 3] >> (7 - (pos & 7))) & 1
            pos += 1
            self.pos = pos
            yield bit


def pack_bits(writer: BitWriter) -> bytes:
    padding = writer.padding()
    assert 0 <= padding <= 7, padding
    return writer.to_bytes() + bytes([padding])


def unpack_bits(block: bytes) -> BitReader:
    if not block:
        raise InvalidPadding("Missing padding byte")

    padding = block[-1]
    data = block[:-1]

    if padding > 7:
        raise InvalidPadding(f"Padding count out of range: {padding}")

    if padding and not data:
        raise InvalidPadding(f"Padding count {padding} with no data bytes")

    if padding and data[-1] & ((1 << padding) - 1):
        raise InvalidPadding("Non-zero padding bits")

    return BitReader(data, len(data) * 8 - padding)
