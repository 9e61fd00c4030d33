"""
Формат контейнера: длина блока дерева, блок дерева, закодированные данные.

    [4 байта, big-endian: длина блока дерева]
    [блок дерева, последний байт: число битов дополнения]
    [данные, последний байт: число битов дополнения]
"""

import io
import struct
from dataclasses import dataclass
from typing import Tuple

from errors import MalformedContainer, TruncatedPayload


LENGTH_FIELD = '>I'
LENGTH_FIELD_SIZE = struct.calcsize(LENGTH_FIELD)
# 256 leaves * 9 bits + 255 internal bits = 2559 bits -> 320 bytes + padding byte.
MAX_TREE_BLOCK_SIZE = 321


@dataclass
class ContainerInfo:
    container_size: int
    tree_block_size: int
    payload_size: int
    leaf_count: int
    payload_bits: int


def build_container(tree_block: bytes, payload: bytes) -> bytes:
    if not 0 < len(tree_block) <= MAX_TREE_BLOCK_SIZE:
        raise ValueError(f"Tree block size out of range: {len(tree_block)}")

    output = io.BytesIO()
    output.write(struct.pack(LENGTH_FIELD, len(tree_block)))
    output.write(tree_block)
    output.write(payload)
    return output.getvalue()


def split_container(data: bytes) -> Tuple[bytes, bytes]:
    if len(data) < LENGTH_FIELD_SIZE:
        raise MalformedContainer(f"Container too small: {len(data)} bytes")

    pos = 0
    tree_size = struct.unpack_from(LENGTH_FIELD, data, pos)[0]
    pos += LENGTH_FIELD_SIZE

    if tree_size == 0:
        raise MalformedContainer("Empty tree block")

    if tree_size > MAX_TREE_BLOCK_SIZE:
        raise MalformedContainer(f"Tree block too large: {tree_size} bytes")

    if pos + tree_size > len(data):
        raise MalformedContainer(
            f"Tree block of {tree_size} bytes exceeds container ({len(data) - pos} bytes left)")

    tree_block = data[pos:pos + tree_size]
    pos += tree_size

    payload = data[pos:]
    if not payload:
        raise TruncatedPayload("Container has no payload")

    return tree_block, payload
