"""
Сжатие и распаковка байтовых данных статическим кодом Хаффмана.
"""

from typing import Tuple

from bitstream import BitReader, BitWriter, pack_bits, unpack_bits
from container import ContainerInfo, build_container, split_container
from errors import (EmptyInput, InvalidPadding, MalformedContainer,
                    TruncatedPayload)
from huffman import (HuffmanNode, build_code_table, build_tree, count_frequencies,
                     count_leaves, deserialize_tree, serialize_tree)


# A single-leaf payload starts with an explicit repeat count of this width.
REPEAT_COUNT_BITS = 64


def compress(data: bytes) -> bytes:
    if not data:
        raise EmptyInput("Cannot compress empty input")

    root = build_tree(count_frequencies(data))
    codes = build_code_table(root)

    # (value, length) per symbol so the hot loop does no string work
    packed_codes = {symbol: (int(code, 2), len(code)) for symbol, code in codes.items()}

    payload_bits = BitWriter()
    if root.is_leaf:
        payload_bits.write_bits(len(data), REPEAT_COUNT_BITS)

    write_bits = payload_bits.write_bits
    for byte in data:
        write_bits(*packed_codes[byte])

    tree_bits = BitWriter()
    serialize_tree(root, tree_bits)

    return build_container(pack_bits(tree_bits), pack_bits(payload_bits))


def decompress(data: bytes) -> bytes:
    root, payload = _read_blocks(*split_container(data))
    return decode_payload(root, payload)


def describe(data: bytes) -> ContainerInfo:
    tree_block, payload_block = split_container(data)
    root, payload = _read_blocks(tree_block, payload_block)

    return ContainerInfo(
        container_size=len(data),
        tree_block_size=len(tree_block),
        payload_size=len(payload_block),
        leaf_count=count_leaves(root),
        payload_bits=payload.bit_length,
    )


def decode_payload(root: HuffmanNode, payload: BitReader) -> bytes:
    if payload.remaining == 0:
        raise TruncatedPayload("Payload holds no bits")

    if root.is_leaf:
        if payload.remaining < REPEAT_COUNT_BITS:
            raise TruncatedPayload("Payload ends inside the repeat count")

        count = payload.read_bits(REPEAT_COUNT_BITS)
        if payload.remaining < count:
            raise TruncatedPayload(f"Expected {count} repetitions, found {payload.remaining}")
        if payload.remaining > count:
            raise MalformedContainer(f"Expected {count} repetitions, found {payload.remaining}")
        if any(payload):
            raise MalformedContainer("Single-symbol payload contains a 1 bit")
        return bytes([root.symbol]) * count

    output = bytearray()
    node = root
    for bit in payload:
        node = node.right if bit else node.left
        if node.is_leaf:
            output.append(node.symbol)
            node = root

    if node is not root:
        raise TruncatedPayload(f"Payload ends inside a code after {len(output)} symbols")

    return bytes(output)


def _read_blocks(tree_block: bytes, payload_block: bytes) -> Tuple[HuffmanNode, BitReader]:
    tree_bits = unpack_bits(tree_block)
    root = deserialize_tree(tree_bits)
    if tree_bits.remaining:
        raise MalformedContainer(f"{tree_bits.remaining} stray bits after tree")

    try:
        payload = unpack_bits(payload_block)
    except InvalidPadding as e:
        # The payload length is implied, so a bad trailing byte means it was cut off.
        raise TruncatedPayload(f"Payload padding byte is missing or damaged: {e}") from e

    return root, payload
