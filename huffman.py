"""
Построение дерева Хаффмана, таблицы кодов и сериализация дерева.

Левый потомок соответствует биту 0, правый биту 1. Этот же порядок
используется при записи дерева в прямом обходе.
"""

import heapq
import itertools
from collections import Counter
from typing import Dict, List, Optional

from bitstream import BitReader, BitWriter
from errors import MalformedContainer, TruncatedTree


ALPHABET_SIZE = 256
SYMBOL_BITS = 8
# A 256-leaf tree cannot be deeper than 255 levels.
MAX_TREE_DEPTH = ALPHABET_SIZE - 1


class HuffmanNode:
    def __init__(self, symbol: Optional[int] = None, freq: int = 0,
                 left: Optional['HuffmanNode'] = None,
                 right: Optional['HuffmanNode'] = None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def count_frequencies(data: bytes) -> List[int]:
    frequencies = [0] * ALPHABET_SIZE
    for byte, count in Counter(data).items():
        frequencies[byte] = count
    return frequencies


def build_tree(frequencies: List[int]) -> Optional[HuffmanNode]:
    """
    Builds the tree by repeatedly merging the two lightest entries.

    Queue entries are (freq, seq, node); seq grows with every push so equal
    frequencies leave the queue in insertion order and the resulting tree is
    the same for the same histogram. Returns None for an all-zero table.
    """
    if len(frequencies) != ALPHABET_SIZE:
        raise ValueError(f"Expected {ALPHABET_SIZE} frequencies, got {len(frequencies)}")

    seq = itertools.count()
    heap = []
    for symbol, freq in enumerate(frequencies):
        if freq < 0:
            raise ValueError(f"Negative frequency for symbol {symbol}: {freq}")
        if freq:
            heap.append((freq, next(seq), HuffmanNode(symbol=symbol, freq=freq)))

    if not heap:
        return None

    heapq.heapify(heap)

    while len(heap) > 1:
        left_freq, _, left = heapq.heappop(heap)
        right_freq, _, right = heapq.heappop(heap)

        parent = HuffmanNode(freq=left_freq + right_freq, left=left, right=right)
        heapq.heappush(heap, (parent.freq, next(seq), parent))

    return heap[0][2]


def build_code_table(root: HuffmanNode) -> Dict[int, str]:
    codes: Dict[int, str] = {}

    if root.is_leaf:
        codes[root.symbol] = '0'
        return codes

    def traverse(node: HuffmanNode, code: str):
        if node.is_leaf:
            codes[node.symbol] = code
            return

        traverse(node.left, code + '0')
        traverse(node.right, code + '1')

    traverse(root, '')
    return codes


def serialize_tree(root: HuffmanNode, writer: BitWriter):
    if root.is_leaf:
        writer.write_bit(1)
        writer.write_bits(root.symbol, SYMBOL_BITS)
        return

    writer.write_bit(0)
    serialize_tree(root.left, writer)
    serialize_tree(root.right, writer)


def deserialize_tree(reader: BitReader) -> HuffmanNode:
    seen = set()

    def read_node(depth: int) -> HuffmanNode:
        if depth > MAX_TREE_DEPTH:
            raise MalformedContainer(f"Tree deeper than {MAX_TREE_DEPTH} levels")

        try:
            if reader.read_bit():
                symbol = reader.read_bits(SYMBOL_BITS)
            else:
                symbol = None
        except EOFError as e:
            raise TruncatedTree(f"Tree ends after {reader.pos} bits") from e

        if symbol is not None:
            if symbol in seen:
                raise MalformedContainer(f"Symbol {symbol} appears twice in tree")
            seen.add(symbol)
            return HuffmanNode(symbol=symbol)

        left = read_node(depth + 1)
        right = read_node(depth + 1)
        return HuffmanNode(left=left, right=right)

    return read_node(0)


def count_leaves(root: HuffmanNode) -> int:
    if root.is_leaf:
        return 1
    return count_leaves(root.left) + count_leaves(root.right)
