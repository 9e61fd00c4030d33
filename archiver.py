"""
Сжатие и распаковка файлов целиком.
"""

import os
import sys
from codec import compress, decompress, describe
from errors import EmptyInput, MalformedContainer


DEFAULT_SUFFIX = '.huf'


def default_output_path(input_path: str, decompressing: bool) -> str:
    if not decompressing:
        return input_path + DEFAULT_SUFFIX
    if input_path.endswith(DEFAULT_SUFFIX) and len(input_path) > len(DEFAULT_SUFFIX):
        return input_path[:-len(DEFAULT_SUFFIX)]
    return input_path + '.out'


class Archiver:
    def __init__(self, verbose: bool = True):
        self.verbose = verbose

    def _report(self, message: str, end: str = '\n'):
        if self.verbose:
            print(message, end=end)

    def _read(self, path: str):
        if not os.path.isfile(path):
            print(f"Error: {path} not found", file=sys.stderr)
            return None

        with open(path, 'rb') as f:
            return f.read()

    def compress_file(self, input_path: str, output_path: str) -> bool:
        data = self._read(input_path)
        if data is None:
            return False

        self._report(f"Compressing {input_path}...", end=" ")

        try:
            compressed = compress(data)
        except EmptyInput:
            self._report("SKIPPED")
            print(f"Error: {input_path} is empty, nothing to compress", file=sys.stderr)
            return False

        with open(output_path, 'wb') as f:
            f.write(compressed)

        ratio = len(compressed) / len(data) * 100
        self._report(f"OK ({ratio:.1f}%)")
        self._report(f"{len(data)} -> {len(compressed)} bytes: {output_path}")
        return True

    def decompress_file(self, input_path: str, output_path: str) -> bool:
        data = self._read(input_path)
        if data is None:
            return False

        self._report(f"Decompressing {input_path}...", end=" ")

        try:
            decompressed = decompress(data)
        except MalformedContainer as e:
            self._report("FAILED")
            print(f"Error: {input_path} is not a valid container ({type(e).__name__}: {e})", file=sys.stderr)
            return False

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'wb') as f:
            f.write(decompressed)

        self._report("OK")
        self._report(f"{len(data)} -> {len(decompressed)} bytes: {output_path}")
        return True

    def show_info(self, input_path: str) -> bool:
        data = self._read(input_path)
        if data is None:
            return False

        try:
            info = describe(data)
        except MalformedContainer as e:
            print(f"Error: {input_path} is not a valid container ({type(e).__name__}: {e})", file=sys.stderr)
            return False

        print(f"{'Container':<20} {info.container_size:>12}")
        print(f"{'Tree block':<20} {info.tree_block_size:>12}")
        print(f"{'Payload':<20} {info.payload_size:>12}")
        print(f"{'Payload bits':<20} {info.payload_bits:>12}")
        print(f"{'Distinct symbols':<20} {info.leaf_count:>12}")
        return True
