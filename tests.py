import unittest
import tempfile
import os
import sys
import random
import shutil
import struct

from bitstream import BitReader, BitWriter, pack_bits, unpack_bits
from huffman import (HuffmanNode, build_tree, build_code_table, count_frequencies,
                     serialize_tree, deserialize_tree)
from container import MAX_TREE_BLOCK_SIZE, split_container
from codec import compress, decompress, describe, decode_payload, REPEAT_COUNT_BITS
from errors import (EmptyInput, MalformedContainer, TruncatedTree,
                    TruncatedPayload, InvalidPadding)
from archiver import Archiver, default_output_path
from main import main


def is_prefix_free(codes):
    values = sorted(codes.values())
    for shorter, longer in zip(values, values[1:]):
        if longer.startswith(shorter):
            return False
    return True


class TestBitStream(unittest.TestCase):
    def test_pack_partial_byte(self):
        writer = BitWriter()
        for bit in (1, 0, 1):
            writer.write_bit(bit)
        self.assertEqual(pack_bits(writer), b'\xa0\x05')

    def test_pack_aligned_has_zero_padding(self):
        writer = BitWriter()
        writer.write_bits(0xFF, 8)
        self.assertEqual(pack_bits(writer), b'\xff\x00')

    def test_pack_nothing(self):
        self.assertEqual(pack_bits(BitWriter()), b'\x00')

    def test_write_across_byte_boundary(self):
        writer = BitWriter()
        writer.write_bits(0b101, 3)
        writer.write_bits(0x1FF, 9)
        writer.write_bits(0, 4)
        self.assertEqual(writer.bit_length, 16)
        self.assertEqual(pack_bits(writer), b'\xbf\xf0\x00')

    def test_unpack(self):
        reader = unpack_bits(b'\xa0\x05')
        self.assertEqual(reader.bit_length, 3)
        self.assertEqual(list(reader), [1, 0, 1])
        self.assertEqual(reader.remaining, 0)

    def test_read_past_end(self):
        reader = unpack_bits(b'\xa0\x05')
        self.assertEqual(reader.read_bits(3), 0b101)
        with self.assertRaises(EOFError):
            reader.read_bit()

    def test_long_sequence(self):
        random.seed(7)
        bits = [random.randint(0, 1) for _ in range(10001)]
        writer = BitWriter()
        for bit in bits:
            writer.write_bit(bit)
        packed = pack_bits(writer)
        self.assertEqual(len(packed), 1251 + 1)
        self.assertEqual(packed[-1], 7)
        self.assertEqual(list(unpack_bits(packed)), bits)

    def test_invalid_padding(self):
        for block in (b'', b'\xa0\x08', b'\xa0\xff', b'\x05', b'\xa1\x05'):
            with self.assertRaises(InvalidPadding):
                unpack_bits(block)

    def test_reader_rejects_oversized_length(self):
        with self.assertRaises(ValueError):
            BitReader(b'\x00', 9)


class TestHuffmanTree(unittest.TestCase):
    def test_count_frequencies(self):
        frequencies = count_frequencies(b"aab")
        self.assertEqual(len(frequencies), 256)
        self.assertEqual(frequencies[ord('a')], 2)
        self.assertEqual(frequencies[ord('b')], 1)
        self.assertEqual(sum(frequencies), 3)

    def test_count_empty(self):
        self.assertEqual(count_frequencies(b""), [0] * 256)

    def test_empty_table_gives_no_tree(self):
        self.assertIsNone(build_tree([0] * 256))

    def test_rejects_bad_table(self):
        with self.assertRaises(ValueError):
            build_tree([1] * 10)
        frequencies = [0] * 256
        frequencies[3] = -1
        with self.assertRaises(ValueError):
            build_tree(frequencies)

    def test_single_symbol(self):
        root = build_tree(count_frequencies(b"AAAA"))
        self.assertTrue(root.is_leaf)
        self.assertEqual(root.symbol, 0x41)
        self.assertEqual(root.freq, 4)
        self.assertEqual(build_code_table(root), {0x41: '0'})

    def test_two_symbols(self):
        root = build_tree(count_frequencies(b"aab"))
        self.assertEqual(root.freq, 3)
        self.assertEqual(root.left.symbol, ord('b'))
        self.assertEqual(root.right.symbol, ord('a'))
        self.assertEqual(build_code_table(root), {ord('b'): '0', ord('a'): '1'})

    def test_codes_follow_frequency(self):
        codes = build_code_table(build_tree(count_frequencies(b"abbccc")))
        self.assertEqual(codes, {ord('c'): '0', ord('a'): '10', ord('b'): '11'})

    def test_ties_resolved_by_insertion_order(self):
        frequencies = [0] * 256
        frequencies[1] = frequencies[2] = frequencies[3] = 1
        codes = build_code_table(build_tree(frequencies))
        self.assertEqual(codes, {3: '0', 1: '10', 2: '11'})

    def test_full_alphabet(self):
        root = build_tree(count_frequencies(bytes(range(256))))
        codes = build_code_table(root)
        self.assertEqual(len(codes), 256)
        self.assertEqual(len(set(codes.values())), 256)
        self.assertTrue(is_prefix_free(codes))
        for symbol in range(256):
            self.assertEqual(codes[symbol], format(symbol, '08b'))

    def test_skewed_codes_prefix_free(self):
        random.seed(3)
        data = bytes(random.choice(b"aaaaaaaabbbbcccdde") for _ in range(500))
        codes = build_code_table(build_tree(count_frequencies(data)))
        self.assertTrue(is_prefix_free(codes))
        self.assertLess(len(codes[ord('a')]), len(codes[ord('e')]))

    def test_serialize_tree(self):
        writer = BitWriter()
        serialize_tree(build_tree(count_frequencies(b"aab")), writer)
        self.assertEqual(writer.bit_length, 19)
        self.assertEqual(pack_bits(writer), b'\x58\xac\x20\x05')

    def test_deserialize_keeps_shape(self):
        root = build_tree(count_frequencies(b"The quick brown fox jumps over the lazy dog"))
        writer = BitWriter()
        serialize_tree(root, writer)

        reader = unpack_bits(pack_bits(writer))
        restored = deserialize_tree(reader)
        self.assertEqual(reader.remaining, 0)
        self.assertEqual(build_code_table(restored), build_code_table(root))

    def test_deserialize_truncated(self):
        writer = BitWriter()
        writer.write_bit(0)
        writer.write_bit(1)
        writer.write_bits(0x41, 8)
        with self.assertRaises(TruncatedTree):
            deserialize_tree(unpack_bits(pack_bits(writer)))

    def test_deserialize_duplicate_symbol(self):
        writer = BitWriter()
        writer.write_bit(0)
        for _ in range(2):
            writer.write_bit(1)
            writer.write_bits(0x41, 8)
        with self.assertRaises(MalformedContainer) as cm:
            deserialize_tree(unpack_bits(pack_bits(writer)))
        self.assertIs(type(cm.exception), MalformedContainer)

    def test_deserialize_too_deep(self):
        with self.assertRaises(MalformedContainer) as cm:
            deserialize_tree(BitReader(bytes(40), 300))
        self.assertIs(type(cm.exception), MalformedContainer)


class TestCodec(unittest.TestCase):
    def test_single_symbol_container(self):
        # repeat count (64 bits), one 0 bit per repetition, padding byte
        self.assertEqual(compress(b"A" * 8),
                         b'\x00\x00\x00\x03' b'\xa0\x80\x07'
                         b'\x00\x00\x00\x00\x00\x00\x00\x08' b'\x00' b'\x00')

    def test_two_symbol_container(self):
        self.assertEqual(compress(b"aab"),
                         b'\x00\x00\x00\x04' b'\x58\xac\x20\x05' b'\xc0\x05')

    def test_roundtrip(self):
        samples = [
            b"\x00",
            b"\xff",
            b"ab",
            b"The quick brown fox jumps over the lazy dog",
            b"Lorem ipsum dolor sit amet " * 200,
            bytes(range(256)) * 3,
        ]
        for data in samples:
            self.assertEqual(decompress(compress(data)), data)

    def test_roundtrip_random(self):
        random.seed(42)
        data = bytes(random.getrandbits(8) for _ in range(10 * 1024))
        self.assertEqual(decompress(compress(data)), data)

    def test_single_symbol_repeated(self):
        data = b"\x41" * 1000
        compressed = compress(data)
        self.assertEqual(len(compressed), 4 + 3 + (REPEAT_COUNT_BITS + 1000) // 8 + 1)
        self.assertEqual(decompress(compressed), data)

    def test_full_alphabet(self):
        data = bytes(range(256))
        compressed = compress(data)
        self.assertEqual(len(compressed), 4 + MAX_TREE_BLOCK_SIZE + 257)
        self.assertEqual(decompress(compressed), data)

        info = describe(compressed)
        self.assertEqual(info.leaf_count, 256)
        self.assertEqual(info.tree_block_size, MAX_TREE_BLOCK_SIZE)
        self.assertEqual(info.payload_bits, 2048)

    def test_full_alphabet_reversed(self):
        data = bytes(reversed(range(256)))
        self.assertEqual(decompress(compress(data)), data)

    def test_empty_input(self):
        with self.assertRaises(EmptyInput):
            compress(b"")
        self.assertFalse(issubclass(EmptyInput, MalformedContainer))

    def test_skewed_input_shrinks(self):
        data = bytearray(1000)
        for i in range(0, 1000, 100):
            data[i] = 1
        data = bytes(data)
        compressed = compress(data)
        self.assertEqual(len(compressed), 134)
        self.assertLess(len(compressed), len(data))
        self.assertEqual(decompress(compressed), data)

    def test_deterministic(self):
        random.seed(11)
        data = bytes(random.choice(b"abcdefgh") for _ in range(2000))
        self.assertEqual(compress(data), compress(data))

    def test_describe(self):
        info = describe(compress(b"aab"))
        self.assertEqual(info.container_size, 10)
        self.assertEqual(info.tree_block_size, 4)
        self.assertEqual(info.payload_size, 2)
        self.assertEqual(info.payload_bits, 3)
        self.assertEqual(info.leaf_count, 2)


class TestCorruption(unittest.TestCase):
    def test_truncated_by_one_byte(self):
        for data in (b"aab", b"A" * 8, b"\x41" * 1000, b"\x00"):
            with self.assertRaises(TruncatedPayload):
                decompress(compress(data)[:-1])

    def test_truncated_single_symbol_always_detected(self):
        for count in range(1, 300):
            container = compress(b"\x41" * count)
            with self.assertRaises(TruncatedPayload):
                decompress(container[:-1])

    def test_truncated_sweep(self):
        # Without a symbol count in the layout, a cut that leaves a valid
        # padding byte on a code boundary decodes to a shorter prefix.
        # Anything else must be reported, and wrong bytes never come back.
        random.seed(2024)
        detected = 0
        for _ in range(500):
            data = bytes(random.choice(b"abcdefg") for _ in range(random.randint(50, 400)))
            try:
                decoded = decompress(compress(data)[:-1])
            except TruncatedPayload:
                detected += 1
                continue
            self.assertLess(len(decoded), len(data))
            self.assertEqual(decoded, data[:len(decoded)])
        self.assertGreater(detected, 400)

    def test_single_symbol_count_cut_short(self):
        forged = compress(b"A" * 8)[:7] + b'\x00\x00\x00\x00\x00'
        with self.assertRaises(TruncatedPayload):
            decompress(forged)

    def test_single_symbol_extra_bits(self):
        writer = BitWriter()
        writer.write_bits(2, REPEAT_COUNT_BITS)
        writer.write_bits(0, 3)
        forged = compress(b"A" * 8)[:7] + pack_bits(writer)
        with self.assertRaises(MalformedContainer) as cm:
            decompress(forged)
        self.assertIs(type(cm.exception), MalformedContainer)

    def test_missing_payload(self):
        with self.assertRaises(TruncatedPayload):
            decompress(compress(b"aab")[:8])

    def test_payload_ends_inside_code(self):
        container = compress(b"abbccc")
        tree_size = struct.unpack('>I', container[:4])[0]
        forged = container[:4 + tree_size] + b'\x80\x07'
        with self.assertRaises(TruncatedPayload):
            decompress(forged)

    def test_decode_payload_directly(self):
        root = HuffmanNode(left=HuffmanNode(symbol=1), right=HuffmanNode(symbol=2))
        self.assertEqual(decode_payload(root, unpack_bits(b'\x40\x05')), b'\x01\x02\x01')

    def test_single_symbol_payload_with_one_bit(self):
        writer = BitWriter()
        writer.write_bits(1, REPEAT_COUNT_BITS)
        writer.write_bit(1)
        forged = compress(b"A" * 8)[:7] + pack_bits(writer)
        with self.assertRaises(MalformedContainer) as cm:
            decompress(forged)
        self.assertIs(type(cm.exception), MalformedContainer)

    def test_bad_headers(self):
        containers = [
            b"",
            b"\x00\x00",
            b"\x00\x00\x00\x00\x00\x00",
            struct.pack('>I', MAX_TREE_BLOCK_SIZE + 1) + bytes(400),
            b"\x00\x00\x00\x10\xa0\x80\x07",
            b"hello world, not a container",
        ]
        for data in containers:
            with self.assertRaises(MalformedContainer):
                decompress(data)

    def test_split_container(self):
        tree_block, payload = split_container(compress(b"aab"))
        self.assertEqual(tree_block, b'\x58\xac\x20\x05')
        self.assertEqual(payload, b'\xc0\x05')

    def test_stray_tree_bits(self):
        data = b'\x00\x00\x00\x03' b'\xa0\x80\x06' b'\x00\x00'
        with self.assertRaises(MalformedContainer) as cm:
            decompress(data)
        self.assertIs(type(cm.exception), MalformedContainer)

    def test_tree_block_bad_padding(self):
        data = b'\x00\x00\x00\x03' b'\xa0\x80\x08' b'\x00\x00'
        with self.assertRaises(InvalidPadding):
            decompress(data)


class TestArchiver(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.archiver = Archiver(verbose=False)

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, name, data):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_compress_and_decompress_file(self):
        source = self._write("test.txt", b"Hello World! " * 100)
        packed = os.path.join(self.temp_dir, "test.txt.huf")
        restored = os.path.join(self.temp_dir, "out", "test.txt")

        self.assertTrue(self.archiver.compress_file(source, packed))
        self.assertLess(os.path.getsize(packed), os.path.getsize(source))

        self.assertTrue(self.archiver.decompress_file(packed, restored))
        with open(restored, 'rb') as f:
            self.assertEqual(f.read(), b"Hello World! " * 100)

    def test_empty_file_rejected(self):
        source = self._write("empty.bin", b"")
        packed = os.path.join(self.temp_dir, "empty.bin.huf")
        self.assertFalse(self.archiver.compress_file(source, packed))
        self.assertFalse(os.path.exists(packed))

    def test_missing_file(self):
        missing = os.path.join(self.temp_dir, "nope.txt")
        self.assertFalse(self.archiver.compress_file(missing, missing + ".huf"))
        self.assertFalse(self.archiver.decompress_file(missing, missing + ".out"))

    def test_corrupt_container_not_written(self):
        packed = self._write("bad.huf", b"definitely not a container")
        restored = os.path.join(self.temp_dir, "bad")
        self.assertFalse(self.archiver.decompress_file(packed, restored))
        self.assertFalse(os.path.exists(restored))

    def test_show_info(self):
        packed = self._write("data.huf", compress(b"abracadabra"))
        self.assertTrue(self.archiver.show_info(packed))

    def test_default_output_path(self):
        self.assertEqual(default_output_path("a.txt", decompressing=False), "a.txt.huf")
        self.assertEqual(default_output_path("a.txt.huf", decompressing=True), "a.txt")
        self.assertEqual(default_output_path("a.bin", decompressing=True), "a.bin.out")
        self.assertEqual(default_output_path(".huf", decompressing=True), ".huf.out")


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_compress_decompress_info(self):
        source = os.path.join(self.temp_dir, "notes.txt")
        with open(source, 'wb') as f:
            f.write(b"Content of file 1\n" * 50)

        self.assertEqual(main(['compress', source, '-q']), 0)
        packed = source + '.huf'
        self.assertTrue(os.path.isfile(packed))

        restored = os.path.join(self.temp_dir, "restored.txt")
        self.assertEqual(main(['decompress', packed, '-o', restored, '-q']), 0)
        with open(restored, 'rb') as f:
            self.assertEqual(f.read(), b"Content of file 1\n" * 50)

        self.assertEqual(main(['info', packed]), 0)

    def test_failure_exit_code(self):
        missing = os.path.join(self.temp_dir, "missing.huf")
        self.assertEqual(main(['decompress', missing, '-q']), 1)

    def test_no_command(self):
        self.assertEqual(main([]), 0)


def run_tests():
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestBitStream))
    suite.addTests(loader.loadTestsFromTestCase(TestHuffmanTree))
    suite.addTests(loader.loadTestsFromTestCase(TestCodec))
    suite.addTests(loader.loadTestsFromTestCase(TestCorruption))
    suite.addTests(loader.loadTestsFromTestCase(TestArchiver))
    suite.addTests(loader.loadTestsFromTestCase(TestCommandLine))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
