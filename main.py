"""
Командная строка для кодека Хаффмана.
"""

import argparse
import sys
from archiver import Archiver, default_output_path


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Static Huffman file compressor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py compress report.txt
  python main.py compress report.txt -o report.huf
  python main.py decompress report.txt.huf -o restored.txt
  python main.py info report.txt.huf
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    compress_parser = subparsers.add_parser('compress', help='Compress a file')
    compress_parser.add_argument('input', help='File to compress')
    compress_parser.add_argument('-o', '--output', help='Output path (default: INPUT.huf)')
    compress_parser.add_argument('-q', '--quiet', action='store_true', help='No progress output')

    decompress_parser = subparsers.add_parser('decompress', help='Decompress a file')
    decompress_parser.add_argument('input', help='Container to decompress')
    decompress_parser.add_argument('-o', '--output', help='Output path (default: INPUT without .huf)')
    decompress_parser.add_argument('-q', '--quiet', action='store_true', help='No progress output')

    info_parser = subparsers.add_parser('info', help='Show container layout')
    info_parser.add_argument('input', help='Container to inspect')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    archiver = Archiver(verbose=not getattr(args, 'quiet', False))

    try:
        if args.command == 'compress':
            output = args.output or default_output_path(args.input, decompressing=False)
            ok = archiver.compress_file(args.input, output)

        elif args.command == 'decompress':
            output = args.output or default_output_path(args.input, decompressing=True)
            ok = archiver.decompress_file(args.input, output)

        else:
            ok = archiver.show_info(args.input)

    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0 if ok else 1


if __name__ == '__main__':
    sys.exit(main())
