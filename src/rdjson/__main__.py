"""
Command line decoder: prints the compact rendering of every value in a stream.

Reads FILE (or standard input) in chunks, decoding values as soon as they are
complete, one rendering per output line.
"""

import argparse
import io
import logging
import sys
from collections.abc import Iterator
from collections.abc import Sequence
from typing import IO

from rdjson import DEFAULT_MAX_DEPTH
from rdjson import JSONDecodeError
from rdjson import ParseConfig
from rdjson import Value
from rdjson import __version__
from rdjson import encode
from rdjson._stream import DEFAULT_CHUNK_SIZE
from rdjson._stream import StreamDecoder

logger = logging.getLogger(__name__)


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rdjson",
        description="Decode JSON values from a byte stream and print them compactly.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="input file, '-' for standard input (default)",
    )
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help=f"bytes read per chunk (default {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=DEFAULT_MAX_DEPTH,
        help=f"maximum nesting depth (default {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--first-key-wins",
        dest="duplicate_keys",
        action="store_const",
        const="first",
        default="first",
        help="keep the first value of a repeated object key (default)",
    )
    parser.add_argument(
        "--last-key-wins",
        dest="duplicate_keys",
        action="store_const",
        const="last",
        help="keep the last value of a repeated object key",
    )
    parser.add_argument(
        "--legacy-backspace",
        action="store_true",
        help="decode \\b as NUL followed by '8' instead of U+0008",
    )
    parser.add_argument(
        "--sort-keys", action="store_true", help="sort object keys on output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log progress to stderr"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _run(
    stream: IO[bytes], decoder: StreamDecoder, chunk_size: int, sort_keys: bool
) -> int:
    count = 0

    def emit(values: Iterator[Value]) -> None:
        nonlocal count
        for value in values:
            print(encode(value, sort_keys=sort_keys))
            count += 1

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        logger.debug("Read %d bytes", len(chunk))
        emit(decoder.feed(chunk))
    emit(decoder.close())

    return count


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = ParseConfig(
        max_depth=args.max_depth,
        duplicate_keys=args.duplicate_keys,
        legacy_backspace=args.legacy_backspace,
    )
    decoder = StreamDecoder(config)

    # Lone surrogates are printed as \uXXXX escapes, which decode back unchanged
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(errors="backslashreplace")

    try:
        if args.file == "-":
            count = _run(sys.stdin.buffer, decoder, args.chunk_size, args.sort_keys)
        else:
            with open(args.file, "rb") as stream:
                count = _run(stream, decoder, args.chunk_size, args.sort_keys)
    except JSONDecodeError as e:
        logger.error(
            "%s (stream byte %d, while parsing %s)",
            e,
            decoder.offset + e.pos,
            e.production.value,
        )
        return 1
    except UnicodeEncodeError as e:
        logger.error("Writing output failed: %s", e)
        return 1
    except OSError as e:
        logger.error("Reading input failed: %s", e)
        return 1

    logger.info("Completed: %d value(s) decoded", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
