"""Incremental decoding of back-to-back values arriving in chunks."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import IO
from typing import Any

from rdjson import IncompleteJSONError
from rdjson import ParseConfig
from rdjson import TruncatedJSONError
from rdjson import Value
from rdjson import _decode

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096

# Separators between top-level values; the grammar itself has no whitespace
_SEPARATORS = b" \t\r\n"


class StreamDecoder:
    """Buffers stream chunks and decodes every complete value they contain.

    Bytes are appended to a growable buffer and decoding is retried from the
    start of the buffer whenever more input arrives. Decoded prefixes are
    dropped from the buffer; malformed input propagates to the caller.
    """

    def __init__(self, config: ParseConfig | None = None, **kwargs: Any) -> None:
        """Initialize an empty stream.

        Args:
            config: Parse settings; built from ``kwargs`` when omitted
            **kwargs: ParseConfig fields
        """
        self.config = config if config is not None else ParseConfig(**kwargs)
        self._buffer = bytearray()
        self._offset = 0
        self._closed = False

    @property
    def offset(self) -> int:
        """Number of stream bytes consumed before the current buffer."""
        return self._offset

    @property
    def buffered(self) -> int:
        """Number of bytes waiting for a value to complete."""
        return len(self._buffer)

    def feed(self, chunk: bytes | bytearray | memoryview) -> Iterator[Value]:
        """Append ``chunk`` and iterate over the values now complete.

        The chunk is buffered immediately; values are decoded as the returned
        iterator is consumed, so values ahead of malformed input are still
        delivered before the error is raised.
        """
        if self._closed:
            raise ValueError("feed() called on a closed StreamDecoder")
        if isinstance(chunk, str):
            raise TypeError("chunks must be bytes-like, not str")

        self._buffer += chunk
        return self._drain(final=False)

    def close(self) -> Iterator[Value]:
        """Signal end of stream and iterate over the values still buffered.

        Raises:
            TruncatedJSONError: if the stream ended inside a value
        """
        self._closed = True
        return self._drain(final=True)

    def _skip_separators(self) -> None:
        skipped = len(self._buffer) - len(self._buffer.lstrip(_SEPARATORS))
        if skipped:
            del self._buffer[:skipped]
            self._offset += skipped

    def _drain(self, final: bool) -> Iterator[Value]:
        while True:
            self._skip_separators()
            if not self._buffer:
                return

            doc = bytes(self._buffer)
            try:
                value, rest = _decode(doc, self.config, final)
            except IncompleteJSONError as e:
                if not final:
                    logger.debug(
                        "Value at stream byte %d incomplete, %d bytes buffered",
                        self._offset,
                        len(doc),
                    )
                    return
                raise TruncatedJSONError(
                    "Truncated input", doc, e.pos, e.production
                ) from e

            consumed = len(doc) - len(rest)
            del self._buffer[:consumed]
            self._offset += consumed
            yield value


def iter_decode(
    fp: IO[bytes], chunk_size: int = DEFAULT_CHUNK_SIZE, **kwargs: Any
) -> Iterator[Value]:
    """Yields each value read from a binary file object, chunk by chunk."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    decoder = StreamDecoder(**kwargs)
    while True:
        chunk = fp.read(chunk_size)
        if not chunk:
            break
        yield from decoder.feed(chunk)
    yield from decoder.close()
