"""
Decoding performance benchmarks comparing rdjson against other JSON libraries.

Compares parsing speed across different JSON data types and sizes:
- Standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)
- rdjson whole-document loads
- rdjson incremental StreamDecoder
"""

import json
from collections.abc import Callable
from typing import Any

import orjson
import pytest
import ujson  # type: ignore[import-untyped]

import rdjson
from benchmarks.data_generators import generate_test_data


def _stream_decode(data: bytes) -> rdjson.Value:
    """Decodes through the streaming driver in 4 KiB chunks."""
    decoder = rdjson.StreamDecoder()
    values: list[rdjson.Value] = []
    for start in range(0, len(data), 4096):
        values.extend(decoder.feed(data[start : start + 4096]))
    values.extend(decoder.close())
    return values[0]


PARSERS = [
    ("stdlib_json", json.loads),
    ("orjson", orjson.loads),
    ("ujson", ujson.loads),
    ("rdjson", rdjson.loads),
    ("rdjson_stream", _stream_decode),
]

# Libraries that take the raw bytes rather than decoded text
BYTES_INPUT = {"orjson", "rdjson_stream"}


def _run(
    benchmark: Any, parser: str, parse_func: Callable[[Any], Any], data_type: str
) -> Any:
    test_data = generate_test_data(data_type)
    if parser in BYTES_INPUT:
        return benchmark(parse_func, test_data.encode("utf-8"))
    return benchmark(parse_func, test_data)


class TestParsingBenchmarks:
    """Benchmarks for decoding performance across different libraries."""

    @pytest.mark.benchmark(group="small_objects")
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_small_object_parsing(
        self, benchmark: Any, parser: str, parse_func: Callable[[Any], Any]
    ) -> None:
        """Benchmarks parsing of small objects (< 1KB)."""
        result = _run(benchmark, parser, parse_func, "small_object")
        assert isinstance(result, dict | rdjson.Object)

    @pytest.mark.benchmark(group="large_objects")
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_large_object_parsing(
        self, benchmark: Any, parser: str, parse_func: Callable[[Any], Any]
    ) -> None:
        """Benchmarks parsing of large objects (> 10KB)."""
        result = _run(benchmark, parser, parse_func, "large_object")
        assert isinstance(result, dict | rdjson.Object)

    @pytest.mark.benchmark(group="arrays")
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_array_parsing(
        self, benchmark: Any, parser: str, parse_func: Callable[[Any], Any]
    ) -> None:
        """Benchmarks parsing of large arrays with mixed value kinds."""
        result = _run(benchmark, parser, parse_func, "mixed_array")
        assert isinstance(result, list | rdjson.Array)

    @pytest.mark.benchmark(group="nested_structures")
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_nested_structure_parsing(
        self, benchmark: Any, parser: str, parse_func: Callable[[Any], Any]
    ) -> None:
        """Benchmarks parsing of deeply nested structures."""
        result = _run(benchmark, parser, parse_func, "nested_structure")
        assert isinstance(result, dict | rdjson.Object)

    @pytest.mark.benchmark(group="string_heavy")
    @pytest.mark.parametrize("parser,parse_func", PARSERS)
    def test_string_heavy_parsing(
        self, benchmark: Any, parser: str, parse_func: Callable[[Any], Any]
    ) -> None:
        """Benchmarks parsing of documents with many escape sequences."""
        result = _run(benchmark, parser, parse_func, "string_heavy")
        assert isinstance(result, dict | rdjson.Object)


@pytest.mark.benchmark(group="encoding")
def test_encode_large_object(benchmark: Any) -> None:
    """Benchmarks rendering a decoded large object back to text."""
    value = rdjson.loads(generate_test_data("large_object"))
    text = benchmark(rdjson.encode, value)
    assert rdjson.loads(text) == value
