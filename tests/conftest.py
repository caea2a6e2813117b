"""
Pytest configuration and shared fixtures for rdjson tests.

Provides immutable test data fixtures covering every grammar production, for
documents that decode, documents that can never decode and documents that are
merely cut short.
"""

from dataclasses import dataclass
from typing import Any

import pytest

from rdjson import NULL
from rdjson import Array
from rdjson import Number
from rdjson import Object
from rdjson import String


@dataclass(frozen=True)
class JsonTestCase:
    """
    Immutable container for JSON test case data.

    Holds test input and expected behavior for consistent test execution.
    """

    description: str
    input_data: bytes
    should_fail: bool = False
    expected_output: Any = None
    skip_reason: str = ""


@pytest.fixture
def basic_json_values() -> list[JsonTestCase]:
    """
    Provides one document per production with its decoded value.
    """
    return [
        JsonTestCase("null", b"null", False, NULL),
        JsonTestCase("integer", b"42", False, Number(42.0)),
        JsonTestCase("negative float", b"-3.25", False, Number(-3.25)),
        JsonTestCase("empty string", b'""', False, String("")),
        JsonTestCase("simple string", b'"hello"', False, String("hello")),
        JsonTestCase("space string", b'" "', False, String(" ")),
        JsonTestCase(
            "punctuation string",
            '"#€%&/()="'.encode(),
            False,
            String("#€%&/()="),
        ),
        JsonTestCase("empty array", b"[]", False, Array()),
        JsonTestCase("empty object", b"{}", False, Object()),
        JsonTestCase(
            "mixed array",
            b'[1.23,null,"foo"]',
            False,
            Array((Number(1.23), NULL, String("foo"))),
        ),
        JsonTestCase(
            "simple object", b'{"foo":null}', False, Object({"foo": NULL})
        ),
        JsonTestCase(
            "nested containers",
            b'{"a":[{"b":[]}],"c":{}}',
            False,
            Object(
                {
                    "a": Array((Object({"b": Array()}),)),
                    "c": Object(),
                }
            ),
        ),
    ]


@pytest.fixture
def json_fail_cases() -> list[JsonTestCase]:
    """
    Provides documents that are malformed no matter what bytes follow them.
    """
    fail_docs = [
        ("comma only", b"[,]"),
        ("trailing comma", b"[[],]"),
        ("leading comma", b"[,[]]"),
        ("double comma", b"[1,,2]"),
        ("object trailing comma", b'{"a":1,}'),
        ("object leading comma", b'{,"a":1}'),
        ("bad literal", b"x"),
        ("misspelled null", b"nul1"),
        ("true is not part of the grammar", b"true"),
        ("unquoted key", b"{a:1}"),
        ("missing colon", b'{"a"1}'),
        ("double colon", b'{"a"::1}'),
        ("colon in array", b'["a":1]'),
        ("mismatched close", b'["mismatch"}'),
        ("whitespace is not part of the grammar", b"[1, 2]"),
        ("sign without digits", b"-x"),
        ("unknown escape", b'"\\x15"'),
        ("form feed escape", b'"\\f"'),
        ("bad unicode escape", b'"\\u12G4"'),
        ("invalid utf-8", b'"\xff"'),
    ]

    return [
        JsonTestCase(description=description, input_data=doc, should_fail=True)
        for description, doc in fail_docs
    ]


@pytest.fixture
def json_incomplete_cases() -> list[JsonTestCase]:
    """
    Provides documents cut short, which more input could still complete.
    """
    incomplete_docs = [
        ("empty input", b""),
        ("null prefix", b"nu"),
        ("bare sign", b"-"),
        ("bare dot", b"."),
        ("exponent cut", b"1e"),
        ("exponent sign cut", b"1e-"),
        ("open string", b'"abc'),
        ("open escape", b'"abc\\'),
        ("short unicode escape", b'"\\u21'),
        ("open array", b"["),
        ("array after element", b"[1"),
        ("array after comma", b"[null,"),
        ("open object", b"{"),
        ("object after key", b'{"a"'),
        ("object after colon", b'{"a":'),
        ("object after comma", b'{"a":null,'),
        ("deep open", b"[[[{"),
    ]

    return [
        JsonTestCase(description=description, input_data=doc, should_fail=True)
        for description, doc in incomplete_docs
    ]
