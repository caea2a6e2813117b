"""
Recursive-descent JSON codec over byte buffers.

Decodes one JSON value from the front of a byte buffer and returns it together
with the unconsumed remainder, distinguishing input that merely ended too early
from input that can never become valid. Values render back to compact JSON text.
"""

import os
import re
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from types import MappingProxyType
from typing import IO
from typing import Any
from typing import NoReturn
from typing import TypeAlias

__version__ = "0.1.0"

Position: TypeAlias = int
Buffer = bytes | bytearray | memoryview

# Nesting limit; each level costs two stack frames, the default stays inside
# the interpreter recursion limit
DEFAULT_MAX_DEPTH = int(os.environ.get("RDJSON_MAX_DEPTH", "256"))

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_COMMA = ord(",")
_COLON = ord(":")
_DOT = ord(".")
_LBRACKET = ord("[")
_RBRACKET = ord("]")
_LBRACE = ord("{")
_RBRACE = ord("}")
_N = ord("n")
_U = ord("u")

_DIGITS = frozenset(b"0123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_SIGNS = frozenset(b"+-")
_EXPONENT = frozenset(b"eE")
_NUMBER_START = _DIGITS | _SIGNS | {_DOT}

_PLAIN_RUN = re.compile(rb'[^"\\]+')

_ESCAPES = {
    _QUOTE: '"',
    _BACKSLASH: "\\",
    ord("/"): "/",
    ord("b"): "\b",
    ord("n"): "\n",
    ord("r"): "\r",
    ord("t"): "\t",
}
# Historical rendering of \b: a NUL followed by the digit 8
_LEGACY_BACKSPACE = "\x008"

_HIGH_SURROGATES = range(0xD800, 0xDC00)
_LOW_SURROGATES = range(0xDC00, 0xE000)


class _JsonNode:
    __slots__ = ()

    def __str__(self) -> str:
        return encode(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Null(_JsonNode):
    """The ``null`` literal."""


NULL = Null()


@dataclass(frozen=True)
class Number(_JsonNode):
    """Any JSON number, held as a double-precision float."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class String(_JsonNode):
    """Unescaped string content."""

    value: str


@dataclass(frozen=True)
class Array(_JsonNode):
    """Ordered sequence of values."""

    items: tuple["Value", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __getitem__(self, index: int) -> "Value":
        return self.items[index]


@dataclass(frozen=True)
class Object(_JsonNode):
    """
    Mapping of unique string keys to values.

    Members are stored read-only in insertion order; equality ignores order.
    """

    members: Mapping[str, "Value"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", MappingProxyType(dict(self.members)))

    def __hash__(self) -> int:
        return hash(frozenset(self.members.items()))

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[str]:
        return iter(self.members)

    def __contains__(self, key: object) -> bool:
        return key in self.members

    def __getitem__(self, key: str) -> "Value":
        return self.members[key]


Value = Null | Number | String | Array | Object


class Production(Enum):
    """Grammar productions, used to report what was being parsed on failure."""

    ELEMENT = "element"
    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


class DuplicateKeys(Enum):
    """Which occurrence of a repeated object key is kept."""

    FIRST = "first"
    LAST = "last"


class JSONDecodeError(ValueError):
    """
    Handles JSON parsing failures with precise position and context information.

    Error state containing the byte offset, line/column numbers and the grammar
    production that failed, to help users locate the problem in the input.
    """

    def __init__(
        self,
        msg: str,
        doc: Buffer = b"",
        pos: Position = 0,
        production: Production = Production.ELEMENT,
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.production = production

        # Line and column are counted in bytes from the start of the buffer
        view = bytes(doc[:pos])
        self.lineno = view.count(b"\n") + 1
        self.colno = pos - view.rfind(b"\n")

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")


class IncompleteJSONError(JSONDecodeError):
    """Input ended before a value could be accepted or rejected."""


class MalformedJSONError(JSONDecodeError):
    """Input at the reported position can never satisfy the grammar."""


class TruncatedJSONError(MalformedJSONError):
    """A stream ended while a value was still incomplete."""


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures decoding behavior with immutable settings.

    Centralized configuration for nesting limits, duplicate-key policy and
    compatibility switches.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    duplicate_keys: DuplicateKeys = DuplicateKeys.FIRST
    legacy_backspace: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if not isinstance(self.duplicate_keys, DuplicateKeys):
            object.__setattr__(
                self, "duplicate_keys", DuplicateKeys(self.duplicate_keys)
            )
        if not isinstance(self.legacy_backspace, bool):
            raise TypeError("legacy_backspace must be a boolean")


@dataclass(frozen=True)
class EncodeConfig:
    """Configures rendering of values back to text."""

    sort_keys: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.sort_keys, bool):
            raise TypeError("sort_keys must be a boolean")


class JsonDecoder:
    """
    Recursive-descent decoder for one element at the front of a buffer.

    Each production starts at ``pos`` and leaves it just past what it consumed.
    Running out of bytes raises IncompleteJSONError, anything else that cannot
    match raises MalformedJSONError; nothing is recovered locally.
    """

    def __init__(self, doc: bytes | bytearray, config: ParseConfig, final: bool):
        self.doc = doc
        self.pos = 0
        self.length = len(doc)
        self.config = config
        self.final = final
        self.depth = 0
        self.escapes = dict(_ESCAPES)
        if config.legacy_backspace:
            self.escapes[ord("b")] = _LEGACY_BACKSPACE

    def peek(self) -> int | None:
        """Returns current byte without advancing, None at end of input."""
        return self.doc[self.pos] if self.pos < self.length else None

    def _error(
        self,
        error_class: type[JSONDecodeError],
        msg: str,
        production: Production,
        pos: Position | None = None,
    ) -> JSONDecodeError:
        return error_class(
            msg, self.doc, self.pos if pos is None else pos, production
        )

    def _unexpected(self, msg: str, production: Production) -> NoReturn:
        """Fails at the current position: incomplete at end, malformed otherwise."""
        if self.pos >= self.length:
            raise self._error(IncompleteJSONError, msg, production)
        raise self._error(MalformedJSONError, msg, production)

    def _enter(self, production: Production) -> None:
        self.depth += 1
        if self.depth > self.config.max_depth:
            raise self._error(
                MalformedJSONError,
                f"Maximum nesting depth of {self.config.max_depth} exceeded",
                production,
            )

    def parse_element(self) -> Value:
        """Parses any value based on its first byte."""
        char = self.peek()

        if char == _N:
            return self.parse_null()
        elif char in _NUMBER_START:
            return self.parse_number()
        elif char == _QUOTE:
            return String(self.parse_string())
        elif char == _LBRACKET:
            return self.parse_array()
        elif char == _LBRACE:
            return self.parse_object()
        else:
            self._unexpected("Expecting value", Production.ELEMENT)

    def parse_null(self) -> Null:
        start = self.pos
        chunk = self.doc[start : start + 4]
        if chunk == b"null":
            self.pos += 4
            return NULL
        if len(chunk) < 4 and b"null".startswith(chunk):
            self.pos = self.length
            raise self._error(
                IncompleteJSONError, "Invalid literal", Production.NULL, start
            )
        raise self._error(
            MalformedJSONError, "Invalid literal", Production.NULL, start
        )

    def _scan_digits(self) -> int:
        """Advances over ASCII digits and returns how many were seen."""
        start = self.pos
        while self.pos < self.length and self.doc[self.pos] in _DIGITS:
            self.pos += 1
        return self.pos - start

    def parse_number(self) -> Number:
        """
        Parses a permissive number literal.

        Accepts a leading ``+``, leading zeros and a bare leading ``.``. A
        literal that touches the end of a non-final buffer is incomplete since
        more digits may follow.
        """
        start = self.pos
        if self.peek() in _SIGNS:
            self.pos += 1

        mantissa_digits = self._scan_digits()
        if self.peek() == _DOT:
            self.pos += 1
            mantissa_digits += self._scan_digits()
        if not mantissa_digits:
            self._unexpected("Invalid number", Production.NUMBER)

        if self.peek() in _EXPONENT:
            exponent = self.pos
            self.pos += 1
            if self.peek() in _SIGNS:
                self.pos += 1
            if not self._scan_digits():
                if self.pos >= self.length:
                    self._unexpected("Invalid exponent", Production.NUMBER)
                # Marker without digits is not part of the number
                self.pos = exponent

        if self.pos >= self.length and not self.final:
            raise self._error(
                IncompleteJSONError,
                "Number may continue past end of input",
                Production.NUMBER,
                start,
            )

        text = bytes(self.doc[start : self.pos]).decode("ascii")
        return Number(float(text))

    def parse_string(self) -> str:
        """Parses a quoted string at the current position and unescapes it."""
        start = self.pos
        self.pos += 1
        chunks: list[str] = []

        while True:
            match = _PLAIN_RUN.match(self.doc, self.pos)
            if match:
                self.pos = match.end()
                if self.pos >= self.length:
                    break
                chunks.append(self._decode_run(match.start(), match.end()))

            char = self.peek()
            if char is None:
                break
            if char == _QUOTE:
                self.pos += 1
                return "".join(chunks)
            chunks.append(self._parse_escape())

        raise self._error(
            IncompleteJSONError,
            "Unterminated string starting at",
            Production.STRING,
            start,
        )

    def _decode_run(self, start: Position, end: Position) -> str:
        try:
            return bytes(self.doc[start:end]).decode("utf-8")
        except UnicodeDecodeError as e:
            raise self._error(
                MalformedJSONError,
                "Invalid UTF-8 in string",
                Production.STRING,
                start + e.start,
            ) from e

    def _parse_escape(self) -> str:
        """Process a single escape sequence and return the unescaped text."""
        escape_start = self.pos
        if self.pos + 1 >= self.length:
            self.pos = self.length
            raise self._error(
                IncompleteJSONError,
                "Unterminated string starting at",
                Production.STRING,
            )

        code = self.doc[self.pos + 1]
        if code == _U:
            return self._parse_unicode_escape()

        replacement = self.escapes.get(code)
        if replacement is None:
            raise self._error(
                MalformedJSONError,
                f"Invalid escape sequence: \\{chr(code)}",
                Production.STRING,
                escape_start,
            )
        self.pos += 2
        return replacement

    def _read_hex4(self, at: Position) -> int:
        digits = self.doc[at : at + 4]
        for offset, byte in enumerate(digits):
            if byte not in _HEX_DIGITS:
                raise self._error(
                    MalformedJSONError,
                    "Invalid \\uXXXX escape",
                    Production.STRING,
                    at + offset,
                )
        if len(digits) < 4:
            self.pos = self.length
            raise self._error(
                IncompleteJSONError,
                "Incomplete \\uXXXX escape",
                Production.STRING,
            )
        return int(digits, 16)

    def _parse_unicode_escape(self) -> str:
        code_point = self._read_hex4(self.pos + 2)
        self.pos += 6

        # Surrogate pairs combine; a lone surrogate stays an isolated code point
        if (
            code_point in _HIGH_SURROGATES
            and self.doc[self.pos : self.pos + 2] == b"\\u"
        ):
            low = self._read_hex4(self.pos + 2)
            if low in _LOW_SURROGATES:
                self.pos += 6
                code_point = 0x10000 + ((code_point - 0xD800) << 10) + (low - 0xDC00)

        return chr(code_point)

    def parse_array(self) -> Array:
        """Parses ``[`` element (``,`` element)* ``]``."""
        self._enter(Production.ARRAY)
        self.pos += 1

        if self.peek() == _RBRACKET:
            self.pos += 1
            self.depth -= 1
            return Array()

        items: list[Value] = []
        while True:
            items.append(self.parse_element())

            char = self.peek()
            if char == _RBRACKET:
                self.pos += 1
                break
            elif char == _COMMA:
                comma_pos = self.pos
                self.pos += 1
                if self.peek() == _RBRACKET:
                    raise self._error(
                        MalformedJSONError,
                        "Illegal trailing comma before end of array",
                        Production.ARRAY,
                        comma_pos,
                    )
            else:
                self._unexpected("Expecting ',' delimiter", Production.ARRAY)

        self.depth -= 1
        return Array(tuple(items))

    def _parse_pair(self) -> tuple[str, Value]:
        if self.peek() != _QUOTE:
            self._unexpected(
                "Expecting property name enclosed in double quotes",
                Production.OBJECT,
            )
        key = self.parse_string()

        if self.peek() != _COLON:
            self._unexpected("Expecting ':' delimiter", Production.OBJECT)
        self.pos += 1

        return key, self.parse_element()

    def parse_object(self) -> Object:
        """Parses ``{`` pair (``,`` pair)* ``}`` applying the duplicate-key policy."""
        self._enter(Production.OBJECT)
        self.pos += 1

        if self.peek() == _RBRACE:
            self.pos += 1
            self.depth -= 1
            return Object()

        keep_first = self.config.duplicate_keys is DuplicateKeys.FIRST
        members: dict[str, Value] = {}
        while True:
            key, value = self._parse_pair()
            if not (keep_first and key in members):
                members[key] = value

            char = self.peek()
            if char == _RBRACE:
                self.pos += 1
                break
            elif char == _COMMA:
                comma_pos = self.pos
                self.pos += 1
                if self.peek() == _RBRACE:
                    raise self._error(
                        MalformedJSONError,
                        "Illegal trailing comma before end of object",
                        Production.OBJECT,
                        comma_pos,
                    )
            else:
                self._unexpected("Expecting ',' delimiter", Production.OBJECT)

        self.depth -= 1
        return Object(members)


def _as_buffer(data: Any) -> bytes | bytearray:
    if isinstance(data, bytes | bytearray):
        return data
    if isinstance(data, memoryview):
        return data.tobytes()
    raise TypeError(
        f"the JSON document must be bytes-like, not {type(data).__name__}"
    )


def _decode(
    doc: bytes | bytearray, config: ParseConfig, final: bool
) -> tuple[Value, bytes]:
    decoder = JsonDecoder(doc, config, final)
    value = decoder.parse_element()
    return value, bytes(doc[decoder.pos :])


def decode(
    data: Buffer, *, final: bool = True, **kwargs: Any
) -> tuple[Value, bytes]:
    """
    Decodes one value from the front of ``data``.

    Returns the value and the bytes that were not consumed. Raises
    IncompleteJSONError when more input could still complete the value and
    MalformedJSONError when it never can. With ``final=False`` a number that
    runs to the end of the buffer counts as incomplete.
    """
    config = ParseConfig(**kwargs)
    return _decode(_as_buffer(data), config, final)


def loads(s: str | bytes | bytearray, **kwargs: Any) -> Value:
    """
    Decodes a complete document, rejecting anything after the value.

    Text input is encoded as UTF-8 before decoding, so error positions are
    byte offsets.
    """
    if isinstance(s, str):
        doc: bytes | bytearray = s.encode("utf-8")
    elif isinstance(s, bytes | bytearray):
        doc = s
    else:
        raise TypeError(
            f"the JSON object must be str, bytes or bytearray, not {type(s).__name__}"
        )

    value, rest = _decode(doc, ParseConfig(**kwargs), final=True)
    if rest:
        raise MalformedJSONError(
            "Extra data", doc, len(doc) - len(rest), Production.ELEMENT
        )
    return value


def load(fp: IO[Any], **kwargs: Any) -> Value:
    """Decodes a complete document read from a text or binary file object."""
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return loads(fp.read(), **kwargs)


def _encode_object(obj: Object, config: EncodeConfig) -> str:
    items = list(obj.members.items())
    if not items:
        return "{}"

    if config.sort_keys:
        items.sort(key=lambda item: item[0])

    formatted_items = [
        f'"{key}":{_encode_value(value, config)}' for key, value in items
    ]
    return "{" + ",".join(formatted_items) + "}"


def _encode_value(value: Value, config: EncodeConfig) -> str:
    """Render any value; strings are written back without re-escaping."""
    if isinstance(value, Null):
        return "null"
    elif isinstance(value, Number):
        return repr(value.value)
    elif isinstance(value, String):
        return f'"{value.value}"'
    elif isinstance(value, Array):
        return "[" + ",".join(_encode_value(item, config) for item in value) + "]"
    elif isinstance(value, Object):
        return _encode_object(value, config)
    else:
        msg = f"Object of type {type(value).__name__} is not a JSON value"
        raise TypeError(msg)


def encode(value: Value, **kwargs: Any) -> str:
    """
    Renders a value as compact JSON text.

    No whitespace is emitted and string content is written verbatim, so the
    output is only valid JSON when strings hold no quotes, backslashes or
    control characters.
    """
    config = EncodeConfig(**kwargs)
    return _encode_value(value, config)


def dumps(value: Value, **kwargs: Any) -> str:
    """Alias of encode, for symmetry with loads."""
    return encode(value, **kwargs)


def dump(value: Value, fp: IO[str], **kwargs: Any) -> None:
    """Writes the rendering of ``value`` to a text file object."""
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(encode(value, **kwargs))


from rdjson._stream import StreamDecoder  # noqa: E402
from rdjson._stream import iter_decode  # noqa: E402

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "NULL",
    "Array",
    "DuplicateKeys",
    "EncodeConfig",
    "IncompleteJSONError",
    "JSONDecodeError",
    "JsonDecoder",
    "MalformedJSONError",
    "Null",
    "Number",
    "Object",
    "ParseConfig",
    "Production",
    "StreamDecoder",
    "String",
    "TruncatedJSONError",
    "Value",
    "decode",
    "dump",
    "dumps",
    "encode",
    "iter_decode",
    "load",
    "loads",
]
