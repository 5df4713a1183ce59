"""
Partial JSON parser: extracts tool-call arguments from a prefix of a JSON object.

While a language model streams the arguments of a tool call, the text received so far
is a prefix of a JSON object. The caller knows which top-level fields to expect and needs,
at every point of the stream, the best currently extractable value for each of them.
Fields that cannot be resolved yet are reported as None.

           Example of input (keys "path" and "content"):
                '{"path": "src/app.ts", "content": "export const'
           Output:
                {"path": "src/app.ts", "content": "export const"}

The parser works in a single forward pass and stops at the first point where it cannot
make progress. Values committed before that point are kept, so repeated calls on a
growing buffer give results that only improve as more text arrives.

The following simplifications are made:
- Nested objects and arrays are not parsed. A field whose value starts with '{' or '['
  stays None and the scan stops there.
- Values are not validated against any schema.
- A string value that is still open is returned verbatim (escape sequences included),
  since a half-streamed escape sequence cannot be decoded reliably.

String values often carry code, and code carries quotes and braces that the model may not
escape. A quote only closes a value when it is followed by ',' or '}' and every '{' seen
inside the string has been matched by a '}'. A quote only closes a key when it is followed
by ':'. This is a heuristic: a value that ends with a quote right after an unbalanced
brace is read past its real end.

Once the stream is complete and the buffer is valid JSON, the decoded document is
returned as is, without going through the heuristics.
"""


import json
import logging
import re
from typing import Any, Iterable, NamedTuple, Optional


logger = logging.getLogger(__name__)

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_PRIMITIVE_DELIMITERS = (",", "}")

_PRIMITIVE_STARTS = frozenset("tfn-0123456789")

_LITERALS = {"true": True, "false": False, "null": None}

# A trailing '.' is allowed so that a number cut right after its dot still reads.
_NUMBER_RE = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ScanResult(NamedTuple):
    """A value read by a scanner and the offset just past the consumed text."""
    value: Any
    end: int


def _skip_ws(s: str, i: int) -> int:
    """
    Skip whitespace characters in string s starting at index i.
    Returns the index of the first non-whitespace character.
    """
    while i < len(s) and s[i].isspace():
        i += 1
    return i


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard JSON constant: {name}")


def _read_unicode_escape(s: str, i: int) -> tuple[Optional[str], int]:
    """
    Decode the four hex digits following the 'u' of a \\u escape at s[i].
    Returns (text, index of the last consumed character). text is None when
    fewer than four characters are left in the buffer.
    """
    digits = s[i + 1:i + 5]
    if len(digits) < 4:
        return None, i
    if not all(c in _HEX_DIGITS for c in digits):
        # Not a valid escape: keep the letter, leave the rest as content.
        return "u", i

    code = int(digits, 16)
    i += 4
    # A high surrogate followed by an escaped low surrogate encodes one code point.
    if 0xD800 <= code <= 0xDBFF and s[i + 1:i + 3] == "\\u":
        low_digits = s[i + 3:i + 7]
        if len(low_digits) == 4 and all(c in _HEX_DIGITS for c in low_digits):
            low = int(low_digits, 16)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                i += 6
    return chr(code), i


def _closes_string(s: str, i: int, is_key: bool, depth: int) -> bool:
    """Decide whether the unescaped quote at s[i] ends the string it appears in."""
    if i + 1 >= len(s):
        return True

    j = _skip_ws(s, i + 1)
    if j >= len(s):
        return True

    follow = s[j]
    if is_key:
        return follow == ":"
    return depth == 0 and follow in (",", "}")


def scan_string(s: str, i: int, is_key: bool = False) -> Optional[ScanResult]:
    """
    Read a JSON string starting at s[i] (which must be a quote).

    Escape sequences are decoded. An unescaped quote is only taken as the closing
    quote when what follows it looks like the rest of the object (see module docstring);
    otherwise it is kept as part of the value.

    Returns the decoded text and the index just past the closing quote, or None
    if s[i] is not a quote or the string is not closed yet.
    """
    if i >= len(s) or s[i] != '"':
        return None

    i += 1
    out = []
    depth = 0
    while i < len(s):
        ch = s[i]
        if ch == "\\":
            i += 1
            if i >= len(s):
                return None
            ch = s[i]
            if ch == "u":
                text, i = _read_unicode_escape(s, i)
                if text is None:
                    return None
                out.append(text)
            else:
                out.append(_ESCAPES.get(ch, ch))
        elif ch == '"':
            if _closes_string(s, i, is_key, depth):
                return ScanResult("".join(out), i + 1)
            out.append(ch)
        else:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
            out.append(ch)
        i += 1

    return None


def extract_partial_string(s: str, i: int) -> Optional[str]:
    """
    Return the raw content of a string value that is still open at s[i].

    Everything after the opening quote is returned verbatim. An opening quote with
    nothing after it gives None rather than an empty string, since it is not
    distinguishable from a value that has not started.
    """
    if i >= len(s) or s[i] != '"':
        return None
    if i + 1 >= len(s):
        return None
    return s[i + 1:]


def scan_primitive(s: str, i: int) -> Optional[ScanResult]:
    """
    Read a boolean, null or number starting at s[i].

    The token runs up to the next ',', '}', whitespace or the end of the buffer.
    Returns None if the token is neither a literal nor a number, e.g. a literal
    that has only partially arrived ("tru").
    """
    start = i
    while i < len(s) and s[i] not in _PRIMITIVE_DELIMITERS and not s[i].isspace():
        i += 1

    token = s[start:i]
    if token in _LITERALS:
        return ScanResult(_LITERALS[token], i)

    if not _NUMBER_RE.fullmatch(token):
        return None
    try:
        if token.lstrip("-").isdigit():
            return ScanResult(int(token), i)
        return ScanResult(float(token), i)
    except ValueError:
        # int() refuses integers past the interpreter's digit limit.
        return None


def _load_complete(buffer: str) -> tuple[Any, bool]:
    """
    Decode the buffer as a complete JSON document.
    Returns (document, ok_flag).
    """
    try:
        return json.loads(buffer, parse_constant=_reject_constant), True
    except (ValueError, RecursionError) as exc:
        logger.debug("buffer is not a complete JSON document: %s", exc)
        return None, False


def _scan_object(s: str, i: int, result: dict[str, Any]) -> int:
    """
    Scan key/value pairs of the object whose opening brace is just before s[i],
    storing values of expected keys into result.
    Returns the index where the scan stopped.
    """
    written: set[str] = set()

    def store(key: str, value: Any) -> None:
        if key in result and key not in written:
            result[key] = value
            written.add(key)

    while True:
        i = _skip_ws(s, i)
        if i >= len(s):
            return i
        if s[i] in ("}", ","):
            i += 1
            continue
        if s[i] != '"':
            return i

        key_result = scan_string(s, i, is_key=True)
        if key_result is None:
            # The key has not fully arrived; nothing can be attributed to it.
            return i
        key, i = key_result

        i = _skip_ws(s, i)
        if i >= len(s) or s[i] != ":":
            return i
        i = _skip_ws(s, i + 1)
        if i >= len(s):
            return i

        ch = s[i]
        if ch == '"':
            value_result = scan_string(s, i)
            if value_result is None:
                partial = extract_partial_string(s, i)
                if partial is not None:
                    store(key, partial)
                return i
            store(key, value_result.value)
            i = value_result.end
        elif ch in _PRIMITIVE_STARTS:
            value_result = scan_primitive(s, i)
            if value_result is None:
                return i
            store(key, value_result.value)
            i = value_result.end
        else:
            # Nested objects, arrays and anything unexpected end the scan.
            return i


def parse(buffer: str, expected_keys: Iterable[str]) -> dict[str, Any]:
    """
    Parse a possibly incomplete JSON object into a dict of the expected keys.

    Every expected key is present in the result; keys whose value cannot be
    resolved from the buffer yet map to None. If the buffer is already a complete,
    valid JSON document, it is decoded and returned unchanged instead.

    Never raises: malformed and truncated input both just stop the scan.
    """
    result: dict[str, Any] = {key: None for key in expected_keys}
    if not buffer:
        return result

    start = _skip_ws(buffer, 0)
    if start >= len(buffer) or buffer[start] != "{":
        return result

    document, ok = _load_complete(buffer)
    if ok:
        return document

    stop = _scan_object(buffer, start + 1, result)
    logger.debug("incremental scan stopped at offset %d of %d", stop, len(buffer))
    return result


class StreamingArgumentsParser:
    """
    Accumulates the streamed text of one tool call's arguments.

    Each get() parses the whole buffer again; no parse state is carried between
    calls, so the result for a given buffer never depends on how it was chunked.
    """
    def __init__(self, expected_keys: Iterable[str]) -> None:
        self.expected_keys: tuple[str, ...] = tuple(expected_keys)
        self._buffer: str = ""

    @property
    def buffer(self) -> str:
        return self._buffer

    def consume(self, chunk: str) -> None:
        """Add a chunk of text to the internal buffer for parsing."""
        self._buffer += chunk

    def get(self) -> dict[str, Any]:
        """
        Parse and return the current arguments from the buffer.
        Expected keys that are not resolvable yet are None.
        """
        return parse(self._buffer, self.expected_keys)

    def reset(self) -> None:
        """Drop the buffered text, e.g. before the next tool call."""
        self._buffer = ""
