"""
JSON decoding and encoding that keeps number literals as written.

Captured outputs are text; a value read out of them and written back (into a
parameter or a materialized file) must keep its numbers exactly, so `1.50`
stays `1.50` and `1e5` stays `1e5`. NaN and Infinity are not JSON and are
rejected when decoding.
"""

import json
from typing import Any, List, Optional


class JsonNumber(str):
    """A JSON number kept as its source literal."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


DECODER = json.JSONDecoder(
    parse_float=JsonNumber,
    parse_int=JsonNumber,
    parse_constant=_reject_constant
)


def loads(text: str) -> Any:
    """Decode a single JSON document.

    Raises:
        ValueError: If the text is not strict JSON
    """
    return DECODER.decode(text)


def dumps(value: Any, indent: Optional[int] = None) -> str:
    """
    Encode a decoded value as JSON, writing JsonNumbers verbatim.

    With indent=None the output is compact (no spaces); otherwise it matches
    json.dumps(value, indent=indent). Non-ASCII text is written as is.
    """
    return _encode(value, indent, 0)


def _encode(value: Any, indent: Optional[int], depth: int) -> str:
    if isinstance(value, JsonNumber):
        return str(value)
    if isinstance(value, dict):
        key_separator = ':' if indent is None else ': '
        parts = [
            json.dumps(str(key), ensure_ascii=False) + key_separator + _encode(item, indent, depth + 1)
            for key, item in value.items()
        ]
        return _wrap(parts, '{', '}', indent, depth)
    if isinstance(value, (list, tuple)):
        parts = [_encode(item, indent, depth + 1) for item in value]
        return _wrap(parts, '[', ']', indent, depth)
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def _wrap(parts: List[str], open_: str, close: str, indent: Optional[int], depth: int) -> str:
    if not parts:
        return open_ + close
    if indent is None:
        return open_ + ','.join(parts) + close
    inner = '\n' + ' ' * (indent * (depth + 1))
    outer = '\n' + ' ' * (indent * depth)
    return open_ + inner + (',' + inner).join(parts) + outer + close
