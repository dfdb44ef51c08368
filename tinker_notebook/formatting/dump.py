# Copyright 2025 Ralph Lemke
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Best-effort decoding of PHP value dumps using Lark.

Decoded shapes:

- ``array(1, 2)`` / ``[1, 2]`` -> ``[1, 2]``
- ``array(0 => 'a', 1 => 'b')`` -> ``["a", "b"]`` (sequential keys from 0)
- ``array('a' => 1, 2)`` -> ``{"a": 1, 0: 2}`` (bare entries get the next
  integer key, as PHP does)
- ``object(Foo)#3 (["x":protected] => 1)`` -> ``{"__class": "Foo", "__id": "3", "#x": 1}``
- ``Foo::__set_state(array('x' => 1))`` -> ``{"__class": "Foo", "__static": True, "x": 1}``

Property visibility is encoded in the key: protected properties get a
``#`` prefix, private ones a ``_`` prefix, and class-qualified private
properties are written ``_Class::name``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, NamedTuple

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from ..errors import DumpParseError

_GRAMMAR_PATH = Path(__file__).parent / "grammar" / "dump.lark"

_PROPERTY_REGEX = re.compile(
    r'^\[\s*"(?P<first>[^"]*)"(?:\s*:\s*"(?P<second>[^"]*)")?(?:\s*:\s*(?P<visibility>[a-z]+))?\s*\]$'
)

_DOUBLE_QUOTED_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "f": "\f",
    "e": "\x1b",
    "0": "\0",
    "$": "$",
    '"': '"',
    "\\": "\\",
}

_NO_KEY = object()


class _Entry(NamedTuple):
    key: Any
    value: Any


def _unquote(text: str) -> str:
    quote, body = text[0], text[1:-1]
    if quote == "'":
        return re.sub(r"\\([\\'])", r"\1", body)
    return re.sub(
        r"\\(.)",
        lambda m: _DOUBLE_QUOTED_ESCAPES.get(m.group(1), m.group(0)),
        body,
        flags=re.DOTALL,
    )


def property_key(token: str) -> str:
    """Turn a dumped property name into a visibility-encoded key.

    ``["name"]`` -> ``name``, ``["name":protected]`` -> ``#name``,
    ``["name":private]`` -> ``_name``, ``["Cls":"name":private]`` -> ``_Cls::name``.
    """
    match = _PROPERTY_REGEX.match(token.strip())
    if match is None:
        raise DumpParseError(f"Malformed property name {token!r}")

    first, second, visibility = match.group("first", "second", "visibility")
    if second is not None:
        return f"_{first}::{second}"
    if visibility == "protected":
        return f"#{first}"
    if visibility == "private":
        return f"_{first}"
    return first


def _normalize_key(key: Any) -> str | int:
    if isinstance(key, bool):
        return int(key)
    if isinstance(key, (str, int)):
        return key
    if key is None:
        return ""
    if isinstance(key, float) and key.is_integer():
        return int(key)
    return str(key)


def _collect(entries: list[_Entry], force_mapping: bool = False) -> list[Any] | dict[Any, Any]:
    """Build a list (no keys, or keys 0..n-1 in order) or a dict from entries."""
    if not force_mapping and all(entry.key is _NO_KEY for entry in entries):
        return [entry.value for entry in entries]

    result: dict[Any, Any] = {}
    next_index = 0
    for entry in entries:
        if entry.key is _NO_KEY:
            key: str | int = next_index
        else:
            key = _normalize_key(entry.key)
        if isinstance(key, int):
            next_index = max(next_index, key + 1)
        result[key] = entry.value

    # array(0 => 'a', 1 => 'b') is a list in PHP terms
    if not force_mapping and list(result) == list(range(len(result))):
        return list(result.values())
    return result


def _as_properties(value: Any) -> dict[Any, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return dict(enumerate(value))
    raise DumpParseError("Object state must be an array")


class DumpTransformer(Transformer):
    """Transform a dump parse tree into plain Python values."""

    # Terminals
    def STRING(self, token: Token) -> str:
        return _unquote(str(token))

    def NUMBER(self, token: Token) -> int | float:
        text = str(token)
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)

    def NAME(self, token: Token) -> str:
        return str(token)

    def PROPERTY(self, token: Token) -> str:
        return property_key(str(token))

    # Scalars
    @v_args(inline=True)
    def string(self, value: str) -> str:
        return value

    @v_args(inline=True)
    def number(self, value: int | float) -> int | float:
        return value

    @v_args(inline=True)
    def constant(self, name: str) -> Any:
        lowered = name.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if lowered == "null":
            return None
        return name

    # Entries
    @v_args(inline=True)
    def property_pair(self, key: str, value: Any) -> _Entry:
        return _Entry(key, value)

    @v_args(inline=True)
    def pair(self, key: Any, value: Any) -> _Entry:
        return _Entry(key, value)

    @v_args(inline=True)
    def item(self, value: Any) -> _Entry:
        return _Entry(_NO_KEY, value)

    def entries(self, items: list) -> list[_Entry]:
        return list(items)

    def object_entries(self, items: list) -> list[_Entry]:
        return list(items)

    # Collections
    def array(self, items: list) -> list[Any] | dict[Any, Any]:
        return _collect(items[0] if items else [])

    def list(self, items: list) -> list[Any] | dict[Any, Any]:
        return _collect(items[0] if items else [])

    def object_dump(self, items: list) -> dict[Any, Any]:
        class_name, object_id = items[0], items[1]
        entries = items[2] if len(items) > 2 else []
        return {
            "__class": class_name,
            "__id": str(object_id),
            **_collect(entries, force_mapping=True),
        }

    @v_args(inline=True)
    def set_state(self, class_name: str, state: Any) -> dict[Any, Any]:
        return {"__class": class_name.lstrip("\\"), "__static": True, **_as_properties(state)}

    @v_args(inline=True)
    def object_cast(self, state: Any) -> dict[Any, Any]:
        return {"__class": "stdClass", **_as_properties(state)}


class DumpDecoder:
    """Decodes PHP dump text into Python values.

    The Lark instance is shared across all decoders since the grammar is
    immutable at runtime.
    """

    _lark: Lark | None = None

    @classmethod
    def _get_lark(cls) -> Lark:
        """Return the shared Lark parser, creating it on first use."""
        if cls._lark is None:
            with open(_GRAMMAR_PATH) as f:
                grammar = f.read()
            cls._lark = Lark(
                grammar,
                parser="lalr",
                lexer="contextual",
                maybe_placeholders=False,
            )
        return cls._lark

    def __init__(self) -> None:
        self._parser = self._get_lark()

    def decode(self, text: str) -> Any:
        """Decode dump text.

        Raises:
            DumpParseError: If the text is not valid dump syntax
        """
        try:
            tree = self._parser.parse(text.strip())
            return DumpTransformer().transform(tree)
        except UnexpectedCharacters as e:
            raise DumpParseError(
                f"Unexpected character '{e.char}'", line=e.line, column=e.column
            ) from e
        except UnexpectedToken as e:
            raise DumpParseError(
                f"Unexpected token '{e.token}'", line=e.line, column=e.column
            ) from e
        except UnexpectedInput as e:
            raise DumpParseError(
                "Syntax error",
                line=getattr(e, "line", None),
                column=getattr(e, "column", None),
            ) from e
        except VisitError as e:
            if isinstance(e.orig_exc, DumpParseError):
                raise e.orig_exc from e
            raise DumpParseError(str(e.orig_exc)) from e
        except RecursionError as e:
            raise DumpParseError("Dump is nested too deeply") from e


_default_decoder: DumpDecoder | None = None


def decode_dump(text: str) -> Any:
    """Decode dump text with a module-level cached decoder."""
    global _default_decoder
    if _default_decoder is None:
        _default_decoder = DumpDecoder()
    return _default_decoder.decode(text)
