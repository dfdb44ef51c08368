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

"""Classification of raw execution output into structural shapes."""

import json
import re
from typing import Any


class OutputType:
    """Output shape constants."""

    STRUCTURED_OBJECT = "structured-object"
    LIST = "list"
    FOREIGN_ARRAY_LITERAL = "foreign-array-literal"
    FOREIGN_OBJECT_DUMP = "foreign-object-dump"
    SCALAR_STRING = "scalar-string"

    ALL = (
        STRUCTURED_OBJECT,
        LIST,
        FOREIGN_ARRAY_LITERAL,
        FOREIGN_OBJECT_DUMP,
        SCALAR_STRING,
    )

    @classmethod
    def is_valid(cls, output_type: str) -> bool:
        return output_type in cls.ALL


_FOREIGN_ARRAY_REGEX = re.compile(r"^array\s*\(")
_BRACKETED_REGEX = re.compile(r"^\[[\s\S]*\]$")
_FOREIGN_OBJECT_REGEXES = (
    re.compile(r"^object\s*\("),
    re.compile(r"^\(object\)"),
    re.compile(r"^\\?[A-Za-z0-9_\\]+::__set_state\("),
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant {name}")


def parse_json(text: str) -> Any:
    """Parse strict JSON text.

    Raises:
        ValueError: If text is not JSON (NaN and Infinity are rejected)
    """
    return json.loads(text, parse_constant=_reject_constant)


def is_json(text: str) -> bool:
    try:
        parse_json(text)
    except ValueError:
        return False
    return True


def is_foreign_array(text: str) -> bool:
    """Check if text looks like an ``array(...)`` or ``[...]`` dump."""
    text = text.strip()
    return bool(_FOREIGN_ARRAY_REGEX.match(text) or _BRACKETED_REGEX.match(text))


def is_foreign_object(text: str) -> bool:
    """Check if text looks like an object dump or ``__set_state`` export."""
    text = text.strip()
    return any(regex.match(text) for regex in _FOREIGN_OBJECT_REGEXES)


def classify(output: str) -> str:
    """Classify raw output text into an OutputType.

    JSON is tried first; bracketed text that is not JSON falls through to
    the foreign array check. Never raises.
    """
    if output is None:
        return OutputType.SCALAR_STRING
    text = output.strip()
    if not text:
        return OutputType.SCALAR_STRING

    try:
        value = parse_json(text)
    except (ValueError, RecursionError):
        pass
    else:
        if isinstance(value, dict):
            return OutputType.STRUCTURED_OBJECT
        if isinstance(value, list):
            return OutputType.LIST
        return OutputType.SCALAR_STRING

    if is_foreign_array(text):
        return OutputType.FOREIGN_ARRAY_LITERAL
    if is_foreign_object(text):
        return OutputType.FOREIGN_OBJECT_DUMP
    return OutputType.SCALAR_STRING
