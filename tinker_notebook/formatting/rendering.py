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

"""Text rendering helpers shared by the formatters.

Rendering is plain text meant for a terminal or an output panel: nested
values are pretty-printed with 2-space indentation, and highlighting uses
ANSI color escapes.
"""

import json
import re
from typing import Any

INDENT = "  "
ELLIPSIS = "..."

ANSI_RESET = "\x1b[0m"
ANSI_STRING = "\x1b[32m"
ANSI_NUMBER = "\x1b[33m"
ANSI_KEYWORD = "\x1b[34m"

PHP_KEYWORDS = (
    "array", "object", "string", "int", "float", "bool", "null", "true", "false",
    "function", "class", "public", "private", "protected", "static", "const",
    "return", "if", "else", "foreach", "for", "while", "do", "switch", "case",
)

JSON_KEYWORDS = ("null", "true", "false")

# Words counted by looks_like_php_code
_PHP_CODE_WORDS = (
    "function", "class", "public", "private", "protected",
    "if", "else", "elseif", "for", "foreach", "while",
    "return", "new", "echo", "print", "extends", "implements",
)

_PHP_CODE_REGEX = re.compile(r"\b(?:" + "|".join(_PHP_CODE_WORDS) + r")\b")

_STRING_PATTERN = r"""'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*\""""
_NUMBER_PATTERN = r"\b\d+(?:\.\d+)?\b"

_highlight_regexes: dict[str, re.Pattern[str]] = {}


def _highlight_regex(language: str) -> re.Pattern[str]:
    regex = _highlight_regexes.get(language)
    if regex is None:
        keywords = PHP_KEYWORDS if language == "php" else JSON_KEYWORDS
        regex = re.compile(
            rf"(?P<string>{_STRING_PATTERN})"
            rf"|(?P<number>{_NUMBER_PATTERN})"
            rf"|(?P<keyword>\b(?:{'|'.join(keywords)})\b)"
        )
        _highlight_regexes[language] = regex
    return regex


def render_scalar(value: Any) -> str:
    """Render a leaf value: strings quoted, numbers verbatim, true/false/null."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _render_key(key: Any) -> str:
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    return json.dumps(str(key), ensure_ascii=False)


def render_value(value: Any, max_depth: int = 3, indent: int = 0, depth: int = 0) -> str:
    """Pretty-print a decoded value.

    Lists render one ``i: value`` line per item inside ``[ ]``; mappings
    render ``"key": value`` lines inside ``{ }``. Anything nested deeper than
    max_depth is replaced by ``...``.

    Args:
        value: Decoded value (dict, list, or scalar)
        max_depth: Deepest nesting level that is still expanded
        indent: Indentation (in spaces) of the line this value starts on
        depth: Current nesting level

    Returns:
        Rendered text; the first line carries no leading indentation
    """
    if depth > max_depth:
        return ELLIPSIS

    pad = " " * indent
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [
            f"{pad}{INDENT}{i}: {render_value(item, max_depth, indent + 2, depth + 1)}"
            for i, item in enumerate(value)
        ]
        return "[\n" + ",\n".join(items) + f"\n{pad}]"

    if isinstance(value, dict):
        if not value:
            return "{}"
        items = [
            f"{pad}{INDENT}{_render_key(key)}: "
            f"{render_value(item, max_depth, indent + 2, depth + 1)}"
            for key, item in value.items()
        ]
        return "{\n" + ",\n".join(items) + f"\n{pad}}}"

    return render_scalar(value)


def highlight(text: str, language: str = "php") -> str:
    """Wrap strings, numbers and keywords in ANSI color escapes.

    Tokens are found in a single pass, so escapes inserted for one token
    are never re-scanned as another.
    """
    colors = {"string": ANSI_STRING, "number": ANSI_NUMBER, "keyword": ANSI_KEYWORD}

    def _wrap(match: re.Match[str]) -> str:
        return f"{colors[match.lastgroup]}{match.group(0)}{ANSI_RESET}"

    return _highlight_regex(language).sub(_wrap, text)


def strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def add_line_numbers(text: str) -> str:
    """Prefix every line with a right-aligned number and ``|``."""
    lines = text.split("\n")
    width = len(str(len(lines)))
    return "\n".join(f"{n:>{width}} | {line}" for n, line in enumerate(lines, start=1))


def collapsible_section(title: str, content: str) -> str:
    return f"▼ {title}\n{content}\n▲ End of {title}"


def looks_like_php_code(text: str) -> bool:
    """Heuristically decide if text is PHP source rather than plain output.

    Needs either an opening ``<?php`` tag or more than two PHP keywords,
    plus some PHP punctuation (braces, semicolons or arrows).
    """
    keyword_count = len(_PHP_CODE_REGEX.findall(text))
    has_braces = "{" in text and "}" in text
    has_semicolons = ";" in text
    has_arrows = "->" in text or "=>" in text
    return (keyword_count > 2 or "<?php" in text) and (
        has_braces or has_semicolons or has_arrows
    )
