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

"""Output formatters.

Each formatter decides whether it accepts a raw output string and renders
it into display text plus a decoded value. Formatters are stateless and
never raise from ``format``: decoding failures are rendered as a notice
followed by the raw text.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..errors import DumpParseError
from .detector import OutputType, is_foreign_array, is_foreign_object, parse_json
from .dump import decode_dump
from .rendering import (
    add_line_numbers,
    collapsible_section,
    highlight,
    looks_like_php_code,
    render_value,
)

logger = logging.getLogger(__name__)

# Scalar output above either limit is worth collapsing
COLLAPSE_MIN_CHARS = 500
COLLAPSE_MIN_LINES = 10

# Scalar output with more lines than this always gets line numbers
AUTO_LINE_NUMBERS_AFTER = 3


@dataclass
class FormattingOptions:
    """Display options for rendered output.

    Attributes:
        collapsible: Wrap the rendered block in start/end marker lines
        max_depth: Deepest nesting level that is expanded
        highlight_syntax: Add ANSI color escapes
        show_line_numbers: Prefix each line with its number
    """

    collapsible: bool = False
    max_depth: int = 3
    highlight_syntax: bool = True
    show_line_numbers: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "collapsible": self.collapsible,
            "max_depth": self.max_depth,
            "highlight_syntax": self.highlight_syntax,
            "show_line_numbers": self.show_line_numbers,
        }


@dataclass(frozen=True)
class FormattedOutput:
    """Rendered output.

    Attributes:
        text: Display text
        data: Decoded value (the raw text when nothing could be decoded)
        output_type: OutputType of the decoded value
        formatter: Name of the formatter that produced it
    """

    text: str
    data: Any
    output_type: str
    formatter: str


@runtime_checkable
class Formatter(Protocol):
    """Protocol for output formatters."""

    name: str

    def can_format(self, output: str) -> bool: ...

    def format(self, output: str, options: FormattingOptions) -> FormattedOutput: ...


def decorate(text: str, options: FormattingOptions, title: str, language: str = "php") -> str:
    """Apply highlighting, line numbers and the collapsible wrapper, in that order."""
    if options.highlight_syntax:
        text = highlight(text, language)
    if options.show_line_numbers:
        text = add_line_numbers(text)
    if options.collapsible:
        text = collapsible_section(title, text)
    return text


class JsonFormatter:
    """Renders JSON objects and arrays."""

    name = "json"

    def can_format(self, output: str) -> bool:
        text = output.strip()
        if not text.startswith(("{", "[")):
            return False
        try:
            value = parse_json(text)
        except (ValueError, RecursionError):
            return False
        return isinstance(value, (dict, list))

    def format(self, output: str, options: FormattingOptions) -> FormattedOutput:
        try:
            data = parse_json(output.strip())
        except (ValueError, RecursionError) as e:
            return FormattedOutput(
                text=f"Failed to parse JSON: {e}\n\n{output}",
                data=output,
                output_type=OutputType.SCALAR_STRING,
                formatter=self.name,
            )

        output_type = OutputType.LIST if isinstance(data, list) else OutputType.STRUCTURED_OBJECT
        text = render_value(data, options.max_depth)
        return FormattedOutput(
            text=decorate(text, options, "JSON Output", language="json"),
            data=data,
            output_type=output_type,
            formatter=self.name,
        )


class ForeignArrayFormatter:
    """Renders PHP ``array(...)`` and short ``[...]`` dumps."""

    name = "array"

    def can_format(self, output: str) -> bool:
        return is_foreign_array(output)

    def format(self, output: str, options: FormattingOptions) -> FormattedOutput:
        raw = output.strip()
        try:
            data = decode_dump(raw)
        except DumpParseError as e:
            logger.warning("Could not decode array dump: %s", e)
            return FormattedOutput(
                text=f"Failed to parse array: {e}\n\n{raw}",
                data=raw,
                output_type=OutputType.FOREIGN_ARRAY_LITERAL,
                formatter=self.name,
            )

        text = render_value(data, options.max_depth)
        return FormattedOutput(
            text=decorate(text, options, "Array Output"),
            data=data,
            output_type=OutputType.FOREIGN_ARRAY_LITERAL,
            formatter=self.name,
        )


class ForeignObjectFormatter:
    """Renders ``object(Class)#N (...)`` dumps and ``__set_state`` exports."""

    name = "object"

    def can_format(self, output: str) -> bool:
        return is_foreign_object(output)

    def format(self, output: str, options: FormattingOptions) -> FormattedOutput:
        raw = output.strip()
        try:
            data = decode_dump(raw)
        except DumpParseError as e:
            logger.warning("Could not decode object dump: %s", e)
            return FormattedOutput(
                text=f"Failed to parse PHP object: {e}\n\n{raw}",
                data=raw,
                output_type=OutputType.FOREIGN_OBJECT_DUMP,
                formatter=self.name,
            )

        class_name = "Unknown"
        header = ""
        if isinstance(data, dict) and "__class" in data:
            class_name = str(data["__class"])
            object_id = data.get("__id")
            header = f"Object: {class_name}" + (f" #{object_id}" if object_id else "") + "\n"

        text = header + render_value(data, options.max_depth)
        return FormattedOutput(
            text=decorate(text, options, f"PHP Object: {class_name}"),
            data=data,
            output_type=OutputType.FOREIGN_OBJECT_DUMP,
            formatter=self.name,
        )


class ScalarFormatter:
    """Fallback for plain text; accepts everything.

    Highlighting is only applied to text that looks like PHP source. Output
    with more than three lines is numbered even when line numbers are off,
    and only long output is collapsed.
    """

    name = "scalar"

    def can_format(self, output: str) -> bool:
        return True

    def format(self, output: str, options: FormattingOptions) -> FormattedOutput:
        text = output
        lines = text.split("\n")
        is_php_code = looks_like_php_code(text)

        if options.highlight_syntax and is_php_code:
            text = highlight(text)
        if options.show_line_numbers or len(lines) > AUTO_LINE_NUMBERS_AFTER:
            text = add_line_numbers(text)
        if options.collapsible and (
            len(text) > COLLAPSE_MIN_CHARS or len(lines) > COLLAPSE_MIN_LINES
        ):
            title = "PHP Code Output" if is_php_code else "String Output"
            text = collapsible_section(title, text)

        return FormattedOutput(
            text=text,
            data=output,
            output_type=OutputType.SCALAR_STRING,
            formatter=self.name,
        )
