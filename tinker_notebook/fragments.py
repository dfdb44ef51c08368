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

"""Code fragments found in a notebook document.

A fragment is one fenced region of executable text. Fragments are created
fresh on every parse and never mutated afterwards; identifier assignment
produces new instances.
"""

from dataclasses import dataclass


class FragmentKind:
    """Fragment kind constants."""

    # Plain interpreter block (```php)
    PRIMARY = "primary"

    # Framework-aware block (```tinker)
    SECONDARY = "secondary"

    ALL = (PRIMARY, SECONDARY)

    @classmethod
    def is_valid(cls, kind: str) -> bool:
        """Check if kind is one of the known fragment kinds."""
        return kind in cls.ALL


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position in a document."""

    line: int
    character: int


@dataclass(frozen=True)
class SourceRange:
    """Half-open range between two positions."""

    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        """Check if position lies within this range (inclusive bounds)."""
        return self.start <= position <= self.end


@dataclass(frozen=True)
class Fragment:
    """A fenced code fragment.

    Attributes:
        kind: FragmentKind of the fence
        tag: The literal fence tag (e.g. "php")
        content: Text between the fences, trailing newline included
        range: Range of the whole fenced region, backticks included
        content_range: Range of just the inner text
        start_offset: Character offset where the content begins
        end_offset: Character offset where the content ends
        explicit_name: Name given with the ``:name`` suffix, if any
        id: Identifier assigned by IdentifierRegistry ("" until assigned)
    """

    kind: str
    tag: str
    content: str
    range: SourceRange
    content_range: SourceRange
    start_offset: int
    end_offset: int
    explicit_name: str | None = None
    id: str = ""

    @property
    def start_line(self) -> int:
        """Line where the content starts."""
        return self.content_range.start.line

    @property
    def end_line(self) -> int:
        """Line where the content ends."""
        return self.content_range.end.line

    @property
    def is_assigned(self) -> bool:
        return bool(self.id)

    def matches(self, fragment_id: str) -> bool:
        """Check if fragment_id names this fragment by id or explicit name."""
        return fragment_id == self.id or (
            self.explicit_name is not None and fragment_id == self.explicit_name
        )
