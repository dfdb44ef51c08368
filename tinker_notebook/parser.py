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

"""Fragment detection in Markdown documents.

Fences are matched with a single linear regular-expression scan. A fence
whose content itself contains a triple backtick terminates early; nested
fences are not supported.
"""

from __future__ import annotations

import bisect
import logging
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from .fragments import Fragment, FragmentKind, Position, SourceRange
from .identifiers import IdentifierRegistry

if TYPE_CHECKING:
    from .config import ParserConfig

logger = logging.getLogger(__name__)

# Fence tag -> fragment kind
DEFAULT_FENCE_TAGS: dict[str, str] = {
    "php": FragmentKind.PRIMARY,
    "tinker": FragmentKind.SECONDARY,
    FragmentKind.PRIMARY: FragmentKind.PRIMARY,
    FragmentKind.SECONDARY: FragmentKind.SECONDARY,
}

DEFAULT_LANGUAGES: tuple[str, ...] = ("markdown",)

NAME_PATTERN = r"[A-Za-z0-9_-]+"


def _build_fence_regex(tags: Sequence[str]) -> re.Pattern[str]:
    # Longest tags first so that "php" never shadows a longer tag sharing its prefix
    alternatives = "|".join(re.escape(tag) for tag in sorted(tags, key=len, reverse=True))
    return re.compile(
        rf"```(?P<tag>{alternatives})(?::(?P<name>{NAME_PATTERN}))?[ \t]*\r?\n"
        r"(?P<content>[\s\S]*?)```"
    )


class _LineIndex:
    """Maps character offsets to zero-based line/character positions."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        for match in re.finditer("\n", text):
            self._starts.append(match.end())

    def position_at(self, offset: int) -> Position:
        line = bisect.bisect_right(self._starts, offset) - 1
        return Position(line=line, character=offset - self._starts[line])


class FragmentParser:
    """Finds fenced code fragments in prose documents.

    Args:
        fence_tags: Mapping of accepted fence tags to fragment kinds
        languages: Document language ids that are scanned; any other
            language yields no fragments
    """

    def __init__(
        self,
        fence_tags: Mapping[str, str] | None = None,
        languages: Sequence[str] | None = None,
    ) -> None:
        tags = dict(fence_tags) if fence_tags is not None else dict(DEFAULT_FENCE_TAGS)
        for tag, kind in tags.items():
            if not FragmentKind.is_valid(kind):
                raise ValueError(f"Unknown fragment kind '{kind}' for fence tag '{tag}'")
        if not tags:
            raise ValueError("At least one fence tag is required")
        self._fence_tags = tags
        self._languages = tuple(languages) if languages is not None else DEFAULT_LANGUAGES
        self._regex = _build_fence_regex(list(tags))

    @classmethod
    def from_config(cls, config: ParserConfig) -> FragmentParser:
        """Create a parser from a ParserConfig."""
        return cls(fence_tags=config.fence_tags, languages=config.languages)

    @property
    def fence_tags(self) -> dict[str, str]:
        return dict(self._fence_tags)

    def accepts_language(self, language_id: str) -> bool:
        return language_id in self._languages

    def parse(self, text: str, language_id: str = "markdown") -> list[Fragment]:
        """Find all fragments in a document, in source order.

        Identifiers are left empty; see :class:`IdentifierRegistry`.

        Args:
            text: Document text
            language_id: Language of the document (e.g. "markdown")

        Returns:
            Fragments ordered by position; empty when nothing matches or
            the language is not scanned
        """
        if not text or not self.accepts_language(language_id):
            return []

        index = _LineIndex(text)
        fragments: list[Fragment] = []

        for match in self._regex.finditer(text):
            tag = match.group("tag")
            content_start = match.start("content")
            content_end = match.end("content")
            fragments.append(
                Fragment(
                    kind=self._fence_tags[tag],
                    tag=tag,
                    content=match.group("content"),
                    range=SourceRange(
                        start=index.position_at(match.start()),
                        end=index.position_at(match.end()),
                    ),
                    content_range=SourceRange(
                        start=index.position_at(content_start),
                        end=index.position_at(content_end),
                    ),
                    start_offset=content_start,
                    end_offset=content_end,
                    explicit_name=match.group("name"),
                )
            )

        logger.debug("Found %d fragment(s) in %d characters", len(fragments), len(text))
        return fragments

    def parse_with_ids(
        self,
        text: str,
        language_id: str = "markdown",
        registry: IdentifierRegistry | None = None,
    ) -> list[Fragment]:
        """Parse a document and assign identifiers in a fresh registry pass."""
        registry = registry if registry is not None else IdentifierRegistry()
        return registry.assign_all(self.parse(text, language_id))

    def find_at(
        self,
        text: str,
        position: Position,
        language_id: str = "markdown",
    ) -> Fragment | None:
        """Return the identified fragment whose fence contains position."""
        for fragment in self.parse_with_ids(text, language_id):
            if fragment.range.contains(position):
                return fragment
        return None

    def find_by_id(
        self,
        text: str,
        fragment_id: str,
        language_id: str = "markdown",
    ) -> Fragment | None:
        """Return the identified fragment named by id or explicit name."""
        for fragment in self.parse_with_ids(text, language_id):
            if fragment.matches(fragment_id):
                return fragment
        return None
