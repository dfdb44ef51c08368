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

"""Result references between fragments.

A fragment refers to another fragment's stored result with
``$tinker_outputs.<id>``. Before a run, references are checked for cycles
and then replaced by PHP literals built from the stored results.

Cycle detection follows each referenced id's *last stored output text*,
not the referenced fragment's source. Cycles that exist only in source
and have never been executed are therefore not detected.
"""

from __future__ import annotations

import logging
import re

from .entities import ExecutionResult
from .errors import CircularReferenceError
from .store import ExecutionStateStore

logger = logging.getLogger(__name__)

REFERENCE_MARKER = "$tinker_outputs"

REFERENCE_REGEX = re.compile(re.escape(REFERENCE_MARKER) + r"\.([\w-]+)")

_NUMERIC_REGEX = re.compile(r"^-?\d+(\.\d+)?$")


def to_php_literal(result: ExecutionResult) -> str:
    """Convert a stored result into a PHP literal for substitution.

    Failed results (error text or a non-zero exit code) and blank output
    become ``null``; integers, decimals and booleans are passed through;
    anything else (arrays and object dumps included) becomes a single-quoted
    string. Composite values are not rebuilt.
    """
    if result.failed:
        return "null"

    output = result.output.strip()
    if not output:
        return "null"

    if _NUMERIC_REGEX.match(output):
        return output

    lowered = output.lower()
    if lowered in ("true", "false"):
        return lowered

    escaped = output.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class ReferenceResolver:
    """Detects and substitutes ``$tinker_outputs`` references.

    Args:
        store: The state store holding the results being referenced
    """

    def __init__(self, store: ExecutionStateStore) -> None:
        self._store = store

    def detect_references(self, content: str) -> list[str]:
        """Return referenced ids in order of first appearance, without duplicates."""
        references: list[str] = []
        for match in REFERENCE_REGEX.finditer(content):
            block_id = match.group(1)
            if block_id not in references:
                references.append(block_id)
        return references

    def find_cycle(self, block_id: str, content: str) -> list[str] | None:
        """Find a reference path from content back to block_id.

        Returns:
            The ids walked to reach block_id again (ending with block_id),
            or None if there is no cycle
        """
        references = self.detect_references(content)
        if block_id in references:
            return [block_id]
        return self._walk(block_id, references, set(), [])

    def _walk(
        self,
        origin: str,
        referenced: list[str],
        visited: set[str],
        path: list[str],
    ) -> list[str] | None:
        for ref_id in referenced:
            if ref_id in visited:
                continue
            visited.add(ref_id)

            if ref_id == origin:
                return [*path, ref_id]

            result = self._store.get_result(ref_id)
            if result is None:
                continue
            nested = self.detect_references(result.output or "")
            if nested:
                found = self._walk(origin, nested, visited, [*path, ref_id])
                if found is not None:
                    return found
        return None

    def has_circular_references(self, block_id: str, content: str) -> bool:
        """Check if content refers back to block_id directly or transitively."""
        return self.find_cycle(block_id, content) is not None

    def check(self, block_id: str, content: str) -> None:
        """Raise if content would create a circular reference.

        Raises:
            CircularReferenceError: With the offending id and cycle path
        """
        path = self.find_cycle(block_id, content)
        if path is not None:
            logger.info("Blocking run of '%s': circular reference via %s", block_id, path)
            raise CircularReferenceError(fragment_id=block_id, path=path)

    def process_content(self, content: str) -> str:
        """Replace every reference that has a stored result.

        References without a stored result are left unchanged.
        """
        if REFERENCE_MARKER not in content:
            return content

        def _substitute(match: re.Match[str]) -> str:
            result = self._store.get_result(match.group(1))
            if result is None:
                logger.debug("No stored result for reference '%s'", match.group(0))
                return match.group(0)
            return to_php_literal(result)

        return REFERENCE_REGEX.sub(_substitute, content)
