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

"""Fragment identifier assignment.

Identifiers are content-addressed: an automatic id is derived from the
fragment content and its starting line. Editing a fragment (or moving it to
another line) therefore changes its id and orphans any state stored under
the previous one. This is intentional and must not be "fixed" silently.
"""

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import replace

from .fragments import Fragment

logger = logging.getLogger(__name__)

DIGEST_LENGTH = 8


def content_digest(content: str, start_line: int) -> str:
    """Return the short hex digest used for automatic identifiers."""
    digest = hashlib.md5((content + str(start_line)).encode("utf-8")).hexdigest()
    return digest[:DIGEST_LENGTH]


class IdentifierRegistry:
    """Assigns unique identifiers within one parse pass.

    The set of used identifiers is scoped to the registry instance and is
    cleared by :meth:`reset` at the start of every pass.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()

    def reset(self) -> None:
        """Forget all identifiers used in the current pass."""
        self._used.clear()

    def is_used(self, fragment_id: str) -> bool:
        return fragment_id in self._used

    def register(self, fragment_id: str) -> None:
        """Mark an identifier as used."""
        self._used.add(fragment_id)

    def assign(self, fragment: Fragment, explicit_name: str | None = None) -> str:
        """Pick an identifier for a fragment and mark it used.

        An explicit name is used verbatim unless it was already claimed in
        this pass. Otherwise ``<kind>-<digest>`` is used, with a ``-1``,
        ``-2``, ... suffix appended until it is unique.

        Args:
            fragment: The fragment to identify
            explicit_name: Name from the fence's ``:name`` suffix

        Returns:
            The assigned identifier
        """
        if explicit_name and explicit_name not in self._used:
            self._used.add(explicit_name)
            return explicit_name

        if explicit_name:
            logger.debug(
                "Explicit name '%s' already used, generating an identifier", explicit_name
            )

        base = f"{fragment.kind}-{content_digest(fragment.content, fragment.start_line)}"
        candidate = base
        counter = 1
        while candidate in self._used:
            candidate = f"{base}-{counter}"
            counter += 1

        if candidate != base:
            logger.debug("Identifier collision on '%s', using '%s'", base, candidate)

        self._used.add(candidate)
        return candidate

    def assign_all(self, fragments: Iterable[Fragment]) -> list[Fragment]:
        """Start a new pass and return identified copies of fragments."""
        self.reset()
        return [
            replace(fragment, id=self.assign(fragment, fragment.explicit_name))
            for fragment in fragments
        ]
