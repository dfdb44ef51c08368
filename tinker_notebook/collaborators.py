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

"""Protocols for the host-provided collaborators.

The engine never spawns processes or inspects projects itself. A host
supplies implementations of these protocols; the file system capability
lives in :mod:`tinker_notebook.storage`.
"""

from typing import Any, Protocol, runtime_checkable

from .entities import ExecutionResult


@runtime_checkable
class ProcessExecutor(Protocol):
    """Runs code through an external interpreter.

    ``options`` carries at least ``code`` (the fragment content with
    references substituted) and ``kind`` (the fragment kind). Timeouts and
    cancellation are the executor's concern.
    """

    def run(
        self,
        command: str,
        args: list[str],
        options: dict[str, Any] | None = None,
    ) -> ExecutionResult: ...


@runtime_checkable
class ProjectLocator(Protocol):
    """Finds the framework project that owns a document path."""

    def locate(self, path: str) -> str | None: ...
