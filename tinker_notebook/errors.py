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

"""Notebook engine error types."""

from dataclasses import dataclass, field


class NotebookError(Exception):
    """Base class for all notebook engine errors."""

    pass


@dataclass
class CircularReferenceError(NotebookError):
    """Raised before execution when a fragment's references form a cycle."""

    fragment_id: str
    path: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        if self.path:
            cycle = " -> ".join([self.fragment_id, *self.path])
            return f"Circular reference detected in block '{self.fragment_id}': {cycle}"
        return f"Circular reference detected in block '{self.fragment_id}'"


@dataclass
class PersistenceError(NotebookError):
    """Describes a failed save or load of the block state document.

    The store returns this instead of raising it; in-memory state remains
    authoritative for the rest of the process lifetime.
    """

    operation: str
    path: str | None
    message: str

    def __str__(self) -> str:
        target = f" ({self.path})" if self.path else ""
        return f"Failed to {self.operation} block state{target}: {self.message}"


class DumpParseError(NotebookError):
    """Foreign dump syntax could not be decoded."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ):
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f" at line {line}"
            if column is not None:
                location += f", column {column}"
        super().__init__(f"{message}{location}")
