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

"""File system capability used for block state persistence.

The store receives a backend through its constructor instead of reaching
for a module-level default, so tests and multiple workspaces can each use
their own.
"""

from __future__ import annotations

import os
import posixpath
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the file operations the engine needs."""

    def exists(self, path: str) -> bool: ...
    def read_text(self, path: str) -> str: ...
    def write_text(self, path: str, data: str) -> None: ...
    def makedirs(self, path: str, exist_ok: bool = True) -> None: ...
    def dirname(self, path: str) -> str: ...


class LocalFileSystem:
    """File system backend for the local disk."""

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def read_text(self, path: str) -> str:
        with open(path, encoding=self._encoding) as f:
            return f.read()

    def write_text(self, path: str, data: str) -> None:
        with open(path, "w", encoding=self._encoding) as f:
            f.write(data)

    def makedirs(self, path: str, exist_ok: bool = True) -> None:
        os.makedirs(path, exist_ok=exist_ok)

    def dirname(self, path: str) -> str:
        return os.path.dirname(path)


class MemoryFileSystem:
    """Dictionary-backed file system.

    Used by tests and by hosts that keep notebook state in memory only.
    Paths are treated as POSIX strings; directories are tracked so that
    writes into a missing directory fail like they would on disk.
    """

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, str] = dict(files or {})
        self.directories: set[str] = {"", "/"}
        for path in self.files:
            self._add_parents(path)

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in self.directories:
            self.directories.add(parent)
            parent = posixpath.dirname(parent)

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.directories

    def read_text(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def write_text(self, path: str, data: str) -> None:
        if posixpath.dirname(path) not in self.directories:
            raise FileNotFoundError(f"No such directory: {posixpath.dirname(path)}")
        self.files[path] = data

    def makedirs(self, path: str, exist_ok: bool = True) -> None:
        if path in self.directories and not exist_ok:
            raise FileExistsError(path)
        self.directories.add(path)
        self._add_parents(path)

    def dirname(self, path: str) -> str:
        return posixpath.dirname(path)
