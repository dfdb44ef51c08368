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

"""Root pytest configuration for tinker notebook tests."""

import pytest

from tinker_notebook.entities import ExecutionResult
from tinker_notebook.storage import MemoryFileSystem
from tinker_notebook.store import ExecutionStateStore

STATE_FILE = "/workspace/.tinker-notebook/block-state.json"


class RecordingExecutor:
    """ProcessExecutor that returns canned results and records calls."""

    def __init__(self, result: ExecutionResult | None = None, error: Exception | None = None):
        self.result = result if result is not None else ExecutionResult(output="ok")
        self.error = error
        self.calls: list[tuple[str, list[str], dict]] = []

    def run(self, command, args, options=None):
        self.calls.append((command, args, options or {}))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def memory_fs():
    """An empty in-memory file system with a /workspace directory."""
    fs = MemoryFileSystem()
    fs.makedirs("/workspace")
    return fs


@pytest.fixture
def store(memory_fs):
    """A store persisting to the in-memory file system."""
    return ExecutionStateStore(state_file=STATE_FILE, file_system=memory_fs)


@pytest.fixture
def memory_store():
    """A store without persistence."""
    return ExecutionStateStore()


@pytest.fixture
def executor():
    return RecordingExecutor()
