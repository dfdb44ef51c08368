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

"""Executable code fragments in Markdown notebooks."""

from .collaborators import ProcessExecutor, ProjectLocator
from .config import (
    ExecutorConfig,
    FormattingConfig,
    NotebookConfig,
    ParserConfig,
    StateConfig,
    load_config,
)
from .entities import ExecutionResult, StateEntry
from .errors import CircularReferenceError, DumpParseError, NotebookError, PersistenceError
from .formatting import (
    FormattedOutput,
    Formatter,
    FormatterChain,
    FormattingOptions,
    OutputType,
    classify,
)
from .fragments import Fragment, FragmentKind, Position, SourceRange
from .identifiers import IdentifierRegistry
from .parser import FragmentParser
from .references import ReferenceResolver, to_php_literal
from .session import NotebookSession
from .states import BlockState
from .storage import FileSystem, LocalFileSystem, MemoryFileSystem
from .store import ExecutionStateStore

__version__ = "0.3.0"

__all__ = [
    # Fragments
    "Fragment",
    "FragmentKind",
    "Position",
    "SourceRange",
    "FragmentParser",
    "IdentifierRegistry",
    # State
    "BlockState",
    "StateEntry",
    "ExecutionResult",
    "ExecutionStateStore",
    # Storage
    "FileSystem",
    "LocalFileSystem",
    "MemoryFileSystem",
    # References
    "ReferenceResolver",
    "to_php_literal",
    # Formatting
    "OutputType",
    "classify",
    "FormattingOptions",
    "FormattedOutput",
    "Formatter",
    "FormatterChain",
    # Session
    "NotebookSession",
    "ProcessExecutor",
    "ProjectLocator",
    # Configuration
    "NotebookConfig",
    "ParserConfig",
    "StateConfig",
    "FormattingConfig",
    "ExecutorConfig",
    "load_config",
    # Errors
    "NotebookError",
    "CircularReferenceError",
    "PersistenceError",
    "DumpParseError",
]
