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

"""Notebook configuration management.

Provides configuration dataclasses for the parser, state persistence,
output formatting and the host's executor, and a loader that reads from
config files or environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .formatting.formatters import FormattingOptions
from .parser import DEFAULT_FENCE_TAGS, DEFAULT_LANGUAGES

_TRUE_VALUES = ("true", "1", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'") from None


@dataclass
class ParserConfig:
    """Fragment detection configuration.

    Attributes:
        fence_tags: Accepted fence tags mapped to fragment kinds
        languages: Document language ids that are scanned
    """

    fence_tags: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FENCE_TAGS))
    languages: list[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParserConfig:
        """Create from a dictionary.

        Keys may use either snake_case (``fence_tags``) or camelCase
        (``fenceTags``).
        """
        defaults = cls()
        return cls(
            fence_tags=dict(data.get("fence_tags", data.get("fenceTags", defaults.fence_tags))),
            languages=list(data.get("languages", defaults.languages)),
        )

    @classmethod
    def from_env(cls) -> ParserConfig:
        """Create from environment variables.

        Recognised variables (all optional):
            TINKER_NOTEBOOK_FENCE_TAGS  (comma-separated ``tag=kind`` pairs)
            TINKER_NOTEBOOK_LANGUAGES  (comma-separated language ids)
        """
        defaults = cls()
        tags_str = os.environ.get("TINKER_NOTEBOOK_FENCE_TAGS", "")
        fence_tags = defaults.fence_tags
        if tags_str:
            fence_tags = {}
            for pair in tags_str.split(","):
                if not pair.strip():
                    continue
                tag, sep, kind = pair.partition("=")
                if not sep:
                    raise ValueError(f"TINKER_NOTEBOOK_FENCE_TAGS entry '{pair}' is not tag=kind")
                fence_tags[tag.strip()] = kind.strip()

        languages_str = os.environ.get("TINKER_NOTEBOOK_LANGUAGES", "")
        languages = (
            [lang.strip() for lang in languages_str.split(",") if lang.strip()]
            if languages_str
            else defaults.languages
        )
        return cls(fence_tags=fence_tags, languages=languages)


@dataclass
class StateConfig:
    """Block state persistence configuration.

    Attributes:
        state_dir: Directory under the workspace holding the state file
        state_file: Name of the state document
        autosave: Save after every state change
    """

    state_dir: str = ".tinker-notebook"
    state_file: str = "block-state.json"
    autosave: bool = True

    def state_path(self, workspace: str) -> str:
        """Full path of the state document for a workspace."""
        return os.path.join(workspace, self.state_dir, self.state_file)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateConfig:
        """Create from a dictionary."""
        return cls(
            state_dir=data.get("state_dir", data.get("stateDir", cls.state_dir)),
            state_file=data.get("state_file", data.get("stateFile", cls.state_file)),
            autosave=bool(data.get("autosave", cls.autosave)),
        )

    @classmethod
    def from_env(cls) -> StateConfig:
        """Create from environment variables.

        Recognised variables (all optional):
            TINKER_NOTEBOOK_STATE_DIR
            TINKER_NOTEBOOK_STATE_FILE
            TINKER_NOTEBOOK_AUTOSAVE  ("true"/"1" to enable)
        """
        defaults = cls()
        return cls(
            state_dir=os.environ.get("TINKER_NOTEBOOK_STATE_DIR", defaults.state_dir),
            state_file=os.environ.get("TINKER_NOTEBOOK_STATE_FILE", defaults.state_file),
            autosave=_env_bool("TINKER_NOTEBOOK_AUTOSAVE", defaults.autosave),
        )


@dataclass
class FormattingConfig:
    """Default output formatting.

    Attributes:
        collapsible: Wrap rendered output in start/end marker lines
        max_depth: Deepest nesting level that is expanded
        highlight_syntax: Add ANSI color escapes
        show_line_numbers: Number every rendered line
    """

    collapsible: bool = False
    max_depth: int = 3
    highlight_syntax: bool = True
    show_line_numbers: bool = False

    def to_options(self) -> FormattingOptions:
        return FormattingOptions(
            collapsible=self.collapsible,
            max_depth=self.max_depth,
            highlight_syntax=self.highlight_syntax,
            show_line_numbers=self.show_line_numbers,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormattingConfig:
        """Create from a dictionary.

        Keys may use either snake_case (``max_depth``) or camelCase
        (``maxDepth``).
        """
        return cls(
            collapsible=bool(data.get("collapsible", cls.collapsible)),
            max_depth=int(data.get("max_depth", data.get("maxDepth", cls.max_depth))),
            highlight_syntax=bool(
                data.get("highlight_syntax", data.get("highlightSyntax", cls.highlight_syntax))
            ),
            show_line_numbers=bool(
                data.get("show_line_numbers", data.get("showLineNumbers", cls.show_line_numbers))
            ),
        )

    @classmethod
    def from_env(cls) -> FormattingConfig:
        """Create from environment variables.

        Recognised variables (all optional):
            TINKER_NOTEBOOK_COLLAPSIBLE
            TINKER_NOTEBOOK_MAX_DEPTH
            TINKER_NOTEBOOK_HIGHLIGHT
            TINKER_NOTEBOOK_LINE_NUMBERS
        """
        defaults = cls()
        return cls(
            collapsible=_env_bool("TINKER_NOTEBOOK_COLLAPSIBLE", defaults.collapsible),
            max_depth=_env_int("TINKER_NOTEBOOK_MAX_DEPTH", defaults.max_depth),
            highlight_syntax=_env_bool("TINKER_NOTEBOOK_HIGHLIGHT", defaults.highlight_syntax),
            show_line_numbers=_env_bool(
                "TINKER_NOTEBOOK_LINE_NUMBERS", defaults.show_line_numbers
            ),
        )


@dataclass
class ExecutorConfig:
    """Settings a host passes to its process executor.

    Attributes:
        php_path: Interpreter command for primary fragments
        timeout_ms: Execution timeout enforced by the executor
    """

    php_path: str = "php"
    timeout_ms: int = 30000

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutorConfig:
        """Create from a dictionary."""
        return cls(
            php_path=data.get("php_path", data.get("phpPath", cls.php_path)),
            timeout_ms=int(data.get("timeout_ms", data.get("timeout", cls.timeout_ms))),
        )

    @classmethod
    def from_env(cls) -> ExecutorConfig:
        """Create from environment variables.

        Recognised variables (all optional):
            TINKER_NOTEBOOK_PHP_PATH
            TINKER_NOTEBOOK_TIMEOUT  (milliseconds)
        """
        defaults = cls()
        return cls(
            php_path=os.environ.get("TINKER_NOTEBOOK_PHP_PATH", defaults.php_path),
            timeout_ms=_env_int("TINKER_NOTEBOOK_TIMEOUT", defaults.timeout_ms),
        )


@dataclass
class NotebookConfig:
    """Top-level notebook configuration."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    state: StateConfig = field(default_factory=StateConfig)
    formatting: FormattingConfig = field(default_factory=FormattingConfig)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return {
            "parser": self.parser.to_dict(),
            "state": self.state.to_dict(),
            "formatting": self.formatting.to_dict(),
            "executor": self.executor.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotebookConfig:
        """Create from a dictionary (e.g. parsed JSON)."""
        return cls(
            parser=ParserConfig.from_dict(data.get("parser", {})),
            state=StateConfig.from_dict(data.get("state", {})),
            formatting=FormattingConfig.from_dict(data.get("formatting", {})),
            executor=ExecutorConfig.from_dict(data.get("executor", {})),
        )

    @classmethod
    def from_env(cls) -> NotebookConfig:
        """Create from environment variables."""
        return cls(
            parser=ParserConfig.from_env(),
            state=StateConfig.from_env(),
            formatting=FormattingConfig.from_env(),
            executor=ExecutorConfig.from_env(),
        )


# -- Config file loading -----------------------------------------------------

DEFAULT_CONFIG_FILENAME = "tinker-notebook.config.json"

_SEARCH_PATHS = [
    Path.cwd,  # current directory
    lambda: Path.home() / ".tinker-notebook",  # user home
]


def _find_config_file(filename: str = DEFAULT_CONFIG_FILENAME) -> Path | None:
    """Search well-known locations for a config file.

    Search order:
        1. ``$TINKER_NOTEBOOK_CONFIG`` environment variable (explicit path)
        2. Current working directory
        3. ``~/.tinker-notebook/``

    Returns:
        Path to the first config file found, or ``None``.
    """
    explicit = os.environ.get("TINKER_NOTEBOOK_CONFIG")
    if explicit:
        path = Path(explicit)
        if path.is_file():
            return path
        return None

    for path_fn in _SEARCH_PATHS:
        candidate = path_fn() / filename
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | Path | None = None) -> NotebookConfig:
    """Load notebook configuration.

    Resolution order:
        1. Explicit *path* argument
        2. Config file found via :func:`_find_config_file`
        3. Environment variables (``TINKER_NOTEBOOK_*``)
        4. Built-in defaults

    Args:
        path: Optional explicit path to a JSON config file.

    Returns:
        Populated :class:`NotebookConfig` instance.
    """
    config_path: Path | None = Path(path) if path else _find_config_file()

    if config_path and config_path.is_file():
        data = json.loads(config_path.read_text())
        return NotebookConfig.from_dict(data)

    return NotebookConfig.from_env()
