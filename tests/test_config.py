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

"""Tests for notebook configuration."""

import json
import os

import pytest

from tinker_notebook.config import (
    DEFAULT_CONFIG_FILENAME,
    ExecutorConfig,
    FormattingConfig,
    NotebookConfig,
    ParserConfig,
    StateConfig,
    load_config,
)
from tinker_notebook.parser import DEFAULT_FENCE_TAGS

_ENV_VARS = (
    "TINKER_NOTEBOOK_CONFIG",
    "TINKER_NOTEBOOK_FENCE_TAGS",
    "TINKER_NOTEBOOK_LANGUAGES",
    "TINKER_NOTEBOOK_STATE_DIR",
    "TINKER_NOTEBOOK_STATE_FILE",
    "TINKER_NOTEBOOK_AUTOSAVE",
    "TINKER_NOTEBOOK_COLLAPSIBLE",
    "TINKER_NOTEBOOK_MAX_DEPTH",
    "TINKER_NOTEBOOK_HIGHLIGHT",
    "TINKER_NOTEBOOK_LINE_NUMBERS",
    "TINKER_NOTEBOOK_PHP_PATH",
    "TINKER_NOTEBOOK_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and config files."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Tests for default values."""

    def test_parser(self):
        config = ParserConfig()
        assert config.fence_tags == DEFAULT_FENCE_TAGS
        assert config.languages == ["markdown"]

    def test_state(self):
        config = StateConfig()
        assert config.autosave is True
        assert config.state_path("/ws") == os.path.join(
            "/ws", ".tinker-notebook", "block-state.json"
        )

    def test_formatting(self):
        options = FormattingConfig().to_options()
        assert options.max_depth == 3
        assert options.highlight_syntax is True
        assert options.collapsible is False

    def test_executor(self):
        assert ExecutorConfig().php_path == "php"
        assert ExecutorConfig().timeout_ms == 30000

    def test_to_dict(self):
        data = NotebookConfig().to_dict()
        assert set(data) == {"parser", "state", "formatting", "executor"}
        assert data["state"]["state_file"] == "block-state.json"


class TestFromDict:
    """Tests for dictionary loading."""

    def test_camel_case_keys(self):
        config = NotebookConfig.from_dict(
            {
                "parser": {"fenceTags": {"php": "primary"}, "languages": ["markdown", "mdx"]},
                "state": {"stateDir": ".nb", "autosave": False},
                "formatting": {"maxDepth": 5, "showLineNumbers": True},
                "executor": {"phpPath": "/usr/bin/php8", "timeout": 1000},
            }
        )
        assert config.parser.fence_tags == {"php": "primary"}
        assert config.parser.languages == ["markdown", "mdx"]
        assert config.state.state_dir == ".nb"
        assert config.state.state_file == "block-state.json"
        assert config.state.autosave is False
        assert config.formatting.max_depth == 5
        assert config.formatting.show_line_numbers is True
        assert config.executor.php_path == "/usr/bin/php8"
        assert config.executor.timeout_ms == 1000

    def test_round_trip(self):
        original = NotebookConfig(formatting=FormattingConfig(collapsible=True))
        assert NotebookConfig.from_dict(original.to_dict()) == original

    def test_empty(self):
        assert NotebookConfig.from_dict({}) == NotebookConfig()


class TestFromEnv:
    """Tests for environment loading."""

    def test_values(self, monkeypatch):
        monkeypatch.setenv("TINKER_NOTEBOOK_FENCE_TAGS", "php=primary, artisan=secondary")
        monkeypatch.setenv("TINKER_NOTEBOOK_LANGUAGES", "markdown,mdx")
        monkeypatch.setenv("TINKER_NOTEBOOK_AUTOSAVE", "false")
        monkeypatch.setenv("TINKER_NOTEBOOK_MAX_DEPTH", "2")
        monkeypatch.setenv("TINKER_NOTEBOOK_HIGHLIGHT", "0")
        monkeypatch.setenv("TINKER_NOTEBOOK_TIMEOUT", "500")

        config = NotebookConfig.from_env()
        assert config.parser.fence_tags == {"php": "primary", "artisan": "secondary"}
        assert config.parser.languages == ["markdown", "mdx"]
        assert config.state.autosave is False
        assert config.formatting.max_depth == 2
        assert config.formatting.highlight_syntax is False
        assert config.executor.timeout_ms == 500

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("TINKER_NOTEBOOK_MAX_DEPTH", "deep")
        with pytest.raises(ValueError, match="TINKER_NOTEBOOK_MAX_DEPTH"):
            FormattingConfig.from_env()

    def test_bad_fence_tag(self, monkeypatch):
        monkeypatch.setenv("TINKER_NOTEBOOK_FENCE_TAGS", "php")
        with pytest.raises(ValueError, match="tag=kind"):
            ParserConfig.from_env()


class TestLoadConfig:
    """Tests for load_config() resolution."""

    def _write(self, path, data):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))
        return path

    def test_explicit_path(self, tmp_path):
        path = self._write(tmp_path / "custom.json", {"formatting": {"maxDepth": 7}})
        assert load_config(path).formatting.max_depth == 7

    def test_env_path(self, tmp_path, monkeypatch):
        path = self._write(tmp_path / "env.json", {"executor": {"phpPath": "php8"}})
        monkeypatch.setenv("TINKER_NOTEBOOK_CONFIG", str(path))
        assert load_config().executor.php_path == "php8"

    def test_cwd(self, tmp_path):
        self._write(tmp_path / DEFAULT_CONFIG_FILENAME, {"state": {"stateFile": "s.json"}})
        assert load_config().state.state_file == "s.json"

    def test_falls_back_to_env(self, monkeypatch):
        monkeypatch.setenv("TINKER_NOTEBOOK_PHP_PATH", "/opt/php")
        assert load_config().executor.php_path == "/opt/php"

    def test_defaults(self):
        assert load_config() == NotebookConfig()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{nope")
        with pytest.raises(ValueError):
            load_config(path)
