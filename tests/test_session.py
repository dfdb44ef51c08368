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

"""Tests for the notebook session facade."""

import json

import pytest

from tinker_notebook.collaborators import ProcessExecutor
from tinker_notebook.config import NotebookConfig
from tinker_notebook.entities import ExecutionResult
from tinker_notebook.errors import CircularReferenceError
from tinker_notebook.formatting.formatters import FormattingOptions
from tinker_notebook.fragments import FragmentKind
from tinker_notebook.identifiers import content_digest
from tinker_notebook.session import NotebookSession
from tinker_notebook.states import BlockState

STATE_FILE = "/workspace/.tinker-notebook/block-state.json"


class FixedLocator:
    def __init__(self, project):
        self.project = project
        self.paths = []

    def locate(self, path):
        self.paths.append(path)
        return self.project


@pytest.fixture
def session(memory_store):
    return NotebookSession(store=memory_store)


def _single(session, text):
    fragments = session.parse(text)
    assert len(fragments) == 1
    return fragments[0]


class TestParse:
    """Tests for parsing through the session."""

    def test_single_fragment(self, session):
        fragment = _single(session, 'Intro\n\n```php\necho "hi";\n```\n')
        assert fragment.kind == FragmentKind.PRIMARY
        assert fragment.content == 'echo "hi";\n'
        assert fragment.is_assigned
        assert fragment.id == f"primary-{content_digest(fragment.content, fragment.start_line)}"

    def test_duplicate_explicit_name(self, session):
        text = "```php:x\n1\n```\n\n```php:x\n2\n```\n"
        first, second = session.parse(text)
        assert first.id == "x"
        assert second.id != "x"
        assert second.id.startswith("primary-")

    def test_ids_stable_across_parses(self, session):
        text = "```php\n1\n```\n```tinker\n2\n```\n"
        assert [f.id for f in session.parse(text)] == [f.id for f in session.parse(text)]

    def test_other_language(self, session):
        assert session.parse("```php\n1\n```", "plaintext") == []


class TestRun:
    """Tests for prepare_run, complete_run and run."""

    def test_executor_protocol(self, executor):
        assert isinstance(executor, ProcessExecutor)

    def test_success(self, session, executor):
        fragment = _single(session, "```php\necho 1;\n```\n")
        result = session.run(fragment, executor, "php", ["-r"])

        assert result.output == "ok"
        command, args, options = executor.calls[0]
        assert command == "php"
        assert args == ["-r"]
        assert options == {"code": "echo 1;\n", "kind": FragmentKind.PRIMARY}

        entry = session.get_state(fragment.id)
        assert entry.state == BlockState.SUCCESS
        assert entry.last_execution_time is not None
        assert session.get_result(fragment.id) == result

    def test_failed_result_marks_error(self, session, executor):
        fragment = _single(session, "```php\nboom();\n```\n")
        executor.result = ExecutionResult(output="", error="Fatal", exit_code=255)
        session.run(fragment, executor, "php")
        assert session.get_state(fragment.id).state == BlockState.ERROR
        assert session.get_result(fragment.id).error == "Fatal"

    def test_executor_exception_recorded_and_raised(self, session, executor):
        fragment = _single(session, "```php\n1;\n```\n")
        executor.error = OSError("php not found")
        with pytest.raises(OSError):
            session.run(fragment, executor, "php")
        assert session.get_state(fragment.id).state == BlockState.ERROR
        assert session.get_result(fragment.id).error == "php not found"

    def test_prepare_marks_executing(self, session):
        fragment = _single(session, "```php\n1;\n```\n")
        assert session.prepare_run(fragment) == "1;\n"
        assert session.get_state(fragment.id).state == BlockState.EXECUTING

    def test_complete_run(self, session):
        entry = session.complete_run("a", ExecutionResult(output="3"))
        assert entry.state == BlockState.SUCCESS
        assert entry.last_result.output == "3"

    def test_requires_identifier(self, session):
        fragment = session.parser.parse("```php\n1\n```\n")[0]
        assert not fragment.is_assigned
        with pytest.raises(ValueError, match="no identifier"):
            session.prepare_run(fragment)

    def test_references_substituted(self, session, executor):
        session.complete_run("total", ExecutionResult(output="42\n"))
        session.complete_run("label", ExecutionResult(output="it's"))
        fragment = _single(
            session,
            "```php\nreturn $tinker_outputs.total + 1 . $tinker_outputs.label"
            " . $tinker_outputs.missing;\n```\n",
        )
        session.run(fragment, executor, "php")
        code = executor.calls[0][2]["code"]
        assert code == "return 42 + 1 . 'it\\'s' . $tinker_outputs.missing;\n"

    def test_non_zero_exit_is_error_and_null(self, session):
        entry = session.complete_run("a", ExecutionResult(output="5", exit_code=1))
        assert entry.state == BlockState.ERROR
        assert session.process_content("$tinker_outputs.a") == "null"

    def test_cycle_blocks_run(self, session, executor):
        session.complete_run("b", ExecutionResult(output="$tinker_outputs.a"))
        fragment = _single(session, "```php:a\nreturn $tinker_outputs.b;\n```\n")

        assert session.has_circular_references("a", fragment.content)
        with pytest.raises(CircularReferenceError) as exc_info:
            session.run(fragment, executor, "php")

        assert exc_info.value.path == ["b", "a"]
        assert str(exc_info.value) == "Circular reference detected in block 'a': a -> b -> a"
        assert executor.calls == []
        assert session.get_state("a") is None

    def test_self_reference(self, session, executor):
        fragment = _single(session, "```php:a\n$tinker_outputs.a\n```\n")
        with pytest.raises(CircularReferenceError):
            session.run(fragment, executor, "php")


class TestProjectLocation:
    """Tests for the project directory of secondary fragments."""

    def test_secondary_gets_cwd(self, memory_store, executor):
        locator = FixedLocator("/srv/app")
        session = NotebookSession(store=memory_store, project_locator=locator)
        fragment = _single(session, "```tinker\nUser::count();\n```\n")

        session.run(fragment, executor, "php", ["artisan", "tinker"], "/srv/app/notes.md")

        assert executor.calls[0][2]["cwd"] == "/srv/app"
        assert executor.calls[0][2]["kind"] == FragmentKind.SECONDARY
        assert locator.paths == ["/srv/app/notes.md"]

    def test_primary_ignores_locator(self, memory_store, executor):
        locator = FixedLocator("/srv/app")
        session = NotebookSession(store=memory_store, project_locator=locator)
        fragment = _single(session, "```php\n1;\n```\n")
        session.run(fragment, executor, "php", document_path="/srv/app/notes.md")
        assert "cwd" not in executor.calls[0][2]
        assert locator.paths == []

    def test_project_not_found(self, memory_store, executor, caplog):
        session = NotebookSession(store=memory_store, project_locator=FixedLocator(None))
        fragment = _single(session, "```tinker\n1;\n```\n")
        session.run(fragment, executor, "php", document_path="/tmp/notes.md")
        assert "cwd" not in executor.calls[0][2]
        assert "No project found" in caplog.text


class TestRender:
    """Tests for render() and render_report()."""

    def test_render_uses_session_options(self, memory_store):
        session = NotebookSession(
            store=memory_store, options=FormattingOptions(highlight_syntax=False)
        )
        out = session.render(ExecutionResult(output='{"a":1}'))
        assert out.text == '{\n  "a": 1\n}'
        assert out.formatter == "json"

    def test_render_explicit_options(self, session):
        out = session.render(
            ExecutionResult(output="[1]"),
            FormattingOptions(highlight_syntax=False, collapsible=True),
        )
        assert out.text.startswith("▼ JSON Output")

    def test_register_formatter(self, session):
        from tinker_notebook.formatting.formatters import FormattedOutput

        class Upper:
            name = "upper"

            def can_format(self, output):
                return output.isupper()

            def format(self, output, options):
                return FormattedOutput(output.lower(), output, "scalar-string", self.name)

        session.register_formatter(Upper())
        assert session.render(ExecutionResult(output="LOUD")).text == "loud"

    def test_report(self, session):
        plain = FormattingOptions(highlight_syntax=False)
        report = session.render_report(ExecutionResult(output="hello", execution_time=12), options=plain)
        assert report == (
            "=== PHP Execution Result ===\n"
            "Execution time: 12ms\n"
            "\n"
            "=== Output ===\n"
            "hello"
        )

    def test_report_with_error(self, session):
        result = ExecutionResult(output="", error="Parse error", exit_code=255, execution_time=3)
        report = session.render_report(result, FragmentKind.SECONDARY)
        assert report.startswith("=== Laravel Tinker Execution Result ===\n")
        assert "=== Output ===" not in report
        assert report.endswith("=== Error ===\nParse error")


class TestFromConfig:
    """Tests for NotebookSession.from_config()."""

    def test_workspace_persistence(self, memory_fs, executor):
        session = NotebookSession.from_config(NotebookConfig(), "/workspace", memory_fs)
        assert session.store.state_file == STATE_FILE

        fragment = _single(session, "```php\n1;\n```\n")
        session.run(fragment, executor, "php")

        document = json.loads(memory_fs.files[STATE_FILE])
        assert document["states"][fragment.id]["state"] == BlockState.SUCCESS
        assert document["results"][fragment.id]["output"] == "ok"

    def test_state_reloaded(self, memory_fs):
        first = NotebookSession.from_config(NotebookConfig(), "/workspace", memory_fs)
        first.complete_run("a", ExecutionResult(output="7"))

        second = NotebookSession.from_config(NotebookConfig(), "/workspace", memory_fs)
        assert second.load() is None
        assert second.get_result("a").output == "7"
        assert list(second.get_all_states()) == ["a"]

    def test_without_workspace(self):
        session = NotebookSession.from_config(NotebookConfig())
        assert session.store.state_file is None
        assert session.save() is None

    def test_config_applied(self):
        config = NotebookConfig.from_dict(
            {
                "parser": {"fenceTags": {"sql": "primary"}},
                "formatting": {"maxDepth": 1, "highlightSyntax": False},
            }
        )
        session = NotebookSession.from_config(config)
        assert session.parser.fence_tags == {"sql": "primary"}
        assert session.options.max_depth == 1
        assert session.options.highlight_syntax is False
        assert _single(session, "```sql\nselect 1;\n```\n").tag == "sql"
