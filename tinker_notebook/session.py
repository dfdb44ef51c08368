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

"""Notebook session.

A session ties the engine components together for one document or
workspace. Every component is passed in (or built from configuration);
nothing is shared through module globals, so several sessions can live
side by side.

Typical host flow::

    session = NotebookSession.from_config(load_config(), workspace)
    session.load()
    for fragment in session.parse(text):
        ...
    result = session.run(fragment, executor, "php")
    print(session.render(result).text)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .collaborators import ProcessExecutor, ProjectLocator
from .entities import ExecutionResult, StateEntry
from .errors import PersistenceError
from .formatting.chain import FormatterChain
from .formatting.formatters import FormattedOutput, Formatter, FormattingOptions
from .fragments import Fragment, FragmentKind
from .identifiers import IdentifierRegistry
from .parser import FragmentParser
from .references import ReferenceResolver
from .states import BlockState
from .storage import FileSystem
from .store import ExecutionStateStore

if TYPE_CHECKING:
    from .config import NotebookConfig

logger = logging.getLogger(__name__)


class NotebookSession:
    """Engine facade for one document or workspace.

    Args:
        store: Execution state store (an in-memory store when omitted)
        parser: Fragment parser
        registry: Identifier registry for parse passes
        chain: Formatter chain used by :meth:`render`
        options: Default formatting options
        project_locator: Finds the project directory for secondary fragments
    """

    def __init__(
        self,
        store: ExecutionStateStore | None = None,
        parser: FragmentParser | None = None,
        registry: IdentifierRegistry | None = None,
        chain: FormatterChain | None = None,
        options: FormattingOptions | None = None,
        project_locator: ProjectLocator | None = None,
    ) -> None:
        self.store = store if store is not None else ExecutionStateStore()
        self.parser = parser if parser is not None else FragmentParser()
        self.registry = registry if registry is not None else IdentifierRegistry()
        self.chain = chain if chain is not None else FormatterChain()
        self.options = options if options is not None else FormattingOptions()
        self.project_locator = project_locator
        self.resolver = ReferenceResolver(self.store)

    @classmethod
    def from_config(
        cls,
        config: NotebookConfig,
        workspace: str | None = None,
        file_system: FileSystem | None = None,
        project_locator: ProjectLocator | None = None,
    ) -> NotebookSession:
        """Build a session from configuration.

        Without a workspace, state is kept in memory only.
        """
        if workspace is not None:
            store = ExecutionStateStore.for_workspace(workspace, config.state, file_system)
        else:
            store = ExecutionStateStore(file_system=file_system, autosave=config.state.autosave)
        return cls(
            store=store,
            parser=FragmentParser.from_config(config.parser),
            options=config.formatting.to_options(),
            project_locator=project_locator,
        )

    # -- State queries -------------------------------------------------------

    def get_state(self, block_id: str) -> StateEntry | None:
        return self.store.get_state(block_id)

    def get_result(self, block_id: str) -> ExecutionResult | None:
        return self.store.get_result(block_id)

    def get_all_states(self) -> dict[str, StateEntry]:
        return self.store.get_all_states()

    def load(self) -> PersistenceError | None:
        """Load persisted state; failures are returned, not raised."""
        return self.store.load()

    def save(self) -> PersistenceError | None:
        return self.store.save()

    # -- Fragments -----------------------------------------------------------

    def parse(self, text: str, language_id: str = "markdown") -> list[Fragment]:
        """Find fragments in a document and assign their identifiers."""
        return self.assign_ids(self.parser.parse(text, language_id))

    def assign_ids(self, fragments: list[Fragment]) -> list[Fragment]:
        """Run one identifier pass over fragments, returning identified copies."""
        return self.registry.assign_all(fragments)

    # -- References ----------------------------------------------------------

    def has_circular_references(self, block_id: str, content: str) -> bool:
        return self.resolver.has_circular_references(block_id, content)

    def process_content(self, content: str) -> str:
        """Substitute stored results for ``$tinker_outputs`` references."""
        return self.resolver.process_content(content)

    # -- Runs ----------------------------------------------------------------

    def prepare_run(self, fragment: Fragment) -> str:
        """Start a run of fragment.

        Checks for circular references, substitutes references and marks
        the fragment as executing. Nothing changes when a cycle is found.

        Returns:
            The content to hand to the executor

        Raises:
            CircularReferenceError: If the fragment's references form a cycle
            ValueError: If the fragment has no identifier yet
        """
        if not fragment.is_assigned:
            raise ValueError("Fragment has no identifier; assign ids before running")

        self.resolver.check(fragment.id, fragment.content)
        content = self.resolver.process_content(fragment.content)
        self.store.set_state(fragment.id, BlockState.EXECUTING)
        return content

    def complete_run(self, block_id: str, result: ExecutionResult) -> StateEntry:
        """Finish a run with the executor's result (success or error)."""
        state = BlockState.ERROR if result.failed else BlockState.SUCCESS
        logger.info("Block '%s' finished: %s (%d ms)", block_id, state, result.execution_time)
        return self.store.set_state(block_id, state, result)

    def run(
        self,
        fragment: Fragment,
        executor: ProcessExecutor,
        command: str,
        args: list[str] | None = None,
        document_path: str | None = None,
    ) -> ExecutionResult:
        """Run a fragment through an executor and record the outcome.

        Secondary fragments get the located project directory as ``cwd``
        in the executor options when a locator and document path are known.

        Raises:
            CircularReferenceError: Before execution, if references cycle
        """
        code = self.prepare_run(fragment)

        options: dict[str, Any] = {"code": code, "kind": fragment.kind}
        if (
            fragment.kind == FragmentKind.SECONDARY
            and self.project_locator is not None
            and document_path is not None
        ):
            project = self.project_locator.locate(document_path)
            if project is None:
                logger.warning("No project found for %s", document_path)
            else:
                options["cwd"] = project

        try:
            result = executor.run(command, list(args or []), options)
        except Exception as e:
            self.complete_run(fragment.id, ExecutionResult(output="", error=str(e), exit_code=1))
            raise

        self.complete_run(fragment.id, result)
        return result

    # -- Output --------------------------------------------------------------

    def register_formatter(self, formatter: Formatter) -> None:
        self.chain.register_formatter(formatter)

    def render(
        self,
        result: ExecutionResult,
        options: FormattingOptions | None = None,
    ) -> FormattedOutput:
        """Format a result's output with the session's formatter chain."""
        return self.chain.format_result(result, options if options is not None else self.options)

    def render_report(
        self,
        result: ExecutionResult,
        kind: str = FragmentKind.PRIMARY,
        options: FormattingOptions | None = None,
    ) -> str:
        """Render a full result report: header, timing, output and error."""
        title = "PHP" if kind == FragmentKind.PRIMARY else "Laravel Tinker"
        lines = [
            f"=== {title} Execution Result ===",
            f"Execution time: {result.execution_time}ms",
            "",
        ]
        if result.output:
            lines.append("=== Output ===")
            lines.append(self.render(result, options).text)
        if result.error:
            lines.append("=== Error ===")
            lines.append(result.error)
        return "\n".join(lines)
