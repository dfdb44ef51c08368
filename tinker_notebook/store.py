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

"""Execution state store.

Keeps the lifecycle state and last result of every fragment id, and saves
them to a JSON document through an injected :class:`FileSystem`:

    {"states": {id: StateEntry}, "results": {id: ExecutionResult}}

All operations run on the caller's thread. ``save`` and ``load`` are the
only I/O; their failures are logged and returned, never raised. A process
exit between a mutation and a completed save loses that mutation.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from .entities import ExecutionResult, StateEntry, utc_now
from .errors import PersistenceError
from .states import BlockState, is_expected_transition
from .storage import FileSystem, LocalFileSystem

if TYPE_CHECKING:
    from .config import StateConfig

logger = logging.getLogger(__name__)


class ExecutionStateStore:
    """Per-id lifecycle records with load/save to a state file.

    Args:
        state_file: Path of the state document; ``None`` disables persistence
        file_system: Backend used to read and write the document
        autosave: Save after every mutation
    """

    def __init__(
        self,
        state_file: str | None = None,
        file_system: FileSystem | None = None,
        autosave: bool = True,
    ) -> None:
        self._states: dict[str, StateEntry] = {}
        self._results: dict[str, ExecutionResult] = {}
        self._fs = file_system if file_system is not None else LocalFileSystem()
        self._state_file = state_file
        self.autosave = autosave
        self.last_error: PersistenceError | None = None

    @classmethod
    def for_workspace(
        cls,
        workspace: str,
        config: StateConfig,
        file_system: FileSystem | None = None,
    ) -> ExecutionStateStore:
        """Create a store persisting under a workspace directory."""
        return cls(
            state_file=config.state_path(workspace),
            file_system=file_system,
            autosave=config.autosave,
        )

    @property
    def state_file(self) -> str | None:
        return self._state_file

    # -- Queries -------------------------------------------------------------

    def get_state(self, block_id: str) -> StateEntry | None:
        """Get the state entry for an id, or None if it never ran."""
        return self._states.get(block_id)

    def get_lifecycle(self, block_id: str) -> str:
        """Get the lifecycle state for an id (NOT_EXECUTED if absent)."""
        entry = self._states.get(block_id)
        return entry.state if entry else BlockState.NOT_EXECUTED

    def get_result(self, block_id: str) -> ExecutionResult | None:
        """Get the last stored result for an id."""
        return self._results.get(block_id)

    def get_all_states(self) -> dict[str, StateEntry]:
        """Get a snapshot of all state entries keyed by id."""
        return dict(self._states)

    # -- Mutations -----------------------------------------------------------

    def set_state(
        self,
        block_id: str,
        state: str,
        result: ExecutionResult | None = None,
    ) -> StateEntry:
        """Record a lifecycle change for an id.

        Updates the state and timestamp, and the stored result when one is
        given. The last call wins; overlapping runs of one id are not
        detected.

        Args:
            block_id: Fragment identifier
            state: New BlockState value
            result: Execution result to store alongside

        Returns:
            The updated entry

        Raises:
            ValueError: If state is not a BlockState value
        """
        if not BlockState.is_valid(state):
            raise ValueError(f"Unknown block state '{state}'")

        current = self.get_lifecycle(block_id)
        if not is_expected_transition(current, state):
            logger.debug("Unusual transition for '%s': %s -> %s", block_id, current, state)

        entry = self._states.get(block_id)
        if entry is None:
            entry = StateEntry(id=block_id)
            self._states[block_id] = entry
        entry.state = state
        entry.last_execution_time = utc_now()
        if result is not None:
            entry.last_result = result
            self.store_result(block_id, result)

        if self.autosave:
            self.save()
        return entry

    def store_result(self, block_id: str, result: ExecutionResult) -> None:
        """Store a result without changing the lifecycle state."""
        self._results[block_id] = result

    def clear_all(self) -> None:
        """Forget every state and result."""
        self._states.clear()
        self._results.clear()
        if self.autosave:
            self.save()

    # -- Persistence ---------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Serialize the full state and result maps."""
        return {
            "states": {key: entry.to_dict() for key, entry in self._states.items()},
            "results": {key: result.to_dict() for key, result in self._results.items()},
        }

    def save(self) -> PersistenceError | None:
        """Write the state document.

        Returns:
            None on success (or when persistence is disabled), otherwise
            the PersistenceError that was logged
        """
        if self._state_file is None:
            return None

        try:
            data = json.dumps(self.to_document())
            state_dir = self._fs.dirname(self._state_file)
            if state_dir and not self._fs.exists(state_dir):
                self._fs.makedirs(state_dir, exist_ok=True)
            self._fs.write_text(self._state_file, data)
        except (OSError, TypeError, ValueError) as e:
            return self._report("save", e)

        logger.debug("Saved %d block state(s) to %s", len(self._states), self._state_file)
        self.last_error = None
        return None

    def load(self) -> PersistenceError | None:
        """Replace the in-memory maps with the saved document.

        A missing file leaves the store untouched. A corrupt document is
        reported and also leaves the store untouched; partial merges never
        happen.

        Returns:
            None on success, otherwise the PersistenceError that was logged
        """
        if self._state_file is None:
            return None

        try:
            if not self._fs.exists(self._state_file):
                logger.debug("No block state file at %s", self._state_file)
                return None
            data = json.loads(self._fs.read_text(self._state_file))
            states, results = self._decode_document(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            return self._report("load", e)

        self._states = states
        self._results = results
        self.last_error = None
        logger.debug("Loaded %d block state(s) from %s", len(states), self._state_file)
        return None

    @staticmethod
    def _decode_document(
        data: Any,
    ) -> tuple[dict[str, StateEntry], dict[str, ExecutionResult]]:
        if not isinstance(data, dict):
            raise ValueError("State document must be a JSON object")
        states = {
            key: StateEntry.from_dict(value) for key, value in data.get("states", {}).items()
        }
        results = {
            key: ExecutionResult.from_dict(value)
            for key, value in data.get("results", {}).items()
        }
        return states, results

    def _report(self, operation: str, exc: Exception) -> PersistenceError:
        error = PersistenceError(operation=operation, path=self._state_file, message=str(exc))
        logger.warning("%s", error)
        self.last_error = error
        return error
