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

"""Fragment execution lifecycle.

    not_executed -> executing -> success
                              -> error

Transitions are driven by the caller; the store never advances a state on
its own and has no timeout. A fragment stuck in ``executing`` stays there
until the caller moves it.
"""


class BlockState:
    """Lifecycle state constants for a fragment id."""

    # Implicit initial state for ids without an entry
    NOT_EXECUTED = "not_executed"

    EXECUTING = "executing"

    # Terminal states
    SUCCESS = "success"
    ERROR = "error"

    ALL = (NOT_EXECUTED, EXECUTING, SUCCESS, ERROR)

    @classmethod
    def is_valid(cls, state: str) -> bool:
        return state in cls.ALL

    @classmethod
    def is_terminal(cls, state: str) -> bool:
        """Check if state is terminal (Success or Error)."""
        return state in (cls.SUCCESS, cls.ERROR)

    @classmethod
    def is_success(cls, state: str) -> bool:
        return state == cls.SUCCESS

    @classmethod
    def is_error(cls, state: str) -> bool:
        return state == cls.ERROR


# Expected transitions. A run may start again from any settled state.
BLOCK_TRANSITIONS: dict[str, frozenset[str]] = {
    BlockState.NOT_EXECUTED: frozenset({BlockState.EXECUTING}),
    BlockState.EXECUTING: frozenset({BlockState.SUCCESS, BlockState.ERROR, BlockState.EXECUTING}),
    BlockState.SUCCESS: frozenset({BlockState.EXECUTING}),
    BlockState.ERROR: frozenset({BlockState.EXECUTING}),
}


def is_expected_transition(current_state: str, next_state: str) -> bool:
    """Check if moving from current_state to next_state follows the lifecycle.

    Args:
        current_state: The state currently recorded
        next_state: The requested state

    Returns:
        True if the transition is part of the normal lifecycle
    """
    return next_state in BLOCK_TRANSITIONS.get(current_state, frozenset())
