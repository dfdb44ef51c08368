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

"""Tests for the fragment lifecycle."""

from tinker_notebook.states import BLOCK_TRANSITIONS, BlockState, is_expected_transition


class TestBlockState:
    """Tests for BlockState helpers."""

    def test_values(self):
        assert BlockState.ALL == ("not_executed", "executing", "success", "error")

    def test_is_valid(self):
        assert BlockState.is_valid("success")
        assert not BlockState.is_valid("running")

    def test_terminal_states(self):
        assert BlockState.is_terminal(BlockState.SUCCESS)
        assert BlockState.is_terminal(BlockState.ERROR)
        assert not BlockState.is_terminal(BlockState.EXECUTING)
        assert not BlockState.is_terminal(BlockState.NOT_EXECUTED)

    def test_success_and_error(self):
        assert BlockState.is_success(BlockState.SUCCESS)
        assert BlockState.is_error(BlockState.ERROR)
        assert not BlockState.is_error(BlockState.SUCCESS)


class TestTransitions:
    """Tests for the expected transition table."""

    def test_every_state_has_entry(self):
        assert set(BLOCK_TRANSITIONS) == set(BlockState.ALL)

    def test_normal_run(self):
        assert is_expected_transition(BlockState.NOT_EXECUTED, BlockState.EXECUTING)
        assert is_expected_transition(BlockState.EXECUTING, BlockState.SUCCESS)
        assert is_expected_transition(BlockState.EXECUTING, BlockState.ERROR)

    def test_rerun_from_settled_state(self):
        assert is_expected_transition(BlockState.SUCCESS, BlockState.EXECUTING)
        assert is_expected_transition(BlockState.ERROR, BlockState.EXECUTING)

    def test_skipping_executing_is_unusual(self):
        assert not is_expected_transition(BlockState.NOT_EXECUTED, BlockState.SUCCESS)
        assert not is_expected_transition(BlockState.SUCCESS, BlockState.ERROR)

    def test_unknown_state(self):
        assert not is_expected_transition("bogus", BlockState.EXECUTING)
